"""
Config Module - Black Box Interface

Purpose: Process-level settings for the API (store connection, bind address, runtime mode)
Interface: get_config(), reset_config(), ConfigModule.get()/set(), redis_url, is_production
Hidden: Environment variable names, parsing, required-key checks

Auth policy values (lockout, liveness, registers) live in
posauth.config.provider; this module covers process-level settings.
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


def _port(raw: str) -> int:
    # Container links export REDIS_PORT as tcp://host:port
    return int(raw.rsplit(":", 1)[-1]) if raw.startswith("tcp://") else int(raw)


def _flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Setting:
    key: str
    env: str
    description: str
    default: Optional[str] = None
    parse: Callable[[str], Any] = str
    required: bool = True


SETTINGS = (
    Setting("redis_host", "REDIS_HOST", "Redis server hostname", "localhost"),
    Setting("redis_port", "REDIS_PORT", "Redis server port number", "6379", _port),
    Setting("redis_db", "REDIS_DB", "Redis database number", "0", int),
    Setting("redis_password", "REDIS_PASSWORD", "Redis authentication password", required=False),
    Setting("host", "API_HOST", "API server bind address", "0.0.0.0"),
    Setting("port", "API_PORT", "API server port", "5000", int),
    Setting("log_level", "LOG_LEVEL", "Logging level (DEBUG, INFO, WARNING, ERROR)", "INFO"),
    Setting("debug", "DEBUG", "Enable uvicorn reload", "false", _flag, required=False),
    Setting(
        "environment",
        "ENVIRONMENT",
        "Deployment environment; 'production' marks cookies secure",
        "development",
        required=False,
    ),
)


class ConfigModule:
    """Environment-backed process settings."""

    def __init__(self):
        self._config = {s.key: self._read(s) for s in SETTINGS}
        self._check_required()

    @staticmethod
    def _read(setting: Setting) -> Any:
        raw = os.getenv(setting.env, setting.default)
        if raw is None:
            return None
        try:
            return setting.parse(raw)
        except ValueError as e:
            raise ValueError(f"Invalid value for {setting.env}: {raw!r}") from e

    def _check_required(self) -> None:
        """
        Raises:
            ValueError: A required setting resolved to None
        """
        missing = [s.env for s in SETTINGS if s.required and self._config.get(s.key) is None]
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        return dict(self._config)

    @property
    def redis_url(self) -> str:
        """Redis URL without credentials (password is passed separately)."""
        return f"redis://{self.get('redis_host')}:{self.get('redis_port')}/{self.get('redis_db')}"

    @property
    def is_production(self) -> bool:
        return self.get("environment") == "production"

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Describe every setting, split into required and optional.

        Returns:
            {"required": {key: {...}}, "optional": {key: {...}}}
        """
        schema: Dict[str, Any] = {"required": {}, "optional": {}}
        for s in SETTINGS:
            section = "required" if s.required else "optional"
            schema[section][s.key] = {"env": s.env, "description": s.description, "default": s.default}
        return schema


_instance: Optional[ConfigModule] = None


def get_config() -> ConfigModule:
    """Return the process-wide settings, reading the environment on first use."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


def reset_config() -> None:
    """Drop the cached settings so the next get_config() re-reads the environment."""
    global _instance
    _instance = None


__all__ = ["get_config", "reset_config", "ConfigModule", "Setting", "SETTINGS"]
