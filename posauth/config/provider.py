"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Protocol


DEFAULT_REGISTERS = ["REG01", "REG02", "REG03", "REG04"]


@dataclass
class LockoutConfig:
    """Brute-force lockout policy."""
    threshold: int = 4
    lockout_minutes: int = 15

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.lockout_minutes)


@dataclass
class SessionConfig:
    """Session liveness and transport bounds."""
    liveness_window_minutes: int = 6
    cookie_hours: int = 8
    bind_retries: int = 2

    @property
    def liveness_window(self) -> timedelta:
        return timedelta(minutes=self.liveness_window_minutes)

    @property
    def cookie_max_age_seconds(self) -> int:
        return self.cookie_hours * 60 * 60


@dataclass
class TerminalConfig:
    """Registers allowed to request a session."""
    registers: List[str] = field(default_factory=lambda: list(DEFAULT_REGISTERS))

    def is_valid(self, register_id: str) -> bool:
        return register_id in self.registers


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_lockout_config(self) -> LockoutConfig:
        """Get lockout policy configuration."""
        ...

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...

    def get_terminal_config(self) -> TerminalConfig:
        """Get terminal configuration."""
        ...


def _positive_int(name: str, default: str) -> int:
    value = int(os.getenv(name, default))
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_lockout_config(self) -> LockoutConfig:
        """Get lockout configuration from environment variables."""
        return LockoutConfig(
            threshold=_positive_int("LOCKOUT_THRESHOLD", "4"),
            lockout_minutes=_positive_int("LOCKOUT_MINUTES", "15"),
        )

    def get_session_config(self) -> SessionConfig:
        """Get session configuration from environment variables."""
        retries = int(os.getenv("SESSION_BIND_RETRIES", "2"))
        if retries < 0:
            raise ValueError(f"SESSION_BIND_RETRIES must not be negative, got {retries}")

        return SessionConfig(
            liveness_window_minutes=_positive_int("LIVENESS_WINDOW_MINUTES", "6"),
            cookie_hours=_positive_int("SESSION_COOKIE_HOURS", "8"),
            bind_retries=retries,
        )

    def get_terminal_config(self) -> TerminalConfig:
        """Get terminal configuration from environment variables."""
        registers_env = os.getenv("VALID_REGISTERS")
        if not registers_env:
            return TerminalConfig()

        registers = [r.strip() for r in registers_env.split(",") if r.strip()]
        if not registers:
            raise ValueError("VALID_REGISTERS is set but lists no registers")

        return TerminalConfig(registers=registers)
