"""
Logging configuration for the API process.

Probe requests are dropped from the uvicorn access log and full session
tokens are masked before any handler writes a record.
"""

import logging
import re
from typing import Any, Dict

PROBE_PATHS = frozenset({"/health", "/healthz"})

# 32-byte hex session tokens
TOKEN_PATTERN = re.compile(r"\b[0-9a-f]{64}\b")


class ProbeFilter(logging.Filter):
    """Suppress container health probes in uvicorn access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        # uvicorn access args: (client_addr, method, full_path, http_version, status_code)
        args = record.args
        if record.name == "uvicorn.access" and isinstance(args, tuple) and len(args) >= 3:
            method, path = args[1], str(args[2]).split("?", 1)[0]
            if method == "GET" and path in PROBE_PATHS:
                return False
        return True


class TokenRedactionFilter(logging.Filter):
    """Replace full session tokens with their 8-char prefix."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = TOKEN_PATTERN.sub(lambda m: f"{m.group(0)[:8]}...", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Build a dictConfig for the app and uvicorn loggers."""
    level = level.upper()

    uvicorn_loggers = {
        name: {"handlers": [handler], "level": "INFO", "propagate": False}
        for name, handler in (
            ("uvicorn", "default"),
            ("uvicorn.error", "default"),
            ("uvicorn.access", "access"),
        )
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "probe": {"()": ProbeFilter},
            "redact_tokens": {"()": TokenRedactionFilter},
        },
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["redact_tokens"],
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["probe"],
            },
        },
        "loggers": uvicorn_loggers,
        "root": {"level": level, "handlers": ["default"]},
    }
