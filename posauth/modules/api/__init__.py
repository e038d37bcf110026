"""
API Module - Black Box Interface

Purpose: Request and response shapes for the register-facing HTTP API
Interface: pydantic models
Hidden: Wire casing, input format rules

The API layer only orchestrates - it contains no authentication logic.
"""

from .models import (
    ErrorResponse,
    HeartbeatResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    UserModel,
    ValidateResponse,
)

__all__ = [
    "ErrorResponse",
    "HeartbeatResponse",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "UserModel",
    "ValidateResponse",
]
