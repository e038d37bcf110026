"""
Authentication Module - Black Box Interface

Purpose: Terminal-bound employee login with single-active-session enforcement
Interface: login(), validate(), heartbeat(), logout()
Hidden: Lockout arithmetic, liveness rule, session write serialization

Callers only see AuthenticationService and its result types; the factory
wires the concrete components.
"""

from .audit import AuditLog
from .factory import AuthFactory
from .orchestrator import AuthOrchestrator
from .service import (
    AuthenticationService,
    AuthErrorKind,
    AuthFailure,
    HeartbeatSuccess,
    LoginSuccess,
    LogoutSuccess,
    UserProjection,
    ValidateSuccess,
)

__all__ = [
    "AuditLog",
    "AuthFactory",
    "AuthOrchestrator",
    "AuthenticationService",
    "AuthErrorKind",
    "AuthFailure",
    "HeartbeatSuccess",
    "LoginSuccess",
    "LogoutSuccess",
    "UserProjection",
    "ValidateSuccess",
]
