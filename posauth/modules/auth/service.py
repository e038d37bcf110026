"""
Authentication Service Facade following Black Box Design principles.

This module provides:
- The caller-visible failure taxonomy
- Standardized success and failure results for every operation
- The protocol the transport layer depends on
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol, Union


class AuthErrorKind(str, Enum):
    """Failure categories surfaced to callers."""

    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    INVALID_PIN = "INVALID_PIN"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    ALREADY_LOGGED_IN = "ALREADY_LOGGED_IN"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"


@dataclass
class UserProjection:
    """Account fields safe to hand to a client."""

    employee_id: str
    first_name: str
    last_name: str
    role: str
    terminal: Optional[str] = None


@dataclass
class AuthFailure:
    """Structured failure; never raised."""

    kind: AuthErrorKind
    message: str
    conflicting_terminal: Optional[str] = None
    remaining_minutes: Optional[int] = None
    success: bool = False


@dataclass
class LoginSuccess:
    token: str
    user: UserProjection
    terminal: str
    login_time: datetime
    message: str = "Login successful"
    success: bool = True


@dataclass
class ValidateSuccess:
    user: UserProjection
    success: bool = True


@dataclass
class HeartbeatSuccess:
    timestamp: datetime
    success: bool = True


@dataclass
class LogoutSuccess:
    success: bool = True


LoginResult = Union[LoginSuccess, AuthFailure]
ValidateResult = Union[ValidateSuccess, AuthFailure]
HeartbeatResult = Union[HeartbeatSuccess, AuthFailure]
LogoutResult = Union[LogoutSuccess, AuthFailure]


class AuthenticationService(Protocol):
    """Protocol for terminal-bound authentication services."""

    async def login(self, employee_id: str, pin: str, terminal: str) -> LoginResult:
        """
        Authenticate an employee at a terminal and issue a session token.

        Args:
            employee_id: Employee identifier
            pin: Submitted PIN
            terminal: Requesting register

        Returns:
            LoginSuccess or AuthFailure
        """
        ...

    async def validate(self, token: str) -> ValidateResult:
        ...

    async def heartbeat(self, token: str) -> HeartbeatResult:
        ...

    async def logout(self, token: str) -> LogoutResult:
        ...
