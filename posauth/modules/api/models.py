"""
posauth transport models.

Wire fields are camelCase for the register client; Python attributes stay
snake_case through alias generation.
"""

import re
from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ...config.provider import TerminalConfig

EMPLOYEE_ID_PATTERN = re.compile(r"^\d{7}$")
PIN_PATTERN = re.compile(r"^\d{4,7}$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request Models (API Input)


class LoginRequest(CamelModel):
    """Login form submitted by a register."""

    employee_id: Optional[str] = Field(None, description="7-digit employee identifier")
    pin: Optional[str] = Field(None, description="4-7 digit PIN")
    register_id: Optional[str] = Field(None, description="Requesting register, e.g. REG01")

    @field_validator("employee_id", "pin", "register_id", mode="before")
    @classmethod
    def strip_blank(cls, v):
        """Accept numeric JSON values and treat whitespace-only input as missing."""
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def validation_error(self, terminals: TerminalConfig) -> Optional[Tuple[str, str]]:
        """
        Check the form before it reaches the auth service.

        Returns:
            (error_code, message) or None when the request is well-formed
        """
        if not self.employee_id or not self.pin or not self.register_id:
            return "MISSING_CREDENTIALS", "Employee ID, PIN, and Register ID are required"
        if not EMPLOYEE_ID_PATTERN.match(self.employee_id):
            return "INVALID_EMPLOYEE_ID", "Employee ID must be 7 digits"
        if not PIN_PATTERN.match(self.pin):
            return "INVALID_PIN", "PIN must be 4-7 digits"
        if not terminals.is_valid(self.register_id):
            return "INVALID_REGISTER", f"Register ID must be one of: {', '.join(terminals.registers)}"
        return None


# Response Models (API Output)


class UserModel(CamelModel):
    employee_id: str
    first_name: str
    last_name: str
    role: str
    terminal: Optional[str] = None


class LoginResponse(CamelModel):
    success: bool = True
    user: UserModel
    terminal: str
    login_time: datetime
    message: str


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    message: Optional[str] = None
    conflicting_terminal: Optional[str] = None


class ValidateResponse(CamelModel):
    valid: bool
    user: Optional[UserModel] = None
    error: Optional[str] = None
    message: Optional[str] = None


class HeartbeatResponse(CamelModel):
    success: bool = True
    timestamp: datetime


class LogoutResponse(CamelModel):
    success: bool = True
    message: str = "Logged out successfully"
