"""Account record and the store contract."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Protocol


class Role(str, Enum):
    """Employee role."""

    ADMIN = "admin"
    CASHIER = "cashier"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass
class Account:
    """
    Persisted identity and security state for one employee.

    The session triple (current_session_token, logged_in_terminal,
    last_activity) is either fully set or fully cleared.
    """

    employee_id: str
    pin_hash: str
    role: Role = Role.CASHIER
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    failed_attempts: int = 0
    locked_until: Optional[datetime] = None
    current_session_token: Optional[str] = None
    logged_in_terminal: Optional[str] = None
    last_activity: Optional[datetime] = None

    def copy(self) -> "Account":
        return replace(self)

    def to_hash(self) -> Dict[str, str]:
        """Flatten into string fields; unset optionals are omitted."""
        data = {
            "employee_id": self.employee_id,
            "pin_hash": self.pin_hash,
            "role": self.role.value,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "is_active": "1" if self.is_active else "0",
            "failed_attempts": str(self.failed_attempts),
        }
        if self.locked_until is not None:
            data["locked_until"] = self.locked_until.isoformat()
        if self.current_session_token is not None:
            data["current_session_token"] = self.current_session_token
            data["logged_in_terminal"] = self.logged_in_terminal or ""
            data["last_activity"] = self.last_activity.isoformat() if self.last_activity else ""
        return data

    @classmethod
    def from_hash(cls, data: Dict[str, str]) -> "Account":
        """Rebuild an account from the fields written by to_hash()."""

        def _ts(key: str) -> Optional[datetime]:
            raw = data.get(key)
            return datetime.fromisoformat(raw) if raw else None

        return cls(
            employee_id=data["employee_id"],
            pin_hash=data.get("pin_hash", ""),
            role=Role.parse(data.get("role")),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            is_active=data.get("is_active", "1") == "1",
            failed_attempts=int(data.get("failed_attempts") or 0),
            locked_until=_ts("locked_until"),
            current_session_token=data.get("current_session_token") or None,
            logged_in_terminal=data.get("logged_in_terminal") or None,
            last_activity=_ts("last_activity"),
        )


class AccountStore(Protocol):
    """
    Keyed account persistence.

    compare_and_set_session() is the only write path for the session triple
    and must be atomic per account.
    """

    async def get(self, employee_id: str) -> Optional[Account]:
        ...

    async def find_by_token(self, token: str) -> Optional[Account]:
        ...

    async def save(self, account: Account) -> None:
        ...

    async def increment_failed_attempts(self, employee_id: str) -> int:
        ...

    async def update_lockout(
        self, employee_id: str, failed_attempts: int, locked_until: Optional[datetime]
    ) -> None:
        ...

    async def compare_and_set_session(
        self,
        employee_id: str,
        expected_token: Optional[str],
        token: Optional[str],
        terminal: Optional[str],
        last_activity: Optional[datetime],
    ) -> bool:
        ...

    async def touch(self, token: str, last_activity: datetime) -> bool:
        ...
