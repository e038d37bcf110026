import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..storage import Account, AccountStore

logger = logging.getLogger(__name__)


def generate_session_token() -> str:
    """256-bit random hex token."""
    return secrets.token_hex(32)


@dataclass
class SessionInfo:
    """The session triple embedded in an account."""

    token: str
    terminal: str
    last_activity: datetime


class SessionRaceError(Exception):
    """The account's session changed between read and write."""

    def __init__(self, employee_id: str):
        super().__init__(f"Session for employee {employee_id} changed concurrently")
        self.employee_id = employee_id


class SessionRegistry:
    """
    Sole writer of the session fields on an account.

    Every write is a compare-and-set against the token observed when the
    account was read, so two racing writers for one account cannot both win.
    """

    def __init__(
        self,
        store: AccountStore,
        token_factory: Callable[[], str] = generate_session_token,
    ):
        """
        Initialize session registry.

        Args:
            store: Account store
            token_factory: Produces new opaque session tokens
        """
        self.store = store
        self.token_factory = token_factory

    def current_session(self, account: Account) -> Optional[SessionInfo]:
        if not account.current_session_token or not account.logged_in_terminal:
            return None
        return SessionInfo(
            token=account.current_session_token,
            terminal=account.logged_in_terminal,
            last_activity=account.last_activity,
        )

    async def bind_session(self, account: Account, terminal: str, now: datetime) -> str:
        """
        Issue a new token bound to terminal, replacing any prior session.

        Args:
            account: Account as last read; its token is the CAS expectation
            terminal: Requesting terminal
            now: Login time, recorded as last activity

        Returns:
            New session token

        Raises:
            SessionRaceError: Another writer changed the session since the read
        """
        token = self.token_factory()
        swapped = await self.store.compare_and_set_session(
            account.employee_id,
            expected_token=account.current_session_token,
            token=token,
            terminal=terminal,
            last_activity=now,
        )
        if not swapped:
            raise SessionRaceError(account.employee_id)

        account.current_session_token = token
        account.logged_in_terminal = terminal
        account.last_activity = now

        logger.info(f"Session {token[:8]}... bound for employee {account.employee_id} at {terminal}")
        return token

    async def touch(self, token: str, now: datetime) -> bool:
        """Refresh last activity; False when no account holds the token."""
        touched = await self.store.touch(token, now)
        if not touched:
            logger.warning(f"Touch for unknown session {token[:8]}...")
        return touched

    async def clear(self, account: Account) -> bool:
        """
        Null the session triple.

        Returns:
            False when the session had already been replaced or cleared
        """
        if account.current_session_token is None:
            return True

        cleared = await self.store.compare_and_set_session(
            account.employee_id,
            expected_token=account.current_session_token,
            token=None,
            terminal=None,
            last_activity=None,
        )
        if cleared:
            logger.info(
                f"Session {account.current_session_token[:8]}... cleared for employee "
                f"{account.employee_id}"
            )
            account.current_session_token = None
            account.logged_in_terminal = None
            account.last_activity = None
        return cleared

    async def find_by_token(self, token: str) -> Optional[Account]:
        return await self.store.find_by_token(token)
