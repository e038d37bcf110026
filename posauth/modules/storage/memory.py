"""In-process account store with per-account locks."""

import asyncio
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, Optional

from .accounts import Account


class InMemoryAccountStore:
    """
    Dict-backed AccountStore.

    Every mutation of one account runs under that account's asyncio.Lock,
    giving the same per-account serialization the Redis scripts provide.
    Reads return copies so callers never mutate stored state directly.
    """

    def __init__(self, accounts: Iterable[Account] = ()):
        self._accounts: Dict[str, Account] = {}
        self._tokens: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        for account in accounts:
            self._accounts[account.employee_id] = account.copy()
            if account.current_session_token:
                self._tokens[account.current_session_token] = account.employee_id

    async def get(self, employee_id: str) -> Optional[Account]:
        account = self._accounts.get(employee_id)
        return account.copy() if account else None

    async def find_by_token(self, token: str) -> Optional[Account]:
        employee_id = self._tokens.get(token) if token else None
        if employee_id is None:
            return None
        account = self._accounts.get(employee_id)
        if account is None or account.current_session_token != token:
            return None
        return account.copy()

    async def save(self, account: Account) -> None:
        async with self._locks[account.employee_id]:
            previous = self._accounts.get(account.employee_id)
            if previous and previous.current_session_token:
                self._tokens.pop(previous.current_session_token, None)
            self._accounts[account.employee_id] = account.copy()
            if account.current_session_token:
                self._tokens[account.current_session_token] = account.employee_id

    async def increment_failed_attempts(self, employee_id: str) -> int:
        async with self._locks[employee_id]:
            account = self._accounts[employee_id]
            account.failed_attempts += 1
            return account.failed_attempts

    async def update_lockout(
        self, employee_id: str, failed_attempts: int, locked_until: Optional[datetime]
    ) -> None:
        async with self._locks[employee_id]:
            account = self._accounts[employee_id]
            account.failed_attempts = failed_attempts
            account.locked_until = locked_until

    async def compare_and_set_session(
        self,
        employee_id: str,
        expected_token: Optional[str],
        token: Optional[str],
        terminal: Optional[str],
        last_activity: Optional[datetime],
    ) -> bool:
        async with self._locks[employee_id]:
            account = self._accounts.get(employee_id)
            if account is None or account.current_session_token != expected_token:
                return False

            if account.current_session_token:
                self._tokens.pop(account.current_session_token, None)

            if token is None:
                account.current_session_token = None
                account.logged_in_terminal = None
                account.last_activity = None
            else:
                account.current_session_token = token
                account.logged_in_terminal = terminal
                account.last_activity = last_activity
                self._tokens[token] = employee_id
            return True

    async def touch(self, token: str, last_activity: datetime) -> bool:
        employee_id = self._tokens.get(token)
        if employee_id is None:
            return False
        async with self._locks[employee_id]:
            account = self._accounts.get(employee_id)
            if account is None or account.current_session_token != token:
                return False
            account.last_activity = last_activity
            return True
