"""
Login state machine and session maintenance operations.

Login steps run strictly in order and stop at the first failure:
lookup, lockout gate, PIN check, session conflict resolution, issuance.
Store failures at any step become AUTHENTICATION_ERROR; side effects
already committed (such as a counted failed attempt) are kept.
"""

import logging
from typing import Optional

from ..clock import Clock, utcnow
from ..credentials import CredentialVerifier
from ..lockout import LockoutPolicy
from ..session import LivenessCheck, SessionRaceError, SessionRegistry
from ..storage import Account, AccountStore
from .audit import AuditLog
from .service import (
    AuthErrorKind,
    AuthFailure,
    HeartbeatResult,
    HeartbeatSuccess,
    LoginResult,
    LoginSuccess,
    LogoutResult,
    LogoutSuccess,
    UserProjection,
    ValidateResult,
    ValidateSuccess,
)

logger = logging.getLogger(__name__)


def _project(account: Account, include_terminal: bool = False) -> UserProjection:
    return UserProjection(
        employee_id=account.employee_id,
        first_name=account.first_name,
        last_name=account.last_name,
        role=account.role.value,
        terminal=account.logged_in_terminal if include_terminal else None,
    )


def _token_prefix(token: Optional[str]) -> str:
    return f"{token[:8]}..." if token else "<none>"


class AuthOrchestrator:
    """Composes verifier, lockout policy, session registry and liveness check."""

    def __init__(
        self,
        store: AccountStore,
        verifier: CredentialVerifier,
        lockout: LockoutPolicy,
        registry: SessionRegistry,
        liveness: LivenessCheck,
        audit: Optional[AuditLog] = None,
        clock: Clock = utcnow,
        bind_retries: int = 2,
    ):
        self.store = store
        self.verifier = verifier
        self.lockout = lockout
        self.registry = registry
        self.liveness = liveness
        self.audit = audit or AuditLog()
        self.clock = clock
        self.bind_retries = bind_retries

    async def login(self, employee_id: str, pin: str, terminal: str) -> LoginResult:
        try:
            return await self._login(employee_id, pin, terminal)
        except Exception:
            logger.exception(f"Authentication error for employee {employee_id}")
            return AuthFailure(AuthErrorKind.AUTHENTICATION_ERROR, "Login system error")

    async def _login(self, employee_id: str, pin: str, terminal: str) -> LoginResult:
        now = self.clock()

        account = await self.store.get(employee_id)
        if account is None or not account.is_active:
            return AuthFailure(AuthErrorKind.EMPLOYEE_NOT_FOUND, "Employee not found")

        status = await self.lockout.check_lockout(account, now)
        if status.locked:
            return AuthFailure(
                AuthErrorKind.ACCOUNT_LOCKED,
                f"Account locked for {status.remaining_minutes} more minutes",
                remaining_minutes=status.remaining_minutes,
            )

        if not self.verifier.verify(pin, account.pin_hash):
            failure = await self.lockout.record_failure(account, now)
            await self.audit.record(
                "account_locked" if failure.locked else "login_failed",
                {"employee_id": employee_id, "terminal": terminal},
            )
            return AuthFailure(AuthErrorKind.INVALID_PIN, "Invalid PIN")

        await self.lockout.record_success(account)

        for _ in range(self.bind_retries + 1):
            try:
                conflicting = await self._resolve_conflict(account, terminal, now)
                if conflicting:
                    return self._conflict(conflicting)
                token = await self.registry.bind_session(account, terminal, now)
                break
            except SessionRaceError:
                logger.info(f"Session race for employee {employee_id}, re-reading account")
                account = await self.store.get(employee_id)
                if account is None or not account.is_active:
                    return AuthFailure(AuthErrorKind.EMPLOYEE_NOT_FOUND, "Employee not found")
        else:
            return self._conflict(account.logged_in_terminal or "another terminal")

        await self.audit.record("login_succeeded", {"employee_id": employee_id, "terminal": terminal})
        return LoginSuccess(
            token=token,
            user=_project(account),
            terminal=terminal,
            login_time=now,
        )

    async def _resolve_conflict(self, account: Account, terminal: str, now) -> Optional[str]:
        """
        Decide whether an existing session blocks this login.

        Returns:
            The conflicting terminal, or None when login may proceed

        Raises:
            SessionRaceError: The stale session changed before it could be cleared
        """
        session = self.registry.current_session(account)
        if session is None or session.terminal == terminal:
            return None

        if self.liveness.is_alive(account, now):
            return session.terminal

        if not await self.registry.clear(account):
            raise SessionRaceError(account.employee_id)

        await self.audit.record(
            "session_taken_over",
            {
                "employee_id": account.employee_id,
                "stale_terminal": session.terminal,
                "terminal": terminal,
            },
        )
        return None

    @staticmethod
    def _conflict(terminal: str) -> AuthFailure:
        return AuthFailure(
            AuthErrorKind.ALREADY_LOGGED_IN,
            f"Already logged into {terminal}",
            conflicting_terminal=terminal,
        )

    async def validate(self, token: str) -> ValidateResult:
        """
        Check a session token and refresh its activity when alive.

        A dead session is cleared so the account is free for another terminal.
        """
        try:
            now = self.clock()
            account = await self.registry.find_by_token(token) if token else None
            if account is None or not account.is_active:
                return AuthFailure(AuthErrorKind.SESSION_NOT_FOUND, "Session not found")

            if not self.liveness.is_alive(account, now):
                await self.registry.clear(account)
                await self.audit.record(
                    "session_expired",
                    {"employee_id": account.employee_id, "terminal": account.logged_in_terminal},
                )
                return AuthFailure(AuthErrorKind.SESSION_EXPIRED, "Session expired")

            if not await self.registry.touch(token, now):
                return AuthFailure(AuthErrorKind.SESSION_NOT_FOUND, "Session not found")

            return ValidateSuccess(user=_project(account, include_terminal=True))
        except Exception:
            logger.exception(f"Session validation error for {_token_prefix(token)}")
            return AuthFailure(AuthErrorKind.AUTHENTICATION_ERROR, "Session validation error")

    async def heartbeat(self, token: str) -> HeartbeatResult:
        """Keep-alive: refresh last activity only."""
        try:
            now = self.clock()
            if token and await self.registry.touch(token, now):
                return HeartbeatSuccess(timestamp=now)
            return AuthFailure(AuthErrorKind.SESSION_NOT_FOUND, "Session not found")
        except Exception:
            logger.exception(f"Heartbeat error for {_token_prefix(token)}")
            return AuthFailure(AuthErrorKind.AUTHENTICATION_ERROR, "Heartbeat error")

    async def logout(self, token: str) -> LogoutResult:
        """End a session; unknown tokens count as already logged out."""
        try:
            account = await self.registry.find_by_token(token) if token else None
            if account is None:
                return LogoutSuccess()

            terminal = account.logged_in_terminal
            await self.registry.clear(account)
            await self.audit.record(
                "logged_out", {"employee_id": account.employee_id, "terminal": terminal}
            )
            return LogoutSuccess()
        except Exception:
            logger.exception(f"Logout error for {_token_prefix(token)}")
            return AuthFailure(AuthErrorKind.AUTHENTICATION_ERROR, "Logout error")
