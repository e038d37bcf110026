import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...config.provider import LockoutConfig
from ..storage import Account, AccountStore, Role

logger = logging.getLogger(__name__)


@dataclass
class LockoutStatus:
    """Result of a lockout check."""

    locked: bool
    remaining_minutes: Optional[int] = None


class LockoutPolicy:
    """Sole writer of Account.failed_attempts and Account.locked_until."""

    def __init__(self, store: AccountStore, config: Optional[LockoutConfig] = None):
        """
        Initialize lockout policy.

        Args:
            store: Account store
            config: Threshold and lock duration (defaults: 4 attempts, 15 minutes)
        """
        self.store = store
        self.config = config or LockoutConfig()

    async def check_lockout(self, account: Account, now: datetime) -> LockoutStatus:
        """
        Decide whether the account is currently locked.

        An expired lock is cleared as a side effect, resetting the attempt
        counter, and reported as unlocked.

        Args:
            account: Account as read from the store (updated in place on expiry)
            now: Current time

        Returns:
            LockoutStatus with ceiling-rounded remaining minutes when locked
        """
        if account.locked_until is None:
            return LockoutStatus(locked=False)

        if now > account.locked_until:
            await self.store.update_lockout(account.employee_id, 0, None)
            account.failed_attempts = 0
            account.locked_until = None
            logger.info(f"Lock expired for employee {account.employee_id}")
            return LockoutStatus(locked=False)

        remaining = math.ceil((account.locked_until - now).total_seconds() / 60)
        return LockoutStatus(locked=True, remaining_minutes=max(remaining, 1))

    async def record_success(self, account: Account) -> None:
        """Reset the failed-attempt counter after a correct PIN."""
        await self.store.update_lockout(account.employee_id, 0, None)
        account.failed_attempts = 0
        account.locked_until = None

    async def record_failure(self, account: Account, now: datetime) -> LockoutStatus:
        """
        Count a wrong PIN and lock the account once the threshold is reached.

        Admin accounts are never locked so the system can always be recovered.

        Args:
            account: Account that failed verification
            now: Current time

        Returns:
            LockoutStatus describing whether this failure triggered a lock
        """
        attempts = await self.store.increment_failed_attempts(account.employee_id)
        account.failed_attempts = attempts

        if attempts < self.config.threshold or account.role == Role.ADMIN:
            return LockoutStatus(locked=False)

        locked_until = now + self.config.duration
        await self.store.update_lockout(account.employee_id, attempts, locked_until)
        account.locked_until = locked_until

        logger.warning(
            f"Employee {account.employee_id} locked until {locked_until.isoformat()} "
            f"after {attempts} failed attempts"
        )
        return LockoutStatus(locked=True, remaining_minutes=self.config.lockout_minutes)
