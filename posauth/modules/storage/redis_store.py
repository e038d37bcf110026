"""
Redis-backed account store.

Key layout:
- account:{employee_id}      hash of Account fields
- session:token:{token}      employee id currently holding the token

Session writes run as Lua scripts so the read-compare-write on one
account is atomic on the server. Every key a script touches is passed
in KEYS.
"""

import logging
from datetime import datetime
from typing import Optional

from .accounts import Account

logger = logging.getLogger(__name__)

ACCOUNT_PREFIX = "account:"
TOKEN_PREFIX = "session:token:"

# KEYS[1] account hash, then the old token index key when ARGV[1] is set,
# then the new token index key when ARGV[2] is set.
# ARGV: expected token, new token, terminal, last activity, employee id
# Empty string stands for "no token".
_CAS_SESSION_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
  return 0
end
local current = redis.call('HGET', KEYS[1], 'current_session_token') or ''
if current ~= ARGV[1] then
  return 0
end
local index = 2
if current ~= '' then
  redis.call('DEL', KEYS[index])
  index = index + 1
end
if ARGV[2] == '' then
  redis.call('HDEL', KEYS[1], 'current_session_token', 'logged_in_terminal', 'last_activity')
else
  redis.call('HSET', KEYS[1],
    'current_session_token', ARGV[2],
    'logged_in_terminal', ARGV[3],
    'last_activity', ARGV[4])
  redis.call('SET', KEYS[index], ARGV[5])
end
return 1
"""

# KEYS[1] account hash
# ARGV: token, last activity
_TOUCH_SCRIPT = """
if redis.call('HGET', KEYS[1], 'current_session_token') ~= ARGV[1] then
  return 0
end
redis.call('HSET', KEYS[1], 'last_activity', ARGV[2])
return 1
"""


class RedisAccountStore:
    """Account store on an async Redis client (decode_responses=True)."""

    def __init__(self, redis_client):
        """
        Initialize the store.

        Args:
            redis_client: Async Redis client
        """
        self.redis = redis_client

    @staticmethod
    def _account_key(employee_id: str) -> str:
        return f"{ACCOUNT_PREFIX}{employee_id}"

    @staticmethod
    def _token_key(token: str) -> str:
        return f"{TOKEN_PREFIX}{token}"

    async def get(self, employee_id: str) -> Optional[Account]:
        data = await self.redis.hgetall(self._account_key(employee_id))
        if not data:
            return None
        if "employee_id" not in data:
            # Counter writes racing a delete leave a partial hash behind
            logger.warning(f"Ignoring partial account record for employee {employee_id}")
            return None
        return Account.from_hash(data)

    async def find_by_token(self, token: str) -> Optional[Account]:
        """
        Resolve a session token to its account.

        The index is only trusted when the account still records the same
        token; a lagging index entry resolves to None.
        """
        if not token:
            return None

        employee_id = await self.redis.get(self._token_key(token))
        if not employee_id:
            return None

        account = await self.get(employee_id)
        if account is None or account.current_session_token != token:
            return None
        return account

    async def save(self, account: Account) -> None:
        """Create or fully replace an account record."""
        key = self._account_key(account.employee_id)
        existing = await self.redis.hget(key, "current_session_token")

        pipe = self.redis.pipeline(transaction=True)
        if existing and existing != account.current_session_token:
            pipe.delete(self._token_key(existing))
        pipe.delete(key)
        pipe.hset(key, mapping=account.to_hash())
        if account.current_session_token:
            pipe.set(self._token_key(account.current_session_token), account.employee_id)
        await pipe.execute()

    async def increment_failed_attempts(self, employee_id: str) -> int:
        return int(await self.redis.hincrby(self._account_key(employee_id), "failed_attempts", 1))

    async def update_lockout(
        self, employee_id: str, failed_attempts: int, locked_until: Optional[datetime]
    ) -> None:
        key = self._account_key(employee_id)
        pipe = self.redis.pipeline(transaction=True)
        if locked_until is None:
            pipe.hset(key, "failed_attempts", str(failed_attempts))
            pipe.hdel(key, "locked_until")
        else:
            pipe.hset(
                key,
                mapping={
                    "failed_attempts": str(failed_attempts),
                    "locked_until": locked_until.isoformat(),
                },
            )
        await pipe.execute()

    async def compare_and_set_session(
        self,
        employee_id: str,
        expected_token: Optional[str],
        token: Optional[str],
        terminal: Optional[str],
        last_activity: Optional[datetime],
    ) -> bool:
        keys = [self._account_key(employee_id)]
        if expected_token:
            keys.append(self._token_key(expected_token))
        if token:
            keys.append(self._token_key(token))

        result = await self.redis.eval(
            _CAS_SESSION_SCRIPT,
            len(keys),
            *keys,
            expected_token or "",
            token or "",
            terminal or "",
            last_activity.isoformat() if last_activity else "",
            employee_id,
        )
        return int(result) == 1

    async def touch(self, token: str, last_activity: datetime) -> bool:
        """
        Refresh last_activity for the account holding token.

        The index only routes to the account; the script re-checks the
        account's own token before writing.
        """
        employee_id = await self.redis.get(self._token_key(token)) if token else None
        if not employee_id:
            return False

        result = await self.redis.eval(
            _TOUCH_SCRIPT,
            1,
            self._account_key(employee_id),
            token,
            last_activity.isoformat(),
        )
        return int(result) == 1
