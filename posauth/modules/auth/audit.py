import json
import logging
from datetime import UTC, datetime
from typing import Any, Optional

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

AUDIT_KEY = "auth:audit"
AUDIT_MAX_EVENTS = 10000


class AuditLog:
    """
    Security event trail for logins, lockouts and session changes.

    Events go to a capped Redis list when a client is configured. Audit
    failures are logged and never fail the operation being audited.
    """

    def __init__(self, redis_client: Optional[Any] = None):
        self.redis = redis_client

    async def record(self, event_type: str, data: dict) -> None:
        """
        Log security event for audit.

        Args:
            event_type: Type of security event
            data: Event data (never PINs or full tokens)
        """
        event = {
            "type": event_type,
            "data": data,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        logger.info(f"audit {event_type}: {data}")

        if self.redis is None:
            return

        try:
            await self.redis.lpush(AUDIT_KEY, json.dumps(event))
            await self.redis.ltrim(AUDIT_KEY, 0, AUDIT_MAX_EVENTS - 1)
        except (RedisError, ConnectionError, TimeoutError) as e:
            logger.warning(f"Failed to write audit event {event_type}: {type(e).__name__}: {e}")
