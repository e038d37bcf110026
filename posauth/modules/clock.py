"""Time source shared by the auth modules."""

from datetime import UTC, datetime
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)
