from datetime import datetime, timedelta
from typing import Optional

from ..storage import Account

DEFAULT_WINDOW = timedelta(minutes=6)


class LivenessCheck:
    """
    Derive session liveness from heartbeat recency.

    Nothing is stored: a terminal that crashes without logging out simply
    stops heartbeating and its session reads as dead one window later.
    """

    def __init__(self, window: Optional[timedelta] = None):
        self.window = window or DEFAULT_WINDOW

    def is_alive(self, account: Account, now: datetime) -> bool:
        if account.last_activity is None:
            return False
        return now - account.last_activity <= self.window
