import threading
from datetime import datetime, timedelta, timezone
from typing import Optional

from stagefile_db.core.interface.clock_interface import Clock


class SystemClock(Clock):
    """Wall clock returning timezone-aware UTC times."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class SimulatedClock(Clock):
    """
    Clock whose time only changes when told to. Safe to share between threads.

    Attributes:
        _time (datetime): The time returned by now()
        _lock (threading.Lock): Guards _time
    """

    def __init__(self, start: Optional[datetime] = None):
        self._time = start if start is not None else datetime.fromtimestamp(0, timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._time

    def set_time(self, t: datetime) -> None:
        with self._lock:
            self._time = t

    def advance_time(self, delta: timedelta) -> datetime:
        """Move the clock forward by `delta` and return the new time."""
        with self._lock:
            self._time = self._time + delta
            return self._time
