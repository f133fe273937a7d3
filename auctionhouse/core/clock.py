"""
Provides the time source used by commands and services.

All times are timezone aware UTC datetimes.
"""
from datetime import datetime, timedelta, UTC
from threading import Lock
from typing import Protocol


class Clock(Protocol):
    """
    Clock
    """

    def now(self) -> datetime:
        """
        :return: current UTC time
        """


class SystemClock:
    """
    Uses the system wall clock
    """

    # pylint: disable=too-few-public-methods

    def now(self) -> datetime:
        return datetime.now(UTC)


class ManualClock:
    """
    Clock that only moves when told to.

    Used to make time driven behavior deterministic, e.g., in tests.
    """

    def __init__(self, now: datetime | None = None):
        self._now = now if now else datetime.now(UTC)
        self._lock = Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, now: datetime) -> None:
        with self._lock:
            self._now = now

    def advance(self, delta: timedelta) -> datetime:
        """
        Moves the clock forward and returns the new time
        """
        with self._lock:
            self._now += delta
            return self._now
