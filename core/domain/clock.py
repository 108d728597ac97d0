"""
Clocks.

The lifecycle manager never reads the system time directly; it is handed
a clock so expiry decisions can be pinned in tests.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


class Clock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, current: Optional[datetime] = None):
        self._current = current or datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._current

    def advance(self, delta: timedelta) -> datetime:
        """Move the clock forward and return the new time."""
        self._current = self._current + delta
        return self._current

    def set(self, current: datetime) -> None:
        self._current = current
