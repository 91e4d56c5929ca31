"""
Injectable time source.

Services that stamp a time (history ``occurred_at``) or default a date (the
paid date of a salary payment) take a Clock instead of calling
``datetime.now()``, so tests can pin the current instant.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """``now()`` is always timezone-aware; ``today()`` is the UTC date."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().astimezone(timezone.utc).date()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock frozen at ``fixed_time`` (default 2025-03-31 12:00 UTC) until
    ``advance()`` moves it forward.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or datetime(2025, 3, 31, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta = timedelta(seconds=1)) -> datetime:
        self._now += delta
        return self._now
