"""Injectable clock so services never call ``date.today()`` directly."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone


class Clock(ABC):
    """Abstract clock interface."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current timezone-aware time."""
        ...

    def today(self) -> date:
        """Get the current calendar date."""
        return self.now().date()


class SystemClock(Clock):
    """Production clock returning actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return date.today()


class FixedClock(Clock):
    """Clock pinned to a given day, for tests and replays."""

    def __init__(self, fixed: date | datetime):
        if isinstance(fixed, datetime):
            self._fixed = fixed
        else:
            self._fixed = datetime(fixed.year, fixed.month, fixed.day, 12, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._fixed

    def set_date(self, fixed: date) -> None:
        """Move the clock to another day."""
        self._fixed = datetime(fixed.year, fixed.month, fixed.day, 12, tzinfo=timezone.utc)
