"""
Clock abstraction.

Everything that needs "now" or "today" receives a Clock so scheduling rules
that compare calendar dates can be exercised deterministically.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Optional


class Clock(ABC):
    """Supplies the current instant (UTC) and calendar day."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant; advance() moves it forward."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, **delta) -> None:
        self._instant = self._instant + timedelta(**delta)


system_clock = SystemClock()


def resolve_clock(clock: Optional[Clock]) -> Clock:
    return clock if clock is not None else system_clock
