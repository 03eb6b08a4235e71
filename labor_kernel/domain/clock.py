"""
Clock -- injectable time source.

Services stamp calculated_at / approved_at / paid_at / locked_at and
soft-delete times through a Clock; engines never read time at all.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

PINNED_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current time."""


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """Returns ``current`` until moved with ``advance()``."""

    def __init__(self, current: datetime = PINNED_TIME):
        if current.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        """``clock.advance(days=15)``; returns the new time."""
        self.current += timedelta(**delta)
        return self.current
