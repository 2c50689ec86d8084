"""
Clock -- Source of ``created_at`` for movement records.

Responsibility:
    Domain constructors stamp every MovementRecord with ``clock.now_utc()``
    instead of reading the wall clock, so tests can place records at exact
    points relative to a balance window.

Architecture position:
    Kernel > Domain.  SystemClock is the only place the kernel reads real
    time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

_DEFAULT_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """
    Injected time source.

    Guarantees:
        - ``now()`` is timezone-aware.
        - ``now_utc()`` is ``now()`` converted to UTC.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Manually driven clock for tests and seeding.

    The reading only changes through ``set_time``, ``advance`` or ``tick``,
    so both legs of a transfer and any records created between two
    adjustments share one timestamp.
    """

    def __init__(self, start: datetime | None = None):
        self._current = _DEFAULT_START
        if start is not None:
            self.set_time(start)

    def now(self) -> datetime:
        return self._current

    def set_time(self, when: datetime) -> None:
        if when.tzinfo is None:
            raise ValueError("DeterministicClock requires a timezone-aware datetime")
        self._current = when

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Move forward one second and return the new reading."""
        self.advance(1)
        return self._current
