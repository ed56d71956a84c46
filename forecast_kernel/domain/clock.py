"""
Clock -- injectable time source.

Responsibility:
    The one place modules and sessions get "now" from.  Config selection
    uses ``today()`` as its effective date; CFO message timestamps and
    service audit logs use ``now()``.  Engines never see a clock: month
    keys and reference data are passed to them explicitly.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone


class Clock(ABC):
    """Time source returning timezone-aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date of ``now()``; the effective date for config lookups."""
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Fixed clock for tests and reproducible runs.

    Accepts a datetime, or a date (taken as 09:00 UTC that day).  Time only
    moves through ``advance()`` / ``set_time()``.
    """

    _DEFAULT = datetime(2024, 7, 1, 9, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | date | None = None):
        self._current = self._coerce(fixed_time) if fixed_time is not None else self._DEFAULT

    @staticmethod
    def _coerce(value: datetime | date) -> datetime:
        if not isinstance(value, datetime):
            value = datetime.combine(value, time(9, 0))
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def now(self) -> datetime:
        return self._current

    def set_time(self, value: datetime | date) -> None:
        self._current = self._coerce(value)

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)
