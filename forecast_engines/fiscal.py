"""
forecast_engines.fiscal -- Month keys and the Australian fiscal calendar.

Responsibility:
    Parse and build ``"YYYY-MM"`` month keys, and map months onto the
    Australian financial year (July to June) and its quarters.  Employment
    dates in payroll rows are stored as ``"YYYY-MM"`` or ``"YYYY-MM-DD"``;
    only the year and month are significant.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Conventions:
    - Fiscal year N runs from July of N-1 to June of N (FY2025 = Jul 2024
      to Jun 2025).
    - Q1 = Jul-Sep, Q2 = Oct-Dec, Q3 = Jan-Mar, Q4 = Apr-Jun.
    - A forecast is rolling while "today" falls inside its fiscal year:
      months before the current month are YTD actuals, the current month
      onward is forecast.  Outside the year every month is forecast.
      The baseline is always the prior fiscal year.

Failure modes:
    - InvalidMonthKeyError for keys that are not "YYYY-MM" / "YYYY-MM-DD"
      or whose month is outside 1..12.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from forecast_kernel.exceptions import InvalidMonthKeyError

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")

FISCAL_YEAR_START_MONTH = 7


def parse_month_key(value: str) -> tuple[int, int]:
    """Return ``(year, month)`` for a ``"YYYY-MM"`` or ``"YYYY-MM-DD"`` string."""
    if not isinstance(value, str):
        raise InvalidMonthKeyError(value)
    match = _MONTH_KEY_RE.match(value.strip())
    if match is None:
        raise InvalidMonthKeyError(value)
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidMonthKeyError(value)
    return year, month


def month_key(year: int, month: int) -> str:
    """Build a ``"YYYY-MM"`` key."""
    if not 1 <= month <= 12:
        raise InvalidMonthKeyError(f"{year}-{month}")
    return f"{year:04d}-{month:02d}"


def month_index(value: str) -> int:
    """Monotonic month ordinal, used to compare month keys."""
    year, month = parse_month_key(value)
    return year * 12 + (month - 1)


def fiscal_year_for(value: str) -> int:
    """Fiscal year (by its ending calendar year) containing the month."""
    year, month = parse_month_key(value)
    return year + 1 if month >= FISCAL_YEAR_START_MONTH else year


def fiscal_year_months(fiscal_year: int) -> list[str]:
    """The 12 month keys of a fiscal year, July first."""
    keys = [month_key(fiscal_year - 1, m) for m in range(FISCAL_YEAR_START_MONTH, 13)]
    keys.extend(month_key(fiscal_year, m) for m in range(1, FISCAL_YEAR_START_MONTH))
    return keys


def fiscal_quarter(value: str) -> str:
    """Fiscal quarter label ("Q1".."Q4") for a month key."""
    _, month = parse_month_key(value)
    offset = (month - FISCAL_YEAR_START_MONTH) % 12
    return f"Q{offset // 3 + 1}"


def month_range(start: str, end: str) -> list[str]:
    """Month keys from ``start`` to ``end`` inclusive; empty if ``end`` is earlier."""
    first, last = month_index(start), month_index(end)
    return [month_key(i // 12, i % 12 + 1) for i in range(first, last + 1)]


@dataclass(frozen=True)
class ForecastPeriods:
    """Baseline, YTD-actual and forecast month ranges of one fiscal year."""

    fiscal_year: int
    baseline_start_month: str
    baseline_end_month: str
    actual_start_month: str
    actual_end_month: str
    forecast_start_month: str
    forecast_end_month: str
    is_rolling: bool

    @property
    def baseline_month_keys(self) -> list[str]:
        return month_range(self.baseline_start_month, self.baseline_end_month)

    @property
    def current_year_month_keys(self) -> list[str]:
        """Months of the fiscal year with actuals; empty before the year starts."""
        return month_range(self.actual_start_month, self.actual_end_month)

    @property
    def forecast_month_keys(self) -> list[str]:
        return month_range(self.forecast_start_month, self.forecast_end_month)


def forecast_periods(fiscal_year: int, today: date) -> ForecastPeriods:
    """
    Split a fiscal year into actual and forecast months as seen on ``today``.

    Inside the year the last complete month closes the actuals and the
    current month opens the forecast.  Otherwise the whole year is
    forecast and the actual range is empty (it ends the month before it
    starts).
    """
    start = month_key(fiscal_year - 1, FISCAL_YEAR_START_MONTH)
    end = month_key(fiscal_year, FISCAL_YEAR_START_MONTH - 1)
    baseline_start = month_key(fiscal_year - 2, FISCAL_YEAR_START_MONTH)
    baseline_end = month_key(fiscal_year - 1, FISCAL_YEAR_START_MONTH - 1)

    current = month_key(today.year, today.month)
    is_rolling = fiscal_year_for(current) == fiscal_year

    if is_rolling:
        previous = month_index(current) - 1
        actual_end = month_key(previous // 12, previous % 12 + 1)
        forecast_start = current
    else:
        actual_end = baseline_end
        forecast_start = start

    return ForecastPeriods(
        fiscal_year=fiscal_year,
        baseline_start_month=baseline_start,
        baseline_end_month=baseline_end,
        actual_start_month=start,
        actual_end_month=actual_end,
        forecast_start_month=forecast_start,
        forecast_end_month=end,
        is_rolling=is_rolling,
    )
