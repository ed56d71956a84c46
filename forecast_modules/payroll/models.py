"""
Payroll Domain Models (``forecast_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects for the forecast-level payroll nouns:
the payroll settings shared by every employee row of a forecast, the
stored monthly payroll summary, and the P&L lines payroll totals are
synced into (with the forecast's payroll-to-P&L line mapping).  Employee rows themselves are the engine's
``ForecastEmployee``.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``PayrollService`` and returned to callers.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``superannuation_rate`` is a percentage (11.5 means 11.5%); engines
  receive the fraction through ``PayrollSettings.super_rate``.

Failure modes
-------------
* Construction with a rate outside [0, 100] raises ``ValueError``.
* Construction with an unknown frequency or pay day raises ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum

from forecast_engines.goal_validation import PLCategory, PLLineActuals
from forecast_engines.payroll import DEFAULT_PAY_DAY, PayDay, PayFrequency, WageClassification
from forecast_engines.payroll_summary import MonthlyPayrollTotals
from forecast_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.models")

_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PayrollSettings:
    """Pay frequency, pay day and super rate shared by a forecast's employees."""

    frequency: PayFrequency = PayFrequency.FORTNIGHTLY
    pay_day: PayDay | None = DEFAULT_PAY_DAY
    superannuation_rate: Decimal = Decimal("11.5")

    def __post_init__(self) -> None:
        if not isinstance(self.frequency, PayFrequency):
            object.__setattr__(self, "frequency", PayFrequency(self.frequency))
        if self.pay_day is not None and not isinstance(self.pay_day, PayDay):
            object.__setattr__(self, "pay_day", PayDay(self.pay_day))
        if not Decimal("0") <= self.superannuation_rate <= _HUNDRED:
            raise ValueError(
                f"superannuation_rate must be a percentage in [0, 100], "
                f"got {self.superannuation_rate}"
            )

    @property
    def super_rate(self) -> Decimal:
        """Super rate as a fraction for the engines (11.5 -> 0.115)."""
        return self.superannuation_rate / _HUNDRED

    @property
    def effective_pay_day(self) -> PayDay | None:
        """Pay day applies to weekly and fortnightly pay only."""
        if self.frequency is PayFrequency.MONTHLY:
            return None
        return self.pay_day


@dataclass(frozen=True)
class PayrollSummary:
    """Stored per-month payroll totals for one forecast."""

    forecast_id: str
    pay_runs_per_month: dict[str, int] = field(default_factory=dict)
    wages_opex_monthly: dict[str, Decimal] = field(default_factory=dict)
    wages_cogs_monthly: dict[str, Decimal] = field(default_factory=dict)
    super_opex_monthly: dict[str, Decimal] = field(default_factory=dict)
    super_cogs_monthly: dict[str, Decimal] = field(default_factory=dict)
    payg_monthly: dict[str, Decimal] = field(default_factory=dict)
    net_wages_monthly: dict[str, Decimal] = field(default_factory=dict)
    id: str | None = None

    @classmethod
    def from_totals(cls, forecast_id: str, totals: MonthlyPayrollTotals) -> PayrollSummary:
        return cls(
            forecast_id=forecast_id,
            pay_runs_per_month=dict(totals.pay_runs_per_month),
            wages_opex_monthly=dict(totals.wages_opex_monthly),
            wages_cogs_monthly=dict(totals.wages_cogs_monthly),
            super_opex_monthly=dict(totals.super_opex_monthly),
            super_cogs_monthly=dict(totals.super_cogs_monthly),
            payg_monthly=dict(totals.payg_monthly),
            net_wages_monthly=dict(totals.net_wages_monthly),
        )

    @property
    def superannuation_monthly(self) -> dict[str, Decimal]:
        """Combined opex + cogs super per month."""
        keys = self.super_opex_monthly.keys() | self.super_cogs_monthly.keys()
        return {
            key: self.super_opex_monthly.get(key, Decimal("0"))
            + self.super_cogs_monthly.get(key, Decimal("0"))
            for key in sorted(keys)
        }


class PayrollLineType(str, Enum):
    """Which payroll total a mapped P&L line carries."""

    WAGES_OPEX = "wages_opex"
    WAGES_COGS = "wages_cogs"
    SUPER_OPEX = "super_opex"
    SUPER_COGS = "super_cogs"

    @property
    def totals_field(self) -> str:
        """Name of the matching month map on ``MonthlyPayrollTotals``."""
        return f"{self.value}_monthly"

    @property
    def classification(self) -> WageClassification:
        if self in (PayrollLineType.WAGES_COGS, PayrollLineType.SUPER_COGS):
            return WageClassification.COGS
        return WageClassification.OPEX

    @property
    def category(self) -> PLCategory:
        """P&L section a new line of this type is created in."""
        if self.classification is WageClassification.COGS:
            return PLCategory.COST_OF_SALES
        return PLCategory.OPERATING_EXPENSES


@dataclass(frozen=True)
class PLLine:
    """
    One forecast P&L account line.

    ``actual_months`` holds imported actuals and ``forecast_months`` the
    projected amounts, both keyed by "YYYY-MM".  ``sort_order`` of None
    means "position in the saved list".
    """

    account_name: str
    forecast_id: str | None = None
    id: str | None = None
    account_code: str | None = None
    account_type: str | None = None
    account_class: str | None = None
    category: str | None = None
    subcategory: str | None = None
    sort_order: int | None = None
    actual_months: dict[str, Decimal] = field(default_factory=dict)
    forecast_months: dict[str, Decimal] = field(default_factory=dict)
    is_from_xero: bool = False
    is_from_payroll: bool = False
    is_manual: bool = False
    notes: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.category, PLCategory):
            object.__setattr__(self, "category", self.category.value)

    def to_actuals(self) -> PLLineActuals:
        """The goal validator's view of this line."""
        return PLLineActuals(self.account_name, self.category or "", dict(self.actual_months))


@dataclass(frozen=True)
class PayrollPLMapping:
    """The P&L lines a forecast's payroll totals are written into."""

    wages_opex_line_id: str | None = None
    wages_cogs_line_id: str | None = None
    super_opex_line_id: str | None = None
    super_cogs_line_id: str | None = None

    def line_id_for(self, line_type: PayrollLineType) -> str | None:
        return getattr(self, f"{PayrollLineType(line_type).value}_line_id")

    def with_line(self, line_type: PayrollLineType, line_id: str | None) -> PayrollPLMapping:
        return replace(self, **{f"{PayrollLineType(line_type).value}_line_id": line_id})

    def items(self) -> list[tuple[PayrollLineType, str]]:
        """Mapped (line type, line id) pairs; unmapped types are left out."""
        return [
            (line_type, self.line_id_for(line_type))
            for line_type in PayrollLineType
            if self.line_id_for(line_type)
        ]

    @property
    def is_empty(self) -> bool:
        return not self.items()
