"""
forecast_engines.payroll -- Pay-period, superannuation, PAYG, and monthly cost calculations.

Responsibility:
    Deterministic, side-effect-free conversion between compensation
    representations (annual salary, hourly rate) and period-level cost
    figures (pay per period, super per period, PAYG withholding per period,
    monthly cost), plus month-level activity checks for forecast months.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Reference data (tax scale, super guarantee rate, default hours) arrives
    as a ``PayrollRates`` value built by ``forecast_config.bridges``; the
    engine never reads configuration itself.

Invariants enforced:
    - Derived employee fields are only ever produced by
      ``recalculate_employee`` and are a pure function of the basis fields,
      the pay frequency, and the super rate in effect.
    - Exactly one of {annual salary, hourly rate} is treated as the edited
      source of truth per recalculation, so the two never drift.
    - Decimal-only arithmetic; results are not quantized.

Failure modes:
    - None for numeric input: absent or zero values degrade to zero results,
      and an unrecognized pay frequency yields zero (logged as a warning).
    - InvalidMonthKeyError for malformed month keys or employment dates.

Known approximation:
    ``proration_factor`` works at month granularity.  A month in which the
    employee starts or ends counts as fully worked; day-level proration is
    not implemented and callers depend on the whole-month behaviour.

Usage:
    from forecast_config import get_active_config
    from forecast_config.bridges import build_payroll_rates
    from forecast_engines.payroll import PayrollCalculator, PayFrequency

    calculator = PayrollCalculator(build_payroll_rates(get_active_config()))
    calculator.pay_per_period(Decimal("78000"), PayFrequency.FORTNIGHTLY)
    # Decimal("3000")
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum

from forecast_engines.fiscal import month_index, parse_month_key
from forecast_engines.tracer import traced_engine
from forecast_kernel.logging_config import get_logger

logger = get_logger("engines.payroll")

_ZERO = Decimal("0")
_ONE = Decimal("1")


class PayFrequency(str, Enum):
    """How often employees are paid."""

    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"


class PayDay(str, Enum):
    """Weekday on which weekly/fortnightly pay runs fall."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def weekday(self) -> int:
        """Python weekday index (Monday = 0)."""
        return list(PayDay).index(self)


class WageClassification(str, Enum):
    """Where wage cost lands in the P&L."""

    OPEX = "opex"  # Operating expense (below gross profit)
    COGS = "cogs"  # Cost of goods sold (above gross profit)


class SourceField(str, Enum):
    """Which basis field was edited in a recalculation."""

    ANNUAL_SALARY = "annual_salary"
    HOURLY_RATE = "hourly_rate"


PAY_PERIODS_PER_YEAR: dict[PayFrequency, int] = {
    PayFrequency.WEEKLY: 52,
    PayFrequency.FORTNIGHTLY: 26,
    PayFrequency.MONTHLY: 12,
}

WEEKS_PER_YEAR = Decimal(PAY_PERIODS_PER_YEAR[PayFrequency.WEEKLY])
MONTHS_PER_YEAR = Decimal(PAY_PERIODS_PER_YEAR[PayFrequency.MONTHLY])

DEFAULT_PAY_DAY = PayDay.FRIDAY


@dataclass(frozen=True)
class TaxBracket:
    """
    One band of a progressive income-tax scale.

    Income above ``threshold`` and up to ``max_income`` is taxed at ``rate``
    on top of ``base_tax`` (the tax payable on all lower bands).
    ``max_income`` is None for the top band.
    """

    threshold: Decimal
    max_income: Decimal | None
    rate: Decimal
    base_tax: Decimal = _ZERO

    def contains(self, annual_income: Decimal) -> bool:
        return self.max_income is None or annual_income <= self.max_income

    def tax_for(self, annual_income: Decimal) -> Decimal:
        return (annual_income - self.threshold) * self.rate + self.base_tax


@dataclass(frozen=True)
class TaxScale:
    """Ordered progressive tax brackets for one tax year."""

    tax_year: str
    brackets: tuple[TaxBracket, ...]

    @property
    def tax_free_threshold(self) -> Decimal:
        """Income up to which no tax is payable."""
        if not self.brackets or self.brackets[0].rate != _ZERO:
            return _ZERO
        return self.brackets[0].max_income or _ZERO

    def bracket_for(self, annual_income: Decimal) -> TaxBracket:
        for bracket in self.brackets:
            if bracket.contains(annual_income):
                return bracket
        return self.brackets[-1]

    def annual_tax(self, annual_income: Decimal) -> Decimal:
        if not self.brackets:
            return _ZERO
        return self.bracket_for(annual_income).tax_for(annual_income)


@dataclass(frozen=True)
class PayrollRates:
    """Reference data the payroll calculator runs against."""

    tax_scale: TaxScale
    super_guarantee_rate: Decimal  # As decimal (e.g., 0.12 for 12%)
    default_hours_per_week: Decimal = Decimal("38")


@dataclass(frozen=True)
class ForecastEmployee:
    """
    An employee row in a payroll forecast.

    Basis fields are ``annual_salary`` or ``hourly_rate`` with
    ``standard_hours_per_week``.  The four derived fields are only ever
    written by ``PayrollCalculator.recalculate_employee``.
    Employment dates are "YYYY-MM" (or "YYYY-MM-DD"; the day is ignored).
    """

    employee_name: str
    classification: WageClassification = WageClassification.OPEX
    position: str | None = None
    id: str | None = None
    forecast_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None

    # Basis
    annual_salary: Decimal | None = None
    hourly_rate: Decimal | None = None
    standard_hours_per_week: Decimal | None = None

    # Derived
    pay_per_period: Decimal | None = None
    super_per_period: Decimal | None = None
    payg_per_period: Decimal | None = None
    monthly_cost: Decimal | None = None

    is_active: bool = True
    sort_order: int = 0


def _amount(value: Decimal | int | str | None) -> Decimal:
    """Coerce an optional numeric input to Decimal; absent means zero."""
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def coerce_frequency(frequency: PayFrequency | str | None) -> PayFrequency | None:
    """Resolve a frequency value, or None if it is not recognized."""
    if isinstance(frequency, PayFrequency):
        return frequency
    try:
        return PayFrequency(str(frequency).lower())
    except ValueError:
        logger.warning("pay_frequency_unrecognized", extra={
            "frequency": str(frequency),
        })
        return None


def coerce_pay_day(pay_day: PayDay | str | None) -> PayDay | None:
    """Resolve a pay day; unknown names fall back to Friday."""
    if pay_day is None or isinstance(pay_day, PayDay):
        return pay_day
    try:
        return PayDay(pay_day.lower())
    except ValueError:
        logger.warning("pay_day_unrecognized", extra={
            "pay_day": pay_day,
            "fallback": DEFAULT_PAY_DAY.value,
        })
        return DEFAULT_PAY_DAY


class PayrollCalculator:
    """
    Pure function calculator for payroll cost figures.

    Contract:
        No I/O, no database access, fully deterministic.
        Reference data is supplied once via ``PayrollRates``.
    Guarantees:
        - ``pay_per_period(s, f) * periods_per_year(f) == s`` (up to Decimal
          precision).
        - ``hourly_rate_from_annual`` inverts ``annual_salary_from_hourly``
          for positive hours; returns 0 for zero hours.
        - ``payg_per_period`` is 0 at or below the tax-free threshold and
          annual PAYG is non-decreasing in salary.
        - ``employee_monthly_cost`` is 0 for months outside the employment
          window.
    Non-goals:
        - Day-level proration of partial months.
        - Input validation; that belongs to the form/service layer.
    """

    def __init__(self, rates: PayrollRates):
        self.rates = rates

    @property
    def super_guarantee_rate(self) -> Decimal:
        return self.rates.super_guarantee_rate

    def _super_rate(self, super_rate: Decimal | None) -> Decimal:
        return self.rates.super_guarantee_rate if super_rate is None else _amount(super_rate)

    # ------------------------------------------------------------------
    # Period conversions
    # ------------------------------------------------------------------

    def periods_per_year(self, frequency: PayFrequency | str) -> int:
        """Pay periods per year for a frequency; 0 if unrecognized."""
        resolved = coerce_frequency(frequency)
        return PAY_PERIODS_PER_YEAR[resolved] if resolved else 0

    def pay_per_period(
        self,
        annual_salary: Decimal | None,
        frequency: PayFrequency | str,
    ) -> Decimal:
        """Annual salary divided by the number of pay periods per year."""
        periods = self.periods_per_year(frequency)
        return _amount(annual_salary) / periods if periods else _ZERO

    def annual_salary_from_hourly(
        self,
        hourly_rate: Decimal | None,
        hours_per_week: Decimal | None,
    ) -> Decimal:
        """Hourly rate x standard weekly hours x 52."""
        return _amount(hourly_rate) * _amount(hours_per_week) * WEEKS_PER_YEAR

    def hourly_rate_from_annual(
        self,
        annual_salary: Decimal | None,
        hours_per_week: Decimal | None,
    ) -> Decimal:
        """Annual salary / (standard weekly hours x 52); 0 when hours is 0."""
        hours = _amount(hours_per_week)
        if hours == _ZERO:
            return _ZERO
        return _amount(annual_salary) / (hours * WEEKS_PER_YEAR)

    def pay_per_period_from_hourly(
        self,
        hourly_rate: Decimal | None,
        hours_per_week: Decimal | None,
        frequency: PayFrequency | str,
    ) -> Decimal:
        """Gross pay per period for an hourly employee."""
        weekly_pay = _amount(hourly_rate) * _amount(hours_per_week)
        resolved = coerce_frequency(frequency)
        if resolved is PayFrequency.WEEKLY:
            return weekly_pay
        if resolved is PayFrequency.FORTNIGHTLY:
            return weekly_pay * 2
        if resolved is PayFrequency.MONTHLY:
            return weekly_pay * WEEKS_PER_YEAR / MONTHS_PER_YEAR
        return _ZERO

    # ------------------------------------------------------------------
    # Super, tax, monthly cost
    # ------------------------------------------------------------------

    def super_per_period(
        self,
        pay_per_period: Decimal | None,
        super_rate: Decimal | None = None,
    ) -> Decimal:
        """Superannuation on one period's pay; defaults to the guarantee rate."""
        return _amount(pay_per_period) * self._super_rate(super_rate)

    @traced_engine("payroll", "1.0", fingerprint_fields=("annual_salary",))
    def annual_payg(self, annual_salary: Decimal | None) -> Decimal:
        """
        Annual PAYG withholding from the progressive tax scale.

        Formula: base tax of the bracket + marginal rate x (salary - bracket
        threshold).  Negative salaries fall into the tax-free bracket.
        """
        salary = _amount(annual_salary)
        scale = self.rates.tax_scale
        if not scale.brackets:
            return _ZERO
        bracket = scale.bracket_for(salary)
        tax = bracket.tax_for(salary)
        logger.debug("annual_payg_calculated", extra={
            "annual_salary": str(salary),
            "bracket_threshold": str(bracket.threshold),
            "marginal_rate": str(bracket.rate),
            "annual_tax": str(tax),
        })
        return tax

    def payg_per_period(
        self,
        annual_salary: Decimal | None,
        frequency: PayFrequency | str,
    ) -> Decimal:
        """Annual PAYG divided by pay periods per year; 0 if unrecognized."""
        periods = self.periods_per_year(frequency)
        if not periods:
            return _ZERO
        return self.annual_payg(annual_salary) / periods

    def monthly_cost(
        self,
        annual_salary: Decimal | None,
        super_rate: Decimal | None = None,
    ) -> Decimal:
        """Monthly gross wages plus super: (salary / 12) x (1 + rate)."""
        monthly_salary = _amount(annual_salary) / MONTHS_PER_YEAR
        return monthly_salary + monthly_salary * self._super_rate(super_rate)

    # ------------------------------------------------------------------
    # Employee recalculation
    # ------------------------------------------------------------------

    @traced_engine(
        "payroll", "1.0",
        fingerprint_fields=("employee", "frequency", "super_rate", "changed_field"),
    )
    def recalculate_employee(
        self,
        employee: ForecastEmployee,
        frequency: PayFrequency | str,
        super_rate: Decimal | None = None,
        changed_field: SourceField | str | None = None,
    ) -> ForecastEmployee:
        """
        Recompute every derived field of an employee row.

        ``changed_field`` names the single source of truth for this call:
        ANNUAL_SALARY recomputes the hourly rate from the salary,
        HOURLY_RATE recomputes the salary from the hourly rate.  Standard
        hours fall back to the configured default.  Derived fields are then
        recomputed from the resulting annual salary, or zeroed when no
        salary is set.

        Returns:
            A new ForecastEmployee; the input is not modified.
        """
        source = self._coerce_source(changed_field)
        rate = self._super_rate(super_rate)
        hours = employee.standard_hours_per_week or self.rates.default_hours_per_week

        logger.info("employee_recalculation_started", extra={
            "employee_id": employee.id,
            "changed_field": source.value if source else None,
            "frequency": str(getattr(frequency, "value", frequency)),
            "super_rate": str(rate),
        })

        updated = employee
        if source is SourceField.ANNUAL_SALARY and updated.annual_salary:
            updated = replace(
                updated,
                hourly_rate=self.hourly_rate_from_annual(updated.annual_salary, hours),
            )
        elif source is SourceField.HOURLY_RATE and updated.hourly_rate:
            updated = replace(
                updated,
                annual_salary=self.annual_salary_from_hourly(updated.hourly_rate, hours),
            )

        if updated.annual_salary:
            pay = self.pay_per_period(updated.annual_salary, frequency)
            updated = replace(
                updated,
                pay_per_period=pay,
                super_per_period=self.super_per_period(pay, rate),
                payg_per_period=self.payg_per_period(updated.annual_salary, frequency),
                monthly_cost=self.monthly_cost(updated.annual_salary, rate),
            )
        else:
            updated = replace(
                updated,
                pay_per_period=_ZERO,
                super_per_period=_ZERO,
                payg_per_period=_ZERO,
                monthly_cost=_ZERO,
            )

        logger.info("employee_recalculation_completed", extra={
            "employee_id": employee.id,
            "annual_salary": str(updated.annual_salary),
            "hourly_rate": str(updated.hourly_rate),
            "pay_per_period": str(updated.pay_per_period),
            "monthly_cost": str(updated.monthly_cost),
        })
        return updated

    @staticmethod
    def _coerce_source(changed_field: SourceField | str | None) -> SourceField | None:
        if changed_field is None or isinstance(changed_field, SourceField):
            return changed_field
        try:
            return SourceField(changed_field)
        except ValueError:
            logger.warning("recalculation_source_unrecognized", extra={
                "changed_field": changed_field,
            })
            return None

    # ------------------------------------------------------------------
    # Month-level helpers
    # ------------------------------------------------------------------

    def pay_periods_in_month(
        self,
        month_key: str,
        frequency: PayFrequency | str,
        pay_day: PayDay | str | None = None,
    ) -> int:
        """
        Number of pay runs falling in a calendar month.

        Monthly pay is always one run.  Without a pay day, weekly and
        fortnightly approximate to 4 and 2.  Otherwise the pay-day weekdays
        in the month are counted; fortnightly takes the ceiling of half.
        """
        resolved = coerce_frequency(frequency)
        if resolved is None:
            return 0
        if resolved is PayFrequency.MONTHLY:
            return 1

        day = coerce_pay_day(pay_day)
        if day is None:
            return 4 if resolved is PayFrequency.WEEKLY else 2

        year, month = parse_month_key(month_key)
        weeks = calendar.Calendar().monthdays2calendar(year, month)
        count = sum(
            1
            for week in weeks
            for day_of_month, weekday in week
            if day_of_month and weekday == day.weekday
        )
        return math.ceil(count / 2) if resolved is PayFrequency.FORTNIGHTLY else count

    def proration_factor(
        self,
        month_key: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> Decimal:
        """
        Share of a month the employee is employed: 0 or 1.

        Months before the start month or after the end month return 0.
        Start and end months count as fully worked (month granularity only).
        """
        current = month_index(month_key)
        if start_date and month_index(start_date) > current:
            return _ZERO
        if end_date and month_index(end_date) < current:
            return _ZERO
        return _ONE

    @traced_engine(
        "payroll", "1.0",
        fingerprint_fields=("employee", "month_key", "frequency", "super_rate"),
    )
    def employee_monthly_cost(
        self,
        employee: ForecastEmployee,
        month_key: str,
        frequency: PayFrequency | str,
        pay_day: PayDay | str | None = None,
        super_rate: Decimal | None = None,
    ) -> Decimal:
        """Monthly wages plus super for one month, 0 outside employment."""
        if not employee.annual_salary:
            return _ZERO

        factor = self.proration_factor(month_key, employee.start_date, employee.end_date)
        if factor == _ZERO:
            return _ZERO

        return self.monthly_cost(employee.annual_salary, super_rate) * factor
