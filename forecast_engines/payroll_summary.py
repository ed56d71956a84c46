"""
forecast_engines.payroll_summary -- Monthly payroll totals by P&L classification.

Responsibility:
    Roll a forecast's employee rows up into per-month totals that feed the
    P&L and cashflow: wages and superannuation split into opex and cogs,
    PAYG withheld, net wages paid, and the number of pay runs per month.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Delegates every per-employee figure to ``PayrollCalculator``.

Invariants enforced:
    - Every requested month key appears in every output map (zero-filled).
    - Inactive employees and employees without a salary contribute nothing.
    - An employee contributes to a month only while employed in it
      (whole-month granularity, see ``PayrollCalculator.proration_factor``).
    - wages = annual_salary / 12; super = wages x super rate;
      payg = payg_per_period x pay runs in the month; net = wages - payg.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from forecast_engines.payroll import (
    MONTHS_PER_YEAR,
    ForecastEmployee,
    PayDay,
    PayFrequency,
    PayrollCalculator,
    WageClassification,
)
from forecast_engines.tracer import traced_engine
from forecast_kernel.logging_config import get_logger

logger = get_logger("engines.payroll_summary")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class MonthlyPayrollTotals:
    """Per-month payroll totals, keyed by "YYYY-MM"."""

    month_keys: tuple[str, ...]
    pay_runs_per_month: dict[str, int]
    wages_opex_monthly: dict[str, Decimal]
    wages_cogs_monthly: dict[str, Decimal]
    super_opex_monthly: dict[str, Decimal]
    super_cogs_monthly: dict[str, Decimal]
    payg_monthly: dict[str, Decimal]
    net_wages_monthly: dict[str, Decimal]

    @property
    def total_wages(self) -> Decimal:
        return sum(self.wages_opex_monthly.values(), _ZERO) + sum(
            self.wages_cogs_monthly.values(), _ZERO
        )

    @property
    def total_super(self) -> Decimal:
        return sum(self.super_opex_monthly.values(), _ZERO) + sum(
            self.super_cogs_monthly.values(), _ZERO
        )

    def wages_for(self, classification: WageClassification, month_key: str) -> Decimal:
        source = (
            self.wages_cogs_monthly
            if classification == WageClassification.COGS
            else self.wages_opex_monthly
        )
        return source.get(month_key, _ZERO)


class PayrollSummaryCalculator:
    """
    Builds monthly payroll totals from employee rows.

    Contract:
        No I/O, fully deterministic.  Uses the injected PayrollCalculator
        for pay-run counts, PAYG, and employment-window checks.
    """

    def __init__(self, calculator: PayrollCalculator):
        self.calculator = calculator

    @traced_engine(
        "payroll_summary", "1.0",
        fingerprint_fields=("employees", "month_keys", "frequency", "pay_day", "super_rate"),
    )
    def summarize(
        self,
        employees: Sequence[ForecastEmployee],
        month_keys: Sequence[str],
        frequency: PayFrequency | str,
        pay_day: PayDay | str | None = None,
        super_rate: Decimal | None = None,
    ) -> MonthlyPayrollTotals:
        """
        Aggregate payroll cost per month.

        Args:
            employees: Employee rows of one forecast.
            month_keys: Forecast months to total ("YYYY-MM").
            frequency: Pay frequency shared by the forecast.
            pay_day: Pay-run weekday for weekly/fortnightly pay.
            super_rate: Super rate; defaults to the guarantee rate.

        Returns:
            MonthlyPayrollTotals with every month key present.
        """
        t0 = time.monotonic()
        rate = self.calculator.super_guarantee_rate if super_rate is None else super_rate
        keys = tuple(month_keys)

        logger.info("payroll_summary_started", extra={
            "employee_count": len(employees),
            "month_count": len(keys),
            "frequency": str(getattr(frequency, "value", frequency)),
            "super_rate": str(rate),
        })

        pay_runs = {
            key: self.calculator.pay_periods_in_month(key, frequency, pay_day) for key in keys
        }
        wages_opex = dict.fromkeys(keys, _ZERO)
        wages_cogs = dict.fromkeys(keys, _ZERO)
        super_opex = dict.fromkeys(keys, _ZERO)
        super_cogs = dict.fromkeys(keys, _ZERO)
        payg = dict.fromkeys(keys, _ZERO)

        for employee in employees:
            if not employee.is_active or not employee.annual_salary:
                logger.debug("payroll_summary_employee_skipped", extra={
                    "employee_id": employee.id,
                    "is_active": employee.is_active,
                    "has_salary": bool(employee.annual_salary),
                })
                continue

            monthly_wages = employee.annual_salary / MONTHS_PER_YEAR
            monthly_super = monthly_wages * rate
            payg_per_run = self.calculator.payg_per_period(employee.annual_salary, frequency)
            is_cogs = employee.classification == WageClassification.COGS

            for key in keys:
                factor = self.calculator.proration_factor(
                    key, employee.start_date, employee.end_date
                )
                if factor == _ZERO:
                    continue
                if is_cogs:
                    wages_cogs[key] += monthly_wages * factor
                    super_cogs[key] += monthly_super * factor
                else:
                    wages_opex[key] += monthly_wages * factor
                    super_opex[key] += monthly_super * factor
                payg[key] += payg_per_run * pay_runs[key] * factor

        net_wages = {
            key: wages_opex[key] + wages_cogs[key] - payg[key] for key in keys
        }

        result = MonthlyPayrollTotals(
            month_keys=keys,
            pay_runs_per_month=pay_runs,
            wages_opex_monthly=wages_opex,
            wages_cogs_monthly=wages_cogs,
            super_opex_monthly=super_opex,
            super_cogs_monthly=super_cogs,
            payg_monthly=payg,
            net_wages_monthly=net_wages,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("payroll_summary_completed", extra={
            "total_wages": str(result.total_wages),
            "total_super": str(result.total_super),
            "duration_ms": duration_ms,
        })
        return result
