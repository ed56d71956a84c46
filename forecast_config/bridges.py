"""
Config -> Engine Bridges.

Functions that convert a validated ``PayrollConfigSet`` into engine
inputs.  These live in forecast_config (the producer) because the engines
must NEVER import forecast_config.

Usage:
    from forecast_config import get_active_config
    from forecast_config.bridges import build_payroll_calculator

    config = get_active_config(as_of=date(2025, 3, 1))
    calculator = build_payroll_calculator(config)
"""

from __future__ import annotations

from forecast_config.schema import PayrollConfigSet
from forecast_engines.forecast import Baseline, ForecastCalculator, TeamPlan
from forecast_engines.payroll import (
    PayrollCalculator,
    PayrollRates,
    TaxBracket,
    TaxScale,
)
from forecast_engines.payroll_summary import PayrollSummaryCalculator


def build_tax_scale(config: PayrollConfigSet) -> TaxScale:
    """Build the engine tax scale from the configured brackets."""
    return TaxScale(
        tax_year=config.tax_year,
        brackets=tuple(
            TaxBracket(
                threshold=b.threshold,
                max_income=b.max_income,
                rate=b.rate,
                base_tax=b.base_tax,
            )
            for b in config.tax_brackets
        ),
    )


def build_payroll_rates(config: PayrollConfigSet) -> PayrollRates:
    """Build the reference data ``PayrollCalculator`` runs against."""
    return PayrollRates(
        tax_scale=build_tax_scale(config),
        super_guarantee_rate=config.payroll.super_guarantee_rate,
        default_hours_per_week=config.payroll.default_hours_per_week,
    )


def build_payroll_calculator(config: PayrollConfigSet) -> PayrollCalculator:
    return PayrollCalculator(build_payroll_rates(config))


def build_payroll_summary_calculator(config: PayrollConfigSet) -> PayrollSummaryCalculator:
    return PayrollSummaryCalculator(build_payroll_calculator(config))


def build_forecast_calculator(config: PayrollConfigSet) -> ForecastCalculator:
    """Build the forecast calculator with the configured super loading."""
    return ForecastCalculator(super_loading=config.forecast.super_loading)


def build_default_baseline(config: PayrollConfigSet) -> Baseline:
    """Empty baseline carrying the configured COGS and inflation assumptions."""
    return Baseline(
        cogs_percent=config.forecast.cogs_percent,
        opex_inflation=config.forecast.opex_inflation_percent,
    )


def build_default_team_plan(config: PayrollConfigSet) -> TeamPlan:
    """Empty team plan carrying the configured salary increase."""
    return TeamPlan(salary_increase_percent=config.forecast.salary_increase_percent)
