"""
Module: forecast_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    config bridges and the modules layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import forecast_kernel (logging, exceptions) and sibling
    engine modules.  MUST NOT import forecast_config or forecast_modules.

Invariants enforced:
    - Purity: engines never read the clock or configuration; reference
      data and month keys are passed in explicitly.
    - Decimal-only arithmetic for monetary amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` and emit
    FORECAST_ENGINE_TRACE records with an input fingerprint and duration.

Usage:
    from forecast_engines.payroll import PayrollCalculator, PayFrequency
    from forecast_engines.forecast import ForecastCalculator
    from forecast_engines.payroll_summary import PayrollSummaryCalculator
    from forecast_engines.goal_validation import GoalValidator
"""

from forecast_engines.fiscal import (
    ForecastPeriods,
    fiscal_quarter,
    fiscal_year_for,
    fiscal_year_months,
    forecast_periods,
    month_key,
    month_range,
    parse_month_key,
)
from forecast_engines.forecast import (
    Baseline,
    ForecastCalculations,
    ForecastCalculator,
    Investment,
    InvestmentCategory,
    InvestmentType,
    PlannedHire,
    Targets,
    TeamMember,
    TeamPlan,
)
from forecast_engines.goal_validation import (
    GoalSuggestion,
    GoalValidationResult,
    GoalValidator,
    PLCategory,
    PLLineActuals,
    RealisticScenario,
    ValidationWarning,
)
from forecast_engines.payroll import (
    PAY_PERIODS_PER_YEAR,
    ForecastEmployee,
    PayDay,
    PayFrequency,
    PayrollCalculator,
    PayrollRates,
    SourceField,
    TaxBracket,
    TaxScale,
    WageClassification,
)
from forecast_engines.payroll_summary import (
    MonthlyPayrollTotals,
    PayrollSummaryCalculator,
)
from forecast_engines.tracer import traced_engine

__all__ = [
    # Fiscal calendar
    "ForecastPeriods",
    "fiscal_quarter",
    "fiscal_year_for",
    "fiscal_year_months",
    "forecast_periods",
    "month_key",
    "month_range",
    "parse_month_key",
    # Forecast
    "Baseline",
    "ForecastCalculations",
    "ForecastCalculator",
    "Investment",
    "InvestmentCategory",
    "InvestmentType",
    "PlannedHire",
    "Targets",
    "TeamMember",
    "TeamPlan",
    # Goal validation
    "GoalSuggestion",
    "GoalValidationResult",
    "GoalValidator",
    "PLCategory",
    "PLLineActuals",
    "RealisticScenario",
    "ValidationWarning",
    # Payroll
    "PAY_PERIODS_PER_YEAR",
    "ForecastEmployee",
    "PayDay",
    "PayFrequency",
    "PayrollCalculator",
    "PayrollRates",
    "SourceField",
    "TaxBracket",
    "TaxScale",
    "WageClassification",
    # Payroll summary
    "MonthlyPayrollTotals",
    "PayrollSummaryCalculator",
    # Tracing
    "traced_engine",
]
