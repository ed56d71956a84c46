"""
Goal Validation Engine - Check annual goals against year-to-date actuals.

Compares revenue / gross-profit / net-profit goals with YTD actuals taken
from P&L lines, reports warnings, proposes adjusted goals, and builds three
comparison scenarios (goals as entered, YTD trajectory, aggressive opex cut).
Pure functions with no I/O - P&L actuals provided as parameters.

Usage:
    from forecast_engines.goal_validation import GoalValidator, PLLineActuals, PLCategory

    result = GoalValidator().validate_goals(
        revenue_goal=Decimal("1000000"),
        gross_profit_goal=Decimal("600000"),
        net_profit_goal=Decimal("150000"),
        pl_lines=[PLLineActuals("Sales", PLCategory.REVENUE, {"2024-07": Decimal("90000")})],
        current_year_month_keys=["2024-07"],
        forecast_month_keys=fiscal_year_months(2025)[1:],
    )
    print(result.is_valid)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from enum import Enum
from typing import Mapping, Sequence

from forecast_engines.tracer import traced_engine
from forecast_kernel.logging_config import get_logger

logger = get_logger("engines.goal_validation")

_ZERO = Decimal("0")

REVENUE_GOAL_BUFFER = Decimal("1.1")  # Suggested goal = YTD revenue + 10%
AGGRESSIVE_OPEX_FACTOR = Decimal("0.7")  # 30% monthly opex reduction


class PLCategory(str, Enum):
    """P&L section a line belongs to."""

    REVENUE = "Revenue"
    COST_OF_SALES = "Cost of Sales"
    OPERATING_EXPENSES = "Operating Expenses"
    OTHER_INCOME = "Other Income"
    OTHER_EXPENSES = "Other Expenses"


class WarningSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class WarningType(str, Enum):
    REVENUE = "revenue"
    OPEX = "opex"
    COGS = "cogs"
    NET_PROFIT = "net_profit"


@dataclass(frozen=True)
class PLLineActuals:
    """A P&L line with actual amounts per month ("YYYY-MM" -> amount)."""

    account_name: str
    category: PLCategory | str
    actual_months: Mapping[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationWarning:
    type: WarningType
    message: str
    severity: WarningSeverity
    ytd: Decimal | None = None
    goal: Decimal | None = None
    difference: Decimal | None = None


@dataclass(frozen=True)
class GoalSuggestion:
    """A proposed change to one or more goals."""

    title: str
    description: str
    revenue_goal: Decimal | None = None
    net_profit_goal: Decimal | None = None


@dataclass(frozen=True)
class RealisticScenario:
    name: str
    description: str
    revenue: Decimal
    gross_profit: Decimal
    opex: Decimal
    net_profit: Decimal
    is_achievable: bool


@dataclass(frozen=True)
class GoalValidationResult:
    """Outcome of a goal validation; valid iff no error-severity warnings."""

    warnings: tuple[ValidationWarning, ...]
    suggestions: tuple[GoalSuggestion, ...]
    scenarios: tuple[RealisticScenario, ...]

    @property
    def is_valid(self) -> bool:
        return not any(w.severity == WarningSeverity.ERROR for w in self.warnings)

    @property
    def errors(self) -> tuple[ValidationWarning, ...]:
        return tuple(w for w in self.warnings if w.severity == WarningSeverity.ERROR)


def _money(value: Decimal) -> str:
    return f"${value:,.0f}"


def _safe_div(numerator: Decimal, denominator: Decimal | int) -> Decimal:
    return numerator / denominator if denominator else _ZERO


class GoalValidator:
    """
    Validate forecast goals against YTD actuals.

    Pure functions - no I/O, no database access.

    Checks:
        - YTD revenue already above the revenue goal (error)
        - YTD opex already above the opex implied by the goals (error)
        - Gross-profit goal above revenue goal (warning)
        - Net-profit goal above gross-profit goal (warning)
    Zero elapsed months or a zero revenue goal degrade to zero averages and
    ratios rather than failing.
    """

    @staticmethod
    def ytd_total(
        pl_lines: Sequence[PLLineActuals],
        category: PLCategory,
        month_keys: Sequence[str],
    ) -> Decimal:
        """Sum of actuals for one P&L category over the given months."""
        total = _ZERO
        for line in pl_lines:
            # Lines outside the known categories (e.g. "Depreciation") are skipped.
            if getattr(line.category, "value", line.category) != category.value:
                continue
            for key in month_keys:
                total += line.actual_months.get(key) or _ZERO
        return total

    @traced_engine(
        "goal_validation", "1.0",
        fingerprint_fields=(
            "revenue_goal", "gross_profit_goal", "net_profit_goal",
            "current_year_month_keys", "forecast_month_keys",
        ),
    )
    def validate_goals(
        self,
        revenue_goal: Decimal,
        gross_profit_goal: Decimal,
        net_profit_goal: Decimal,
        pl_lines: Sequence[PLLineActuals],
        current_year_month_keys: Sequence[str],
        forecast_month_keys: Sequence[str],
    ) -> GoalValidationResult:
        """
        Validate goals and build suggestions and scenarios.

        Args:
            revenue_goal: Annual revenue goal.
            gross_profit_goal: Annual gross-profit goal.
            net_profit_goal: Annual net-profit goal.
            pl_lines: P&L lines carrying monthly actuals.
            current_year_month_keys: Months of the year already elapsed.
            forecast_month_keys: Months of the year still to forecast.

        Returns:
            GoalValidationResult
        """
        t0 = time.monotonic()
        logger.info("goal_validation_started", extra={
            "revenue_goal": str(revenue_goal),
            "gross_profit_goal": str(gross_profit_goal),
            "net_profit_goal": str(net_profit_goal),
            "pl_line_count": len(pl_lines),
            "months_elapsed": len(current_year_month_keys),
            "months_remaining": len(forecast_month_keys),
        })

        warnings: list[ValidationWarning] = []
        suggestions: list[GoalSuggestion] = []

        ytd_revenue = self.ytd_total(pl_lines, PLCategory.REVENUE, current_year_month_keys)
        ytd_cogs = self.ytd_total(pl_lines, PLCategory.COST_OF_SALES, current_year_month_keys)
        ytd_opex = self.ytd_total(pl_lines, PLCategory.OPERATING_EXPENSES, current_year_month_keys)

        implied_opex = gross_profit_goal - net_profit_goal
        months_elapsed = len(current_year_month_keys)
        months_remaining = len(forecast_month_keys)
        avg_monthly_opex = _safe_div(ytd_opex, months_elapsed)

        # 1. Revenue goal already exceeded
        if ytd_revenue > revenue_goal:
            warnings.append(ValidationWarning(
                type=WarningType.REVENUE,
                message=(
                    f"YTD Revenue ({_money(ytd_revenue)}) already exceeds your "
                    f"annual goal ({_money(revenue_goal)})"
                ),
                severity=WarningSeverity.ERROR,
                ytd=ytd_revenue,
                goal=revenue_goal,
                difference=ytd_revenue - revenue_goal,
            ))
            suggestions.append(GoalSuggestion(
                title="Increase Revenue Goal",
                description=(
                    "Your YTD revenue has already exceeded your goal. "
                    "Consider setting a higher target."
                ),
                revenue_goal=(ytd_revenue * REVENUE_GOAL_BUFFER).to_integral_value(ROUND_CEILING),
            ))

        # 2. Opex budget already exhausted
        remaining_opex = implied_opex - ytd_opex
        if remaining_opex < 0:
            warnings.append(ValidationWarning(
                type=WarningType.OPEX,
                message=(
                    f"YTD OpEx ({_money(ytd_opex)}) exceeds your implied budget "
                    f"({_money(implied_opex)})"
                ),
                severity=WarningSeverity.ERROR,
                ytd=ytd_opex,
                goal=implied_opex,
                difference=abs(remaining_opex),
            ))

            realistic_net_profit = gross_profit_goal - (ytd_opex + avg_monthly_opex * months_remaining)
            suggestions.append(GoalSuggestion(
                title="Adjust to YTD Trajectory",
                description=(
                    f"Based on your current OpEx spending rate ({_money(avg_monthly_opex)}/month), "
                    f"a realistic Net Profit would be {_money(realistic_net_profit)}"
                ),
                net_profit_goal=realistic_net_profit.to_integral_value(ROUND_FLOOR),
            ))

            aggressive_opex = ytd_opex + avg_monthly_opex * AGGRESSIVE_OPEX_FACTOR * months_remaining
            aggressive_net_profit = gross_profit_goal - aggressive_opex
            suggestions.append(GoalSuggestion(
                title="Aggressive Cost Cutting",
                description=(
                    "Reduce monthly OpEx by 30% for remaining months to achieve "
                    f"{_money(aggressive_net_profit)} Net Profit"
                ),
                net_profit_goal=aggressive_net_profit.to_integral_value(ROUND_FLOOR),
            ))

        # 3. Goal consistency
        if gross_profit_goal > revenue_goal:
            warnings.append(ValidationWarning(
                type=WarningType.COGS,
                message="Gross Profit goal exceeds the Revenue goal (negative COGS)",
                severity=WarningSeverity.WARNING,
                goal=gross_profit_goal,
                difference=gross_profit_goal - revenue_goal,
            ))
        if net_profit_goal > gross_profit_goal:
            warnings.append(ValidationWarning(
                type=WarningType.NET_PROFIT,
                message="Net Profit goal exceeds the Gross Profit goal (negative OpEx budget)",
                severity=WarningSeverity.WARNING,
                goal=net_profit_goal,
                difference=net_profit_goal - gross_profit_goal,
            ))

        scenarios = self._build_scenarios(
            revenue_goal=revenue_goal,
            gross_profit_goal=gross_profit_goal,
            net_profit_goal=net_profit_goal,
            ytd_opex=ytd_opex,
            avg_monthly_opex=avg_monthly_opex,
            months_remaining=months_remaining,
        )

        result = GoalValidationResult(
            warnings=tuple(warnings),
            suggestions=tuple(suggestions),
            scenarios=scenarios,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("goal_validation_completed", extra={
            "is_valid": result.is_valid,
            "warning_count": len(warnings),
            "suggestion_count": len(suggestions),
            "ytd_revenue": str(ytd_revenue),
            "ytd_cogs": str(ytd_cogs),
            "ytd_opex": str(ytd_opex),
            "duration_ms": duration_ms,
        })
        return result

    def _build_scenarios(
        self,
        revenue_goal: Decimal,
        gross_profit_goal: Decimal,
        net_profit_goal: Decimal,
        ytd_opex: Decimal,
        avg_monthly_opex: Decimal,
        months_remaining: int,
    ) -> tuple[RealisticScenario, ...]:
        """Current goals, YTD trajectory, and 30%-opex-cut scenarios."""
        implied_opex = gross_profit_goal - net_profit_goal
        cogs_ratio = _safe_div(revenue_goal - gross_profit_goal, revenue_goal)

        current = RealisticScenario(
            name="Current Goals",
            description="Your entered goals",
            revenue=revenue_goal,
            gross_profit=gross_profit_goal,
            opex=implied_opex,
            net_profit=net_profit_goal,
            is_achievable=implied_opex - ytd_opex >= 0,
        )

        projected_gp = revenue_goal - revenue_goal * cogs_ratio
        trajectory_opex = ytd_opex + avg_monthly_opex * months_remaining
        trajectory = RealisticScenario(
            name="YTD Trajectory",
            description="If current spending trends continue",
            revenue=revenue_goal,
            gross_profit=projected_gp,
            opex=trajectory_opex,
            net_profit=projected_gp - trajectory_opex,
            is_achievable=True,
        )

        aggressive_opex = ytd_opex + avg_monthly_opex * AGGRESSIVE_OPEX_FACTOR * months_remaining
        aggressive = RealisticScenario(
            name="Aggressive",
            description="30% OpEx reduction for remaining months",
            revenue=revenue_goal,
            gross_profit=projected_gp,
            opex=aggressive_opex,
            net_profit=projected_gp - aggressive_opex,
            is_achievable=True,
        )

        return (current, trajectory, aggressive)
