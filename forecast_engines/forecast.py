"""
forecast_engines.forecast -- Projected profit-and-loss from targets, baseline, team, and investments.

Responsibility:
    Given a revenue/net-profit target, a prior-year cost baseline, a team
    roster with planned hires, and a list of investments, produce a single
    consistent income-statement projection and a budget-utilization figure.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by ``forecast_modules.cfo.session`` which recomputes on every
    state change.

Algorithm (single pass, no feedback loop):
    1. expense_budget = revenue - net_profit
    2. forecast_cogs = revenue x cogs%;  gross_profit = revenue - forecast_cogs
    3. team cost: existing members x (1 + increase%) x (1 + super);
       planned hires x (1 + super) only.  The opex-classified subset is
       tracked separately from the cogs-classified subset.
    4. opex_cost = prior_opex x (1 + inflation%)
    5. investment_cost = sum of opex-type investments (capex excluded)
    6. total_expenses = forecast_cogs + team_opex_cost + opex_cost + investment_cost;
       projected_profit = revenue - total_expenses
    7. budget_used = total_expenses;  budget_remaining = expense_budget - budget_used;
       is_on_track = projected_profit >= net_profit

Conventions:
    - Percent inputs are whole-number percentages (35 means 35%).
    - The super loading is a decimal fraction (0.12 means 12%).
    - COGS-classified wages do not enter total_expenses; they are assumed
      to be covered by the COGS percentage.

Invariants enforced:
    - expense_budget == revenue - net_profit, regardless of cost inputs.
    - is_on_track iff projected_profit >= net_profit.
    - Ratios whose denominator is not positive are reported as 0.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Sequence

from forecast_engines.payroll import WageClassification
from forecast_engines.tracer import traced_engine
from forecast_kernel.logging_config import get_logger

logger = get_logger("engines.forecast")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

DEFAULT_SUPER_LOADING = Decimal("0.12")


class InvestmentCategory(str, Enum):
    """What an investment is for."""

    MARKETING = "marketing"
    EQUIPMENT = "equipment"
    TECHNOLOGY = "technology"
    TRAINING = "training"
    OTHER = "other"


class InvestmentType(str, Enum):
    """Accounting treatment of an investment."""

    OPEX = "opex"  # Expensed in the current year
    CAPEX = "capex"  # Capitalised; excluded from the current-year P&L


@dataclass(frozen=True)
class Targets:
    """Revenue and net-profit goals for the fiscal year."""

    revenue: Decimal = _ZERO
    net_profit: Decimal = _ZERO
    net_profit_percent: Decimal = Decimal("12")

    @property
    def expense_budget(self) -> Decimal:
        return self.revenue - self.net_profit


@dataclass(frozen=True)
class Baseline:
    """Prior-year cost structure the forecast is built from."""

    prior_revenue: Decimal = _ZERO
    cogs_percent: Decimal = Decimal("35")
    prior_opex: Decimal = _ZERO
    opex_inflation: Decimal = Decimal("5")


@dataclass(frozen=True)
class TeamMember:
    """An existing employee carried into the forecast year."""

    id: str
    name: str
    position: str = "Team Member"
    salary: Decimal = _ZERO
    type: WageClassification = WageClassification.OPEX
    start_date: str | None = None
    end_date: str | None = None
    is_from_xero: bool = False


@dataclass(frozen=True)
class PlannedHire:
    """A new role planned to start during the forecast year."""

    id: str
    name: str
    position: str
    salary: Decimal
    start_month: str
    type: WageClassification = WageClassification.OPEX


@dataclass(frozen=True)
class Investment:
    """A discretionary spend planned for a fiscal quarter."""

    id: str
    name: str
    amount: Decimal
    category: InvestmentCategory = InvestmentCategory.OTHER
    type: InvestmentType = InvestmentType.OPEX
    quarter: str = "Q1"


@dataclass(frozen=True)
class TeamPlan:
    """Team roster plus the assumed salary increase for existing staff."""

    members: tuple[TeamMember, ...] = ()
    salary_increase_percent: Decimal = Decimal("6")
    new_hires: tuple[PlannedHire, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ForecastCalculations:
    """Projected P&L and budget tracking for one forecast state."""

    expense_budget: Decimal
    forecast_cogs: Decimal
    gross_profit: Decimal
    gross_profit_percent: Decimal
    existing_team_cost: Decimal
    new_hires_cost: Decimal
    total_team_cost: Decimal
    team_opex_cost: Decimal
    team_cogs_cost: Decimal
    opex_cost: Decimal
    investment_cost: Decimal
    capex_investment_cost: Decimal
    total_expenses: Decimal
    projected_profit: Decimal
    budget_used: Decimal
    budget_remaining: Decimal
    budget_used_percent: Decimal
    is_on_track: bool
    profit_variance: Decimal


class ForecastCalculator:
    """
    Pure function calculator for the forecast income statement.

    Contract:
        No I/O, fully deterministic.  A fixed super loading is applied to
        all team salaries; percent inputs are whole-number percentages.
    Non-goals:
        - Prorating planned hires by start month; every hire is costed for
          a full year.
        - Iterating towards the profit target; the projection is reported,
          not solved for.
    """

    def __init__(self, super_loading: Decimal = DEFAULT_SUPER_LOADING):
        self.super_loading = super_loading

    def existing_member_cost(self, member: TeamMember, salary_increase_percent: Decimal) -> Decimal:
        """Next-year cost of a current employee: increase then super loading."""
        multiplier = 1 + salary_increase_percent / _HUNDRED
        return member.salary * multiplier * (1 + self.super_loading)

    def new_hire_cost(self, hire: PlannedHire) -> Decimal:
        """Cost of a planned hire: salary plus super loading, no increase."""
        return hire.salary * (1 + self.super_loading)

    @traced_engine(
        "forecast", "1.0",
        fingerprint_fields=("targets", "baseline", "team", "investments"),
    )
    def calculate(
        self,
        targets: Targets,
        baseline: Baseline,
        team: TeamPlan,
        investments: Sequence[Investment] = (),
    ) -> ForecastCalculations:
        """
        Project the income statement for a forecast state.

        Returns:
            ForecastCalculations with every intermediate figure.
        """
        t0 = time.monotonic()
        logger.info("forecast_calculation_started", extra={
            "revenue": str(targets.revenue),
            "net_profit": str(targets.net_profit),
            "member_count": len(team.members),
            "new_hire_count": len(team.new_hires),
            "investment_count": len(investments),
        })

        revenue = targets.revenue
        expense_budget = targets.expense_budget

        forecast_cogs = revenue * (baseline.cogs_percent / _HUNDRED)
        gross_profit = revenue - forecast_cogs
        gross_profit_percent = (gross_profit / revenue) * _HUNDRED if revenue > 0 else _ZERO

        member_costs = [
            (m.type, self.existing_member_cost(m, team.salary_increase_percent))
            for m in team.members
        ]
        hire_costs = [(h.type, self.new_hire_cost(h)) for h in team.new_hires]

        existing_team_cost = sum((cost for _, cost in member_costs), _ZERO)
        new_hires_cost = sum((cost for _, cost in hire_costs), _ZERO)
        total_team_cost = existing_team_cost + new_hires_cost
        team_opex_cost = sum(
            (cost for kind, cost in member_costs + hire_costs if kind == WageClassification.OPEX),
            _ZERO,
        )
        team_cogs_cost = total_team_cost - team_opex_cost

        opex_cost = baseline.prior_opex * (1 + baseline.opex_inflation / _HUNDRED)

        investment_cost = sum(
            (i.amount for i in investments if i.type == InvestmentType.OPEX), _ZERO
        )
        capex_investment_cost = sum(
            (i.amount for i in investments if i.type == InvestmentType.CAPEX), _ZERO
        )

        total_expenses = forecast_cogs + team_opex_cost + opex_cost + investment_cost
        projected_profit = revenue - total_expenses

        budget_used = total_expenses
        budget_remaining = expense_budget - budget_used
        budget_used_percent = (
            (budget_used / expense_budget) * _HUNDRED if expense_budget > 0 else _ZERO
        )

        profit_variance = projected_profit - targets.net_profit
        is_on_track = profit_variance >= 0

        result = ForecastCalculations(
            expense_budget=expense_budget,
            forecast_cogs=forecast_cogs,
            gross_profit=gross_profit,
            gross_profit_percent=gross_profit_percent,
            existing_team_cost=existing_team_cost,
            new_hires_cost=new_hires_cost,
            total_team_cost=total_team_cost,
            team_opex_cost=team_opex_cost,
            team_cogs_cost=team_cogs_cost,
            opex_cost=opex_cost,
            investment_cost=investment_cost,
            capex_investment_cost=capex_investment_cost,
            total_expenses=total_expenses,
            projected_profit=projected_profit,
            budget_used=budget_used,
            budget_remaining=budget_remaining,
            budget_used_percent=budget_used_percent,
            is_on_track=is_on_track,
            profit_variance=profit_variance,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("forecast_calculation_completed", extra={
            "expense_budget": str(expense_budget),
            "total_expenses": str(total_expenses),
            "projected_profit": str(projected_profit),
            "is_on_track": is_on_track,
            "duration_ms": duration_ms,
        })

        return result
