"""
Forecast CFO Session (``forecast_modules.cfo.session``).

Responsibility
--------------
Holds the state of one guided forecast conversation -- targets, prior-year
baseline, team plan, investments, and the message log -- and exposes the
projected P&L for the current state through ``calculations``.

Architecture position
---------------------
**Modules layer** -- stateful facade over the pure
``ForecastCalculator``.  No persistence; callers store whatever they need
from ``state``.

Invariants enforced
-------------------
* ``state`` is a frozen ``ForecastCFOState``; every operation replaces it.
* ``calculations`` is always derived from the current state, never cached
  across changes.
* Step navigation is clamped at the first and last step.
* Updating or removing an unknown team member, hire or investment id
  leaves the state unchanged.
* Message timestamps come from the injected clock.
* Amount fields given to mutators (revenue, salary, amount, percents)
  are stored as Decimal whatever numeric type the caller passes.

Failure modes
-------------
* Unknown field names in a partial update raise ``TypeError``.
* An unknown step name raises ``ValueError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from decimal import Decimal
from typing import Any
from uuid import uuid4

from forecast_config.schema import ForecastDefaults, PayrollConfigSet
from forecast_engines.forecast import (
    Baseline,
    ForecastCalculations,
    ForecastCalculator,
    Investment,
    PlannedHire,
    Targets,
    TeamMember,
    TeamPlan,
)
from forecast_engines.payroll import WageClassification
from forecast_kernel.domain.clock import Clock, SystemClock
from forecast_kernel.logging_config import get_logger
from forecast_modules.cfo.models import (
    CFO_STEPS,
    CFOMessage,
    CFOStep,
    ForecastCFOState,
    MessageComponent,
    MessageRole,
)

logger = get_logger("modules.cfo.session")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
DEFAULT_POSITION = "Team Member"


def _decimal(value: Any) -> Decimal:
    if value is None:
        return _ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


_AMOUNT_FIELDS = frozenset({
    "revenue", "net_profit", "net_profit_percent",
    "prior_revenue", "cogs_percent", "prior_opex", "opex_inflation",
    "salary", "amount",
})


def _amounts(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of a partial update with every amount field as Decimal."""
    return {
        name: _decimal(value) if name in _AMOUNT_FIELDS else value
        for name, value in fields.items()
    }


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


class ForecastCFOSession:
    """
    Step-by-step forecast builder.

    Contract
    --------
    * Construction yields the initial state: step ``goals``, net profit
      12%, COGS 35%, opex inflation 5%, salary increase 6% (or the values
      of the supplied ``ForecastDefaults``).
    * All mutators return ``None``; read ``state`` or ``calculations``.
    """

    def __init__(
        self,
        fiscal_year: int,
        calculator: ForecastCalculator | None = None,
        clock: Clock | None = None,
        defaults: ForecastDefaults | None = None,
    ):
        self._defaults = defaults or ForecastDefaults()
        self._calculator = calculator or ForecastCalculator(self._defaults.super_loading)
        self._clock = clock or SystemClock()
        self._state = self._initial_state(fiscal_year)

    @classmethod
    def from_config(
        cls,
        fiscal_year: int,
        config: PayrollConfigSet,
        clock: Clock | None = None,
    ) -> ForecastCFOSession:
        """Session whose defaults and super loading come from a config set."""
        return cls(
            fiscal_year,
            calculator=ForecastCalculator(config.forecast.super_loading),
            clock=clock,
            defaults=config.forecast,
        )

    def _initial_state(self, fiscal_year: int) -> ForecastCFOState:
        d = self._defaults
        return ForecastCFOState(
            fiscal_year=fiscal_year,
            targets=Targets(net_profit_percent=d.net_profit_percent),
            baseline=Baseline(
                cogs_percent=d.cogs_percent,
                opex_inflation=d.opex_inflation_percent,
            ),
            team=TeamPlan(salary_increase_percent=d.salary_increase_percent),
        )

    @property
    def state(self) -> ForecastCFOState:
        return self._state

    @property
    def calculations(self) -> ForecastCalculations:
        """Projected P&L for the current state."""
        s = self._state
        return self._calculator.calculate(s.targets, s.baseline, s.team, s.investments)

    def _update(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)

    def _update_team(self, **changes: Any) -> None:
        self._update(team=replace(self._state.team, **changes))

    # =========================================================================
    # Step navigation
    # =========================================================================

    def go_to_step(self, step: CFOStep | str) -> None:
        step = CFOStep(step)
        logger.info("cfo_step_changed", extra={
            "from_step": self._state.step.value,
            "to_step": step.value,
        })
        self._update(step=step)

    def next_step(self) -> None:
        index = CFO_STEPS.index(self._state.step)
        if index < len(CFO_STEPS) - 1:
            self.go_to_step(CFO_STEPS[index + 1])

    def prev_step(self) -> None:
        index = CFO_STEPS.index(self._state.step)
        if index > 0:
            self.go_to_step(CFO_STEPS[index - 1])

    # =========================================================================
    # Messages
    # =========================================================================

    def add_message(
        self,
        role: MessageRole | str,
        content: str,
        component: MessageComponent | str | None = None,
        data: Any = None,
    ) -> CFOMessage:
        """Append a message stamped with a fresh id and the clock's time."""
        message = CFOMessage(
            id=_new_id("msg"),
            role=MessageRole(role),
            content=content,
            timestamp=self._clock.now(),
            component=MessageComponent(component) if component is not None else None,
            data=data,
        )
        self._update(messages=self._state.messages + (message,))
        return message

    # =========================================================================
    # Targets and baseline
    # =========================================================================

    def set_targets(self, **changes: Any) -> None:
        """Partial update of revenue, net_profit or net_profit_percent."""
        self._update(targets=replace(self._state.targets, **_amounts(changes)))

    def set_baseline(self, **changes: Any) -> None:
        """Partial update of prior_revenue, cogs_percent, prior_opex or opex_inflation."""
        self._update(baseline=replace(self._state.baseline, **_amounts(changes)))

    # =========================================================================
    # Team
    # =========================================================================

    def set_team_members(self, members: Iterable[TeamMember]) -> None:
        self._update_team(members=tuple(replace(m, salary=_decimal(m.salary)) for m in members))

    def add_team_member(self, **fields: Any) -> TeamMember:
        member = TeamMember(id=_new_id("member"), **_amounts(fields))
        self._update_team(members=self._state.team.members + (member,))
        return member

    def update_team_member(self, member_id: str, **updates: Any) -> None:
        self._update_team(members=tuple(
            replace(m, **_amounts(updates)) if m.id == member_id else m
            for m in self._state.team.members
        ))

    def remove_team_member(self, member_id: str) -> None:
        self._update_team(members=tuple(
            m for m in self._state.team.members if m.id != member_id
        ))

    def set_salary_increase(self, percent: Decimal) -> None:
        self._update_team(salary_increase_percent=_decimal(percent))

    def add_new_hire(self, **fields: Any) -> PlannedHire:
        hire = PlannedHire(id=_new_id("hire"), **_amounts(fields))
        self._update_team(new_hires=self._state.team.new_hires + (hire,))
        return hire

    def update_new_hire(self, hire_id: str, **updates: Any) -> None:
        self._update_team(new_hires=tuple(
            replace(h, **_amounts(updates)) if h.id == hire_id else h
            for h in self._state.team.new_hires
        ))

    def remove_new_hire(self, hire_id: str) -> None:
        self._update_team(new_hires=tuple(
            h for h in self._state.team.new_hires if h.id != hire_id
        ))

    # =========================================================================
    # Investments
    # =========================================================================

    def add_investment(self, **fields: Any) -> Investment:
        investment = Investment(id=_new_id("inv"), **_amounts(fields))
        self._update(investments=self._state.investments + (investment,))
        return investment

    def update_investment(self, investment_id: str, **updates: Any) -> None:
        self._update(investments=tuple(
            replace(i, **_amounts(updates)) if i.id == investment_id else i
            for i in self._state.investments
        ))

    def remove_investment(self, investment_id: str) -> None:
        self._update(investments=tuple(
            i for i in self._state.investments if i.id != investment_id
        ))

    # =========================================================================
    # Bulk initialisation and status
    # =========================================================================

    def initialize_from_data(
        self,
        goals: Mapping[str, Any] | None = None,
        prior_year: Mapping[str, Any] | None = None,
        team: Iterable[Mapping[str, Any]] | None = None,
    ) -> None:
        """
        Seed the session from stored goals, prior-year actuals and a roster.

        goals: ``revenue_target``, ``profit_target``, ``net_profit_percent``.
            A missing percent falls back to profit / revenue, or the default.
        prior_year: ``revenue``, ``cogs``, ``opex``.  COGS percent is
            cogs / revenue x 100, or the default with no revenue.
        team: dicts with ``name`` and optional ``id``, ``position``,
            ``salary``, ``type``, ``start_date``, ``end_date``,
            ``is_from_xero``.  An empty roster keeps the current members.
        """
        changes: dict[str, Any] = {}

        if goals is not None:
            revenue = _decimal(goals.get("revenue_target"))
            net_profit = _decimal(goals.get("profit_target"))
            percent = _decimal(goals.get("net_profit_percent"))
            if not percent:
                percent = (
                    net_profit / revenue * _HUNDRED
                    if revenue > 0 else self._defaults.net_profit_percent
                )
            changes["targets"] = Targets(
                revenue=revenue, net_profit=net_profit, net_profit_percent=percent,
            )

        if prior_year is not None:
            revenue = _decimal(prior_year.get("revenue"))
            cogs = _decimal(prior_year.get("cogs"))
            changes["baseline"] = Baseline(
                prior_revenue=revenue,
                cogs_percent=(
                    cogs / revenue * _HUNDRED if revenue > 0 else self._defaults.cogs_percent
                ),
                prior_opex=_decimal(prior_year.get("opex")),
                opex_inflation=self._defaults.opex_inflation_percent,
            )

        roster = list(team or ())
        if roster:
            members = tuple(
                TeamMember(
                    id=entry.get("id") or _new_id("member"),
                    name=entry["name"],
                    position=entry.get("position") or DEFAULT_POSITION,
                    salary=_decimal(entry.get("salary")),
                    type=WageClassification(entry.get("type") or WageClassification.OPEX),
                    start_date=entry.get("start_date"),
                    end_date=entry.get("end_date"),
                    is_from_xero=bool(entry.get("is_from_xero", False)),
                )
                for entry in roster
            )
            changes["team"] = replace(self._state.team, members=members)

        self._update(**changes)

        logger.info("cfo_session_initialized", extra={
            "fiscal_year": self._state.fiscal_year,
            "has_goals": goals is not None,
            "has_prior_year": prior_year is not None,
            "member_count": len(self._state.team.members),
        })

    def set_loading(self, is_loading: bool) -> None:
        self._update(is_loading=is_loading)

    def set_error(self, error: str | None) -> None:
        if error:
            logger.warning("cfo_session_error", extra={"error": error})
        self._update(error=error)

    def reset(self) -> None:
        """Return to the initial state for the same fiscal year."""
        self._state = self._initial_state(self._state.fiscal_year)
