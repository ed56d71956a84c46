"""
Forecast CFO Domain Models (``forecast_modules.cfo.models``).

Responsibility
--------------
Frozen dataclass value objects for the guided forecast conversation:
the workflow step, conversation messages, and the complete session
state that ``ForecastCalculator`` projects from.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Owned and
replaced wholesale by ``ForecastCFOSession`` on every change.

Invariants enforced
-------------------
* All models are ``frozen=True``; a state change produces a new state.
* Collections are tuples, so a published state can never be mutated.
* Percentages are whole-number percents (35 means 35%).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from forecast_engines.forecast import Baseline, Investment, Targets, TeamPlan


class CFOStep(str, Enum):
    """Steps of the forecast conversation, in order."""

    GOALS = "goals"
    BASELINE = "baseline"
    TEAM = "team"
    INVESTMENTS = "investments"
    REVIEW = "review"


CFO_STEPS: tuple[CFOStep, ...] = tuple(CFOStep)


class MessageRole(str, Enum):
    """Who authored a conversation message."""

    CFO = "cfo"
    USER = "user"
    SYSTEM = "system"


class MessageComponent(str, Enum):
    """Interactive widget attached to a message."""

    TEAM_TABLE = "team-table"
    INVESTMENT_CARDS = "investment-cards"
    SALARY_SLIDER = "salary-slider"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class CFOMessage:
    """One entry of the forecast conversation."""

    id: str
    role: MessageRole
    content: str
    timestamp: datetime
    component: MessageComponent | None = None
    data: Any = None


@dataclass(frozen=True)
class ForecastCFOState:
    """Everything the forecast conversation knows at one point in time."""

    fiscal_year: int
    step: CFOStep = CFOStep.GOALS
    targets: Targets = field(default_factory=Targets)
    baseline: Baseline = field(default_factory=Baseline)
    team: TeamPlan = field(default_factory=TeamPlan)
    investments: tuple[Investment, ...] = ()
    messages: tuple[CFOMessage, ...] = ()
    is_loading: bool = False
    error: str | None = None
