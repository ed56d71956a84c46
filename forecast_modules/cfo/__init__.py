"""
Forecast CFO Module (``forecast_modules.cfo``).

Responsibility
--------------
Guided, step-by-step construction of an annual forecast: revenue and
profit goals, prior-year baseline, team costs, and investments, with the
projected P&L recomputed on every change.

Architecture position
---------------------
**Modules layer** -- an in-memory session over ``ForecastCalculator``.
No persistence and no I/O.
"""

from forecast_modules.cfo.models import (
    CFO_STEPS,
    CFOMessage,
    CFOStep,
    ForecastCFOState,
    MessageComponent,
    MessageRole,
)
from forecast_modules.cfo.session import ForecastCFOSession

__all__ = [
    "CFO_STEPS",
    "CFOMessage",
    "CFOStep",
    "ForecastCFOSession",
    "ForecastCFOState",
    "MessageComponent",
    "MessageRole",
]
