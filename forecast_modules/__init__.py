"""
Forecast Modules.

Thin orchestration layers over the forecast kernel and engines.
Each module contains:
- Domain models (the nouns, frozen dataclasses)
- ORM persistence companions where state is stored
- A service or session facade that delegates arithmetic to the engines

Modules:
- Payroll: Forecast employee rows, payroll settings, monthly payroll summary
- CFO: Step-by-step forecast session (goals, baseline, team, investments)

Actual calculation logic lives in ``forecast_engines``.
"""

from forecast_modules import cfo, payroll

__all__ = [
    "cfo",
    "payroll",
]
