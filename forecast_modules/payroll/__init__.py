"""
Payroll Module (``forecast_modules.payroll``).

Responsibility
--------------
Persistence glue for forecast payroll: per-forecast payroll settings,
employee wage rows with their derived pay, super and PAYG figures, and
the stored monthly payroll summary, and the forecast P&L lines that
payroll totals are synced into.

Architecture position
---------------------
**Modules layer** -- DTOs, ORM companions, and a service facade.  All
arithmetic is delegated to ``forecast_engines.payroll`` and
``forecast_engines.payroll_summary``.

Failure modes
-------------
* ``ForecastNotFoundError`` / ``EmployeeNotFoundError`` for unknown ids.
* ``PLLineNotFoundError`` when a payroll mapping names a foreign line.
"""

from forecast_modules.payroll.models import (
    PayrollLineType,
    PayrollPLMapping,
    PayrollSettings,
    PayrollSummary,
    PLLine,
)
from forecast_modules.payroll.service import PayrollService

__all__ = [
    "PayrollLineType",
    "PayrollPLMapping",
    "PayrollService",
    "PayrollSettings",
    "PayrollSummary",
    "PLLine",
]
