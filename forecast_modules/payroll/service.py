"""
Payroll Module Service (``forecast_modules.payroll.service``).

Responsibility
--------------
Orchestrates forecast payroll persistence -- payroll settings, employee
rows, the stored monthly payroll summary, and the P&L lines fed by
payroll totals -- by delegating every figure to ``PayrollCalculator`` / ``PayrollSummaryCalculator`` and
storing the results through SQLAlchemy.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``PayrollService`` is the sole public
entry point for payroll persistence.  It composes the stateless engines
with a caller-owned ``Session``.

Invariants enforced
-------------------
* Each public method owns the transaction boundary (``commit`` on
  success, ``rollback`` and re-raise on any exception).
* Derived employee fields are written only from
  ``PayrollCalculator.recalculate_employee`` output, using the owning
  forecast's frequency and super rate.
* Changing payroll settings recalculates and re-persists every employee
  row of the forecast in the same transaction.
* A payroll-to-P&L mapping only names lines of the same forecast; deleting
  a mapped line clears its mapping entry.
* Syncing replaces ``forecast_months`` of mapped lines only; actuals and
  unmapped lines are left alone.

Failure modes
-------------
* Unknown forecast id  -> ``ForecastNotFoundError``; session rolled back.
* Unknown employee id on delete  -> ``EmployeeNotFoundError``.
* Employee without ``forecast_id``  -> ``ValueError``.
* Mapping to a line of another forecast  -> ``PLLineNotFoundError``.
* Unexpected exception  -> session rolled back, exception re-raised.

Usage::

    service = PayrollService.from_config(session, clock=clock)
    forecast_id = service.create_forecast("FY26 Budget", 2026, actor_id)
    saved = service.save_employee(
        ForecastEmployee(employee_name="Alex", forecast_id=forecast_id,
                         annual_salary=Decimal("78000")),
        actor_id=actor_id,
        changed_field=SourceField.ANNUAL_SALARY,
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from forecast_config import get_active_config
from forecast_config.bridges import build_payroll_calculator, build_payroll_summary_calculator
from forecast_config.schema import PayrollConfigSet, PayrollDefaults
from forecast_engines.fiscal import forecast_periods
from forecast_engines.payroll import (
    ForecastEmployee,
    PayrollCalculator,
    SourceField,
)
from forecast_engines.payroll_summary import MonthlyPayrollTotals, PayrollSummaryCalculator
from forecast_kernel.domain.clock import Clock, SystemClock
from forecast_kernel.exceptions import (
    EmployeeNotFoundError,
    ForecastNotFoundError,
    PLLineNotFoundError,
)
from forecast_kernel.logging_config import LogContext, get_logger
from forecast_modules.payroll.models import (
    PayrollLineType,
    PayrollPLMapping,
    PayrollSettings,
    PayrollSummary,
    PLLine,
)
from forecast_modules.payroll.orm import (
    FinancialForecastModel,
    ForecastEmployeeModel,
    PayrollSummaryModel,
    PLLineModel,
)

logger = get_logger("modules.payroll.service")


class PayrollService:
    """
    Persists forecast payroll through the payroll engines.

    Contract
    --------
    * Reads return frozen DTOs (``PayrollSettings``, ``ForecastEmployee``,
      ``PayrollSummary``, ``PLLine``); ORM objects never leave the service.
    * Session is committed by every public method on success; otherwise
      rolled back and the exception re-raised.

    Non-goals
    ---------
    * Debounced or optimistic saving; callers decide when to save.
    * Syncing employees from an external payroll system.
    """

    def __init__(
        self,
        session: Session,
        calculator: PayrollCalculator,
        clock: Clock | None = None,
        summary_calculator: PayrollSummaryCalculator | None = None,
        payroll_defaults: PayrollDefaults | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._calculator = calculator
        self._summary = summary_calculator or PayrollSummaryCalculator(calculator)
        self._defaults = payroll_defaults or PayrollDefaults(
            super_guarantee_rate=calculator.super_guarantee_rate,
        )

    @classmethod
    def from_config(
        cls,
        session: Session,
        clock: Clock | None = None,
        config: PayrollConfigSet | None = None,
    ) -> PayrollService:
        """Build a service from the config set effective on the clock's date."""
        clock = clock or SystemClock()
        config = config or get_active_config(as_of=clock.today())
        return cls(
            session,
            build_payroll_calculator(config),
            clock=clock,
            summary_calculator=build_payroll_summary_calculator(config),
            payroll_defaults=config.payroll,
        )

    # =========================================================================
    # Forecasts and settings
    # =========================================================================

    def create_forecast(
        self,
        name: str,
        fiscal_year: int,
        actor_id: UUID,
        settings: PayrollSettings | None = None,
    ) -> str:
        """Create a forecast with payroll settings; returns its id.

        Without ``settings`` the forecast takes the configured default pay
        frequency, pay day and super guarantee rate.
        """
        if settings is None:
            settings = self.default_settings()
        try:
            forecast = FinancialForecastModel(
                id=uuid4(),
                name=name,
                fiscal_year=fiscal_year,
                created_by_id=actor_id,
            )
            forecast.apply_settings(settings)
            self._session.add(forecast)
            self._session.commit()

            logger.info("forecast_created", extra={
                "forecast_id": str(forecast.id),
                "fiscal_year": fiscal_year,
                "frequency": settings.frequency.value,
                "superannuation_rate": str(settings.superannuation_rate),
                "created_at": self._clock.now().isoformat(),
            })
            return str(forecast.id)

        except Exception:
            self._session.rollback()
            raise

    def default_settings(self) -> PayrollSettings:
        """Settings for a new forecast, from the configured payroll defaults."""
        return PayrollSettings(
            frequency=self._defaults.default_pay_frequency,
            pay_day=self._defaults.default_pay_day or None,
            superannuation_rate=self._defaults.super_guarantee_rate * 100,
        )

    def get_settings(self, forecast_id: str) -> PayrollSettings:
        """Payroll settings of a forecast."""
        try:
            settings = self._get_forecast(forecast_id).to_settings()
            self._session.commit()
            return settings
        except Exception:
            self._session.rollback()
            raise

    def update_settings(
        self,
        forecast_id: str,
        settings: PayrollSettings,
        actor_id: UUID,
    ) -> list[ForecastEmployee]:
        """
        Replace a forecast's payroll settings and recalculate its employees.

        Every employee row is recomputed with the new frequency and super
        rate and persisted in the same transaction as the settings.

        Returns:
            The recalculated employees in ``sort_order``.
        """
        with LogContext.bind(forecast_id=forecast_id, actor_id=actor_id):
            logger.info("payroll_settings_update_started", extra={
                "frequency": settings.frequency.value,
                "pay_day": settings.pay_day.value if settings.pay_day else None,
                "superannuation_rate": str(settings.superannuation_rate),
            })

            try:
                forecast = self._get_forecast(forecast_id)
                forecast.apply_settings(settings, updated_by_id=actor_id)

                recalculated: list[ForecastEmployee] = []
                for row in self._employee_rows(forecast_id):
                    employee = self._recalculate(row.to_dto(), settings)
                    row.update_from_dto(employee, updated_by_id=actor_id)
                    recalculated.append(employee)

                self._session.commit()

                logger.info("payroll_settings_updated", extra={
                    "employees_recalculated": len(recalculated),
                })
                return recalculated

            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Employees
    # =========================================================================

    def load_employees(self, forecast_id: str) -> list[ForecastEmployee]:
        """Employee rows of a forecast, ordered by ``sort_order``."""
        try:
            self._get_forecast(forecast_id)
            employees = [row.to_dto() for row in self._employee_rows(forecast_id)]
            self._session.commit()
            return employees
        except Exception:
            self._session.rollback()
            raise

    def save_employee(
        self,
        employee: ForecastEmployee,
        actor_id: UUID,
        changed_field: SourceField | str | None = None,
    ) -> ForecastEmployee:
        """
        Recalculate and upsert one employee row.

        A row whose id is absent or unknown is inserted; new rows are
        appended after the forecast's existing rows.

        Returns:
            The stored, recalculated employee (with its id).
        """
        if not employee.forecast_id:
            raise ValueError("ForecastEmployee.forecast_id is required to save")

        try:
            forecast = self._get_forecast(employee.forecast_id)
            recalculated = self._recalculate(
                employee, forecast.to_settings(), changed_field=changed_field,
            )

            row = self._session.get(ForecastEmployeeModel, UUID(employee.id)) if employee.id else None
            if row is not None and str(row.forecast_id) != employee.forecast_id:
                raise EmployeeNotFoundError(employee.id)

            if row is None:
                recalculated = replace(
                    recalculated,
                    id=employee.id or str(uuid4()),
                    sort_order=len(self._employee_rows(employee.forecast_id)),
                )
                row = ForecastEmployeeModel.from_dto(recalculated, created_by_id=actor_id)
                self._session.add(row)
                action = "inserted"
            else:
                row.update_from_dto(recalculated, updated_by_id=actor_id)
                action = "updated"

            self._session.commit()

            logger.info("forecast_employee_saved", extra={
                "forecast_id": employee.forecast_id,
                "employee_id": recalculated.id,
                "action": action,
                "annual_salary": str(recalculated.annual_salary),
                "monthly_cost": str(recalculated.monthly_cost),
            })
            return recalculated

        except Exception:
            self._session.rollback()
            raise

    def save_employees(
        self,
        forecast_id: str,
        employees: Sequence[ForecastEmployee],
        actor_id: UUID,
    ) -> list[ForecastEmployee]:
        """
        Replace a forecast's employee set.

        Rows are recalculated and upserted with ``sort_order`` set to their
        position; stored rows missing from ``employees`` are deleted.
        """
        try:
            forecast = self._get_forecast(forecast_id)
            settings = forecast.to_settings()
            existing = {str(row.id): row for row in self._employee_rows(forecast_id)}

            saved: list[ForecastEmployee] = []
            for index, employee in enumerate(employees):
                recalculated = self._recalculate(
                    replace(
                        employee,
                        id=employee.id or str(uuid4()),
                        forecast_id=forecast_id,
                        sort_order=index,
                    ),
                    settings,
                )
                row = existing.pop(recalculated.id, None)
                if row is None:
                    self._session.add(
                        ForecastEmployeeModel.from_dto(recalculated, created_by_id=actor_id)
                    )
                else:
                    row.update_from_dto(recalculated, updated_by_id=actor_id)
                saved.append(recalculated)

            for row in existing.values():
                self._session.delete(row)

            self._session.commit()

            logger.info("forecast_employees_saved", extra={
                "forecast_id": forecast_id,
                "saved_count": len(saved),
                "deleted_count": len(existing),
            })
            return saved

        except Exception:
            self._session.rollback()
            raise

    def delete_employee(self, employee_id: str) -> None:
        """Delete one employee row."""
        try:
            row = self._session.get(ForecastEmployeeModel, UUID(employee_id))
            if row is None:
                raise EmployeeNotFoundError(employee_id)
            forecast_id = str(row.forecast_id)
            self._session.delete(row)
            self._session.commit()

            logger.info("forecast_employee_deleted", extra={
                "forecast_id": forecast_id,
                "employee_id": employee_id,
            })

        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Payroll summary
    # =========================================================================

    def build_summary(
        self,
        forecast_id: str,
        month_keys: Sequence[str] | None = None,
    ) -> PayrollSummary:
        """
        Compute monthly payroll totals for a forecast without storing them.

        ``month_keys`` defaults to the forecast months of the forecast's
        fiscal year as of the clock's date: the whole year before it
        starts, the current month onward while it is running.
        """
        try:
            totals = self._payroll_totals(self._get_forecast(forecast_id), month_keys)
            self._session.commit()
            return PayrollSummary.from_totals(forecast_id, totals)

        except Exception:
            self._session.rollback()
            raise

    def save_summary(self, summary: PayrollSummary, actor_id: UUID) -> PayrollSummary:
        """Upsert the single stored summary row of a forecast."""
        try:
            self._get_forecast(summary.forecast_id)
            row = self._session.scalars(
                select(PayrollSummaryModel).where(
                    PayrollSummaryModel.forecast_id == UUID(summary.forecast_id)
                )
            ).one_or_none()

            if row is None:
                row = PayrollSummaryModel.from_dto(summary, created_by_id=actor_id)
                self._session.add(row)
            else:
                row.update_from_dto(summary, updated_by_id=actor_id)

            self._session.commit()

            logger.info("payroll_summary_saved", extra={
                "forecast_id": summary.forecast_id,
                "summary_id": str(row.id),
                "month_count": len(summary.pay_runs_per_month),
            })
            return row.to_dto()

        except Exception:
            self._session.rollback()
            raise

    def load_summary(self, forecast_id: str) -> PayrollSummary | None:
        """The stored summary of a forecast, or None if never saved."""
        try:
            self._get_forecast(forecast_id)
            row = self._session.scalars(
                select(PayrollSummaryModel).where(
                    PayrollSummaryModel.forecast_id == UUID(forecast_id)
                )
            ).one_or_none()
            summary = row.to_dto() if row is not None else None
            self._session.commit()
            return summary
        except Exception:
            self._session.rollback()
            raise

    def refresh_summary(
        self,
        forecast_id: str,
        actor_id: UUID,
        month_keys: Sequence[str] | None = None,
    ) -> PayrollSummary:
        """Rebuild and store the summary from the current employee rows."""
        return self.save_summary(self.build_summary(forecast_id, month_keys), actor_id)

    # =========================================================================
    # P&L lines
    # =========================================================================

    def load_pl_lines(self, forecast_id: str) -> list[PLLine]:
        """P&L lines of a forecast, ordered by ``sort_order``."""
        try:
            self._get_forecast(forecast_id)
            lines = [row.to_dto() for row in self._pl_line_rows(forecast_id)]
            self._session.commit()
            return lines
        except Exception:
            self._session.rollback()
            raise

    def save_pl_lines(
        self,
        forecast_id: str,
        lines: Sequence[PLLine],
        actor_id: UUID,
    ) -> list[PLLine]:
        """
        Replace a forecast's P&L lines.

        Lines are upserted by id; a line without ``sort_order`` takes its
        list position.  Stored lines missing from ``lines`` are deleted and
        any payroll mapping entry pointing at them is cleared.
        """
        try:
            forecast = self._get_forecast(forecast_id)
            existing = {str(row.id): row for row in self._pl_line_rows(forecast_id)}

            saved: list[PLLine] = []
            for index, line in enumerate(lines):
                line = replace(
                    line,
                    id=line.id or str(uuid4()),
                    forecast_id=forecast_id,
                    sort_order=index if line.sort_order is None else line.sort_order,
                )
                row = existing.pop(line.id, None)
                if row is None:
                    self._session.add(PLLineModel.from_dto(line, created_by_id=actor_id))
                else:
                    row.update_from_dto(line, updated_by_id=actor_id)
                saved.append(line)

            for row in existing.values():
                self._session.delete(row)
            self._clear_mapping(forecast, set(existing), actor_id)

            self._session.commit()

            logger.info("forecast_pl_lines_saved", extra={
                "forecast_id": forecast_id,
                "saved_count": len(saved),
                "deleted_count": len(existing),
            })
            return saved

        except Exception:
            self._session.rollback()
            raise

    def get_pl_mapping(self, forecast_id: str) -> PayrollPLMapping:
        """The P&L lines this forecast's payroll totals are written into."""
        try:
            mapping = self._get_forecast(forecast_id).to_pl_mapping()
            self._session.commit()
            return mapping
        except Exception:
            self._session.rollback()
            raise

    def update_pl_mapping(
        self,
        forecast_id: str,
        mapping: PayrollPLMapping,
        actor_id: UUID,
    ) -> PayrollPLMapping:
        """
        Point payroll totals at P&L lines of the same forecast.

        Raises:
            PLLineNotFoundError: A mapped id is not a line of this forecast.
        """
        try:
            forecast = self._get_forecast(forecast_id)
            line_ids = {str(row.id) for row in self._pl_line_rows(forecast_id)}
            for _, line_id in mapping.items():
                if line_id not in line_ids:
                    raise PLLineNotFoundError(line_id, forecast_id)

            forecast.apply_pl_mapping(mapping, updated_by_id=actor_id)
            self._session.commit()

            logger.info("payroll_pl_mapping_updated", extra={
                "forecast_id": forecast_id,
                "mapped_types": [line_type.value for line_type, _ in mapping.items()],
            })
            return forecast.to_pl_mapping()

        except Exception:
            self._session.rollback()
            raise

    def create_payroll_pl_line(
        self,
        forecast_id: str,
        account_name: str,
        line_type: PayrollLineType | str,
        actor_id: UUID,
        month_keys: Sequence[str] | None = None,
    ) -> PLLine:
        """
        Add a P&L line filled with one payroll total and map it.

        The line goes in the section matching its classification (Operating
        Expenses or Cost of Sales), after the existing lines, with
        ``forecast_months`` set from the current employee rows.
        """
        line_type = PayrollLineType(line_type)
        try:
            forecast = self._get_forecast(forecast_id)
            totals = self._payroll_totals(forecast, month_keys)
            line = PLLine(
                id=str(uuid4()),
                forecast_id=forecast_id,
                account_name=account_name,
                category=line_type.category.value,
                sort_order=len(self._pl_line_rows(forecast_id)),
                forecast_months=dict(getattr(totals, line_type.totals_field)),
                is_from_payroll=True,
            )
            self._session.add(PLLineModel.from_dto(line, created_by_id=actor_id))
            forecast.apply_pl_mapping(
                forecast.to_pl_mapping().with_line(line_type, line.id),
                updated_by_id=actor_id,
            )
            self._session.commit()

            logger.info("payroll_pl_line_created", extra={
                "forecast_id": forecast_id,
                "pl_line_id": line.id,
                "line_type": line_type.value,
                "month_count": len(line.forecast_months),
            })
            return line

        except Exception:
            self._session.rollback()
            raise

    def sync_payroll_to_pl_lines(
        self,
        forecast_id: str,
        actor_id: UUID,
        month_keys: Sequence[str] | None = None,
    ) -> list[PLLine]:
        """
        Write the current payroll totals into the mapped P&L lines.

        Each mapped line's ``forecast_months`` is replaced by its total
        (wages or super, opex or cogs) over ``month_keys``, which default to
        the forecast months as in ``build_summary``.  With no mapping the
        lines are returned unchanged.

        Returns:
            All P&L lines of the forecast after the sync, in ``sort_order``.
        """
        try:
            forecast = self._get_forecast(forecast_id)
            mapping = forecast.to_pl_mapping()
            rows = self._pl_line_rows(forecast_id)

            if mapping.is_empty:
                logger.info("payroll_pl_sync_skipped", extra={
                    "forecast_id": forecast_id,
                    "reason": "no_mapping",
                })
                lines = [row.to_dto() for row in rows]
                self._session.commit()
                return lines

            totals = self._payroll_totals(forecast, month_keys)
            rows_by_id = {str(row.id): row for row in rows}
            synced = 0
            for line_type, line_id in mapping.items():
                row = rows_by_id.get(line_id)
                if row is None:
                    logger.warning("payroll_pl_line_missing", extra={
                        "forecast_id": forecast_id,
                        "pl_line_id": line_id,
                        "line_type": line_type.value,
                    })
                    continue
                row.forecast_months = dict(getattr(totals, line_type.totals_field))
                row.is_from_payroll = True
                row.updated_by_id = actor_id
                synced += 1

            lines = [row.to_dto() for row in rows]
            self._session.commit()

            logger.info("payroll_pl_synced", extra={
                "forecast_id": forecast_id,
                "synced_count": synced,
                "month_count": len(totals.month_keys),
                "total_wages": str(totals.total_wages),
                "total_super": str(totals.total_super),
            })
            return lines

        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_forecast(self, forecast_id: str) -> FinancialForecastModel:
        forecast = self._session.get(FinancialForecastModel, UUID(forecast_id))
        if forecast is None:
            raise ForecastNotFoundError(forecast_id)
        return forecast

    def _employee_rows(self, forecast_id: str) -> list[ForecastEmployeeModel]:
        return list(
            self._session.scalars(
                select(ForecastEmployeeModel)
                .where(ForecastEmployeeModel.forecast_id == UUID(forecast_id))
                .order_by(ForecastEmployeeModel.sort_order)
            )
        )

    def _pl_line_rows(self, forecast_id: str) -> list[PLLineModel]:
        return list(
            self._session.scalars(
                select(PLLineModel)
                .where(PLLineModel.forecast_id == UUID(forecast_id))
                .order_by(PLLineModel.sort_order)
            )
        )

    def _clear_mapping(
        self,
        forecast: FinancialForecastModel,
        deleted_ids: set[str],
        actor_id: UUID,
    ) -> None:
        mapping = forecast.to_pl_mapping()
        for line_type, line_id in mapping.items():
            if line_id in deleted_ids:
                mapping = mapping.with_line(line_type, None)
        forecast.apply_pl_mapping(mapping, updated_by_id=actor_id if deleted_ids else None)

    def _payroll_totals(
        self,
        forecast: FinancialForecastModel,
        month_keys: Sequence[str] | None,
    ) -> MonthlyPayrollTotals:
        settings = forecast.to_settings()
        if month_keys is None:
            periods = forecast_periods(forecast.fiscal_year, self._clock.today())
            month_keys = periods.forecast_month_keys
        employees = [row.to_dto() for row in self._employee_rows(str(forecast.id))]
        return self._summary.summarize(
            employees,
            list(month_keys),
            settings.frequency,
            pay_day=settings.effective_pay_day,
            super_rate=settings.super_rate,
        )

    def _recalculate(
        self,
        employee: ForecastEmployee,
        settings: PayrollSettings,
        changed_field: SourceField | str | None = None,
    ) -> ForecastEmployee:
        return self._calculator.recalculate_employee(
            employee,
            settings.frequency,
            super_rate=settings.super_rate,
            changed_field=changed_field,
        )
