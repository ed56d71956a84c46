"""
Payroll ORM Persistence Models (``forecast_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models that persist forecasts' payroll settings and
    P&L line mapping, forecast employee rows, the stored monthly payroll
    summary, and the forecast P&L lines.  Each
    model provides ``to_dto()`` / ``from_dto()`` conversion to the frozen
    dataclasses used by the engines and the service.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK, auto-generated), created_at, updated_at,
    created_by_id (NOT NULL UUID), updated_by_id (nullable UUID).

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - Employment dates stored as their "YYYY-MM" / "YYYY-MM-DD" key text.
    - Summary and P&L line month maps use the DecimalMonthMap column type (JSON with
      decimal-string values), so no float conversion happens in the store.
    - At most one payroll summary row per forecast.
    - The forecast's payroll -> P&L line mapping holds plain line ids
      without an FK constraint; the service clears a mapping entry when
      its line is deleted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from forecast_kernel.db.base import DecimalMonthMap, TrackedBase


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _to_uuid(value: str | UUID | None) -> UUID | None:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(value)


def _to_str(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


# ---------------------------------------------------------------------------
# FinancialForecastModel
# ---------------------------------------------------------------------------

class FinancialForecastModel(TrackedBase):
    """
    ORM model for a financial forecast -- the owner of payroll settings.

    Contract:
        Payroll settings live on the forecast and are shared by every
        employee row of that forecast.  ``superannuation_rate`` is a
        percentage (11.5 means 11.5%).
    """

    __tablename__ = "financial_forecasts"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    payroll_frequency: Mapped[str] = mapped_column(String(50), nullable=False, default="fortnightly")
    pay_day: Mapped[str | None] = mapped_column(String(20), nullable=True, default="friday")
    superannuation_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("11.5"))

    # Payroll -> P&L line mapping; plain ids, cleared when the line is deleted
    wages_opex_pl_line_id: Mapped[UUID | None] = mapped_column(nullable=True)
    wages_cogs_pl_line_id: Mapped[UUID | None] = mapped_column(nullable=True)
    super_opex_pl_line_id: Mapped[UUID | None] = mapped_column(nullable=True)
    super_cogs_pl_line_id: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_financial_forecast_fiscal_year", "fiscal_year"),
    )

    def to_settings(self):
        from forecast_modules.payroll.models import PayrollSettings
        return PayrollSettings(
            frequency=self.payroll_frequency,
            pay_day=self.pay_day,
            superannuation_rate=self.superannuation_rate,
        )

    def apply_settings(self, settings, updated_by_id: UUID | None = None) -> None:
        self.payroll_frequency = _enum_value(settings.frequency)
        self.pay_day = _enum_value(settings.pay_day) if settings.pay_day else None
        self.superannuation_rate = settings.superannuation_rate
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def to_pl_mapping(self):
        from forecast_modules.payroll.models import PayrollPLMapping
        return PayrollPLMapping(
            wages_opex_line_id=_to_str(self.wages_opex_pl_line_id),
            wages_cogs_line_id=_to_str(self.wages_cogs_pl_line_id),
            super_opex_line_id=_to_str(self.super_opex_pl_line_id),
            super_cogs_line_id=_to_str(self.super_cogs_pl_line_id),
        )

    def apply_pl_mapping(self, mapping, updated_by_id: UUID | None = None) -> None:
        self.wages_opex_pl_line_id = _to_uuid(mapping.wages_opex_line_id)
        self.wages_cogs_pl_line_id = _to_uuid(mapping.wages_cogs_line_id)
        self.super_opex_pl_line_id = _to_uuid(mapping.super_opex_line_id)
        self.super_cogs_pl_line_id = _to_uuid(mapping.super_cogs_line_id)
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return f"<FinancialForecastModel {self.name} FY{self.fiscal_year}>"


# ---------------------------------------------------------------------------
# ForecastEmployeeModel
# ---------------------------------------------------------------------------

class ForecastEmployeeModel(TrackedBase):
    """
    ORM model for ``ForecastEmployee`` -- one wage row of a forecast.

    Contract:
        Derived columns (pay/super/PAYG per period, monthly cost) are
        written only from a recalculated ``ForecastEmployee``.  Rows load
        in ``sort_order``.
    """

    __tablename__ = "forecast_employees"

    forecast_id: Mapped[UUID] = mapped_column(
        ForeignKey("financial_forecasts.id", ondelete="CASCADE"), nullable=False,
    )
    employee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[str | None] = mapped_column(String(200), nullable=True)
    classification: Mapped[str] = mapped_column(String(50), nullable=False, default="opex")
    start_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(10), nullable=True)

    annual_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    standard_hours_per_week: Mapped[Decimal | None] = mapped_column(nullable=True)

    pay_per_period: Mapped[Decimal | None] = mapped_column(nullable=True)
    super_per_period: Mapped[Decimal | None] = mapped_column(nullable=True)
    payg_per_period: Mapped[Decimal | None] = mapped_column(nullable=True)
    monthly_cost: Mapped[Decimal | None] = mapped_column(nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("idx_forecast_employee_forecast", "forecast_id", "sort_order"),
        Index("idx_forecast_employee_classification", "classification"),
    )

    def to_dto(self):
        from forecast_engines.payroll import ForecastEmployee, WageClassification
        return ForecastEmployee(
            id=str(self.id),
            forecast_id=str(self.forecast_id),
            employee_name=self.employee_name,
            position=self.position,
            classification=WageClassification(self.classification),
            start_date=self.start_date,
            end_date=self.end_date,
            annual_salary=self.annual_salary,
            hourly_rate=self.hourly_rate,
            standard_hours_per_week=self.standard_hours_per_week,
            pay_per_period=self.pay_per_period,
            super_per_period=self.super_per_period,
            payg_per_period=self.payg_per_period,
            monthly_cost=self.monthly_cost,
            is_active=self.is_active,
            sort_order=self.sort_order,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> ForecastEmployeeModel:
        model = cls(
            id=_to_uuid(dto.id) or uuid4(),
            forecast_id=_to_uuid(dto.forecast_id),
            created_by_id=created_by_id,
        )
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto, updated_by_id: UUID | None = None) -> None:
        """Copy every non-identity field from a ``ForecastEmployee``."""
        self.employee_name = dto.employee_name
        self.position = dto.position
        self.classification = _enum_value(dto.classification)
        self.start_date = dto.start_date
        self.end_date = dto.end_date
        self.annual_salary = dto.annual_salary
        self.hourly_rate = dto.hourly_rate
        self.standard_hours_per_week = dto.standard_hours_per_week
        self.pay_per_period = dto.pay_per_period
        self.super_per_period = dto.super_per_period
        self.payg_per_period = dto.payg_per_period
        self.monthly_cost = dto.monthly_cost
        self.is_active = dto.is_active
        self.sort_order = dto.sort_order
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return (
            f"<ForecastEmployeeModel {self.employee_name} "
            f"({self.classification}) {self.annual_salary}>"
        )


# ---------------------------------------------------------------------------
# PayrollSummaryModel
# ---------------------------------------------------------------------------

class PayrollSummaryModel(TrackedBase):
    """
    ORM model for ``PayrollSummary`` -- stored monthly payroll totals.

    Guarantees:
        - One row per forecast (uq_payroll_summary_forecast).
        - Month maps round-trip Decimal values exactly.
    """

    __tablename__ = "forecast_payroll_summaries"

    forecast_id: Mapped[UUID] = mapped_column(
        ForeignKey("financial_forecasts.id", ondelete="CASCADE"), nullable=False,
    )
    pay_runs_per_month: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    wages_opex_monthly: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)
    wages_cogs_monthly: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)
    super_opex_monthly: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)
    super_cogs_monthly: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)
    payg_monthly: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)
    net_wages_monthly: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("forecast_id", name="uq_payroll_summary_forecast"),
    )

    def to_dto(self):
        from forecast_modules.payroll.models import PayrollSummary
        return PayrollSummary(
            id=str(self.id),
            forecast_id=str(self.forecast_id),
            pay_runs_per_month={k: int(v) for k, v in (self.pay_runs_per_month or {}).items()},
            wages_opex_monthly=dict(self.wages_opex_monthly or {}),
            wages_cogs_monthly=dict(self.wages_cogs_monthly or {}),
            super_opex_monthly=dict(self.super_opex_monthly or {}),
            super_cogs_monthly=dict(self.super_cogs_monthly or {}),
            payg_monthly=dict(self.payg_monthly or {}),
            net_wages_monthly=dict(self.net_wages_monthly or {}),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> PayrollSummaryModel:
        model = cls(
            id=_to_uuid(dto.id) or uuid4(),
            forecast_id=_to_uuid(dto.forecast_id),
            created_by_id=created_by_id,
        )
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto, updated_by_id: UUID | None = None) -> None:
        self.pay_runs_per_month = dict(dto.pay_runs_per_month)
        self.wages_opex_monthly = dict(dto.wages_opex_monthly)
        self.wages_cogs_monthly = dict(dto.wages_cogs_monthly)
        self.super_opex_monthly = dict(dto.super_opex_monthly)
        self.super_cogs_monthly = dict(dto.super_cogs_monthly)
        self.payg_monthly = dict(dto.payg_monthly)
        self.net_wages_monthly = dict(dto.net_wages_monthly)
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return f"<PayrollSummaryModel forecast={self.forecast_id}>"


# ---------------------------------------------------------------------------
# PLLineModel
# ---------------------------------------------------------------------------

class PLLineModel(TrackedBase):
    """
    ORM model for ``PLLine`` -- one account line of a forecast P&L.

    Contract:
        Lines load in ``sort_order``.  Payroll-synced lines carry
        ``is_from_payroll`` and have their ``forecast_months`` replaced on
        every sync; ``actual_months`` is never touched by payroll.
    """

    __tablename__ = "forecast_pl_lines"

    forecast_id: Mapped[UUID] = mapped_column(
        ForeignKey("financial_forecasts.id", ondelete="CASCADE"), nullable=False,
    )
    account_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    account_name: Mapped[str] = mapped_column(String(200), nullable=False)
    account_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    account_class: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    subcategory: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    actual_months: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)
    forecast_months: Mapped[dict] = mapped_column(DecimalMonthMap(), nullable=False, default=dict)
    is_from_xero: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_from_payroll: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_manual: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_forecast_pl_line_forecast", "forecast_id", "sort_order"),
    )

    def to_dto(self):
        from forecast_modules.payroll.models import PLLine
        return PLLine(
            id=str(self.id),
            forecast_id=str(self.forecast_id),
            account_code=self.account_code,
            account_name=self.account_name,
            account_type=self.account_type,
            account_class=self.account_class,
            category=self.category,
            subcategory=self.subcategory,
            sort_order=self.sort_order,
            actual_months=dict(self.actual_months or {}),
            forecast_months=dict(self.forecast_months or {}),
            is_from_xero=self.is_from_xero,
            is_from_payroll=self.is_from_payroll,
            is_manual=self.is_manual,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> PLLineModel:
        model = cls(
            id=_to_uuid(dto.id) or uuid4(),
            forecast_id=_to_uuid(dto.forecast_id),
            created_by_id=created_by_id,
        )
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto, updated_by_id: UUID | None = None) -> None:
        self.account_code = dto.account_code
        self.account_name = dto.account_name
        self.account_type = dto.account_type
        self.account_class = dto.account_class
        self.category = dto.category
        self.subcategory = dto.subcategory
        self.sort_order = dto.sort_order or 0
        self.actual_months = dict(dto.actual_months)
        self.forecast_months = dict(dto.forecast_months)
        self.is_from_xero = dto.is_from_xero
        self.is_from_payroll = dto.is_from_payroll
        self.is_manual = dto.is_manual
        self.notes = dto.notes
        if updated_by_id is not None:
            self.updated_by_id = updated_by_id

    def __repr__(self) -> str:
        return f"<PLLineModel {self.account_name} ({self.category})>"
