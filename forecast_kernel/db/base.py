"""
Module: forecast_kernel.db.base
Responsibility: Declarative base and column types shared by every forecast
    ORM model: UUID keys stored as text, exact-decimal amounts, month-keyed
    amount maps, and the TrackedBase audit columns.
Architecture position: Kernel > DB.  Lowest-level import target for ORM
    models.  MUST NOT import from engines, config, or modules.

Invariants enforced:
    - UUID primary keys: every model inherits a uuid4-generated primary key.
    - Decimal precision: Python Decimal maps to Numeric(38, 9).  Salaries,
      rates and monthly totals are NEVER stored as float.
    - Month maps ("YYYY-MM" -> amount) are stored as JSON objects whose
      values are decimal strings, and load back as Decimal.
    - Audit columns: created_at / updated_at from the database clock,
      created_by_id required, updated_by_id set on edit.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import JSON, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character text form; portable across SQLite and PostgreSQL."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class DecimalMonthMap(TypeDecorator):
    """
    ``dict[str, Decimal]`` keyed by month, stored as a JSON object.

    Values are written with ``str()`` and read with ``Decimal()``, so an
    amount such as 1035.017 comes back digit-for-digit.
    """

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: dict[str, Any] | None, dialect):
        if value is None:
            return None
        return {key: str(amount) for key, amount in value.items()}

    def process_result_value(self, value: dict[str, str] | None, dialect):
        if value is None:
            return {}
        return {key: Decimal(amount) for key, amount in value.items()}


class Base(DeclarativeBase):
    """
    Declarative base for all forecast ORM models.

    ``type_annotation_map``: Decimal -> Numeric(38, 9), datetime ->
    DateTime(timezone=True), UUID -> UUIDString.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Abstract base adding who-and-when audit columns."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[PyUUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(nullable=True)


# Re-export UUID for convenience
UUID = PyUUID
