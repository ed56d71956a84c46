"""Database layer: engine and session management, declarative base, shared column types."""

from forecast_kernel.db.base import UUID, Base, DecimalMonthMap, TrackedBase, UUIDString
from forecast_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "DecimalMonthMap",
    "UUID",
]
