"""
Pytest fixtures for the forecast calculation test suite.

Provides:
- Structured logging configured once per session, plus a log capture fixture
- The FY2024-25 configuration set and the calculators built from it
- A deterministic clock and a test actor id
- In-memory SQLite sessions with every module table created

Environment Variables:
- DATABASE_URL: SQLAlchemy URL for the ORM/service tests.
  If not set, an in-memory SQLite database is used.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from forecast_config import get_active_config
from forecast_config.bridges import build_payroll_rates
from forecast_engines.forecast import ForecastCalculator
from forecast_engines.payroll import PayrollCalculator
from forecast_engines.payroll_summary import PayrollSummaryCalculator
from forecast_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from forecast_kernel.domain.clock import DeterministicClock
from forecast_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_DATABASE_URL = "sqlite:///:memory:"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture forecast_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, calculator):
            calculator.recalculate_employee(...)
            logs = captured_logs()
            assert any(r["message"] == "employee_recalculation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("forecast_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration and calculators
# =============================================================================


@pytest.fixture(scope="session")
def fy2025_config():
    """The configuration set effective during FY2024-25."""
    return get_active_config(as_of=date(2025, 3, 1))


@pytest.fixture(scope="session")
def fy2026_config():
    """The configuration set effective during FY2025-26."""
    return get_active_config(as_of=date(2025, 9, 1))


@pytest.fixture
def payroll_rates(fy2025_config):
    return build_payroll_rates(fy2025_config)


@pytest.fixture
def calculator(payroll_rates) -> PayrollCalculator:
    return PayrollCalculator(payroll_rates)


@pytest.fixture
def summary_calculator(calculator) -> PayrollSummaryCalculator:
    return PayrollSummaryCalculator(calculator)


@pytest.fixture
def forecast_calculator() -> ForecastCalculator:
    return ForecastCalculator()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


# =============================================================================
# Database
# =============================================================================


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """A fresh database with every module table; dropped after the test."""
    init_engine_from_url(get_database_url(), echo=False)
    create_tables()
    db_session = get_session()
    try:
        yield db_session
    finally:
        db_session.close()
        drop_tables()
        reset_engine()
