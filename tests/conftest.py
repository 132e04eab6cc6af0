"""
Pytest fixtures for the usage accounting test suite.

Provides:
- Structured logging configured once per session, plus a ``captured_logs``
  fixture returning parsed JSON log records
- An in-memory SQLite database session through the SQLAlchemy adapter
- Deterministic clocks and the default configuration set
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from usage_config import get_active_config, reload_config
from usage_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from usage_kernel.domain.clock import DeterministicClock
from usage_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Fixed evaluation instant shared by most tests.
NOW = datetime(2026, 1, 10, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
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
    Capture usage_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_cost_lines(...)
            logs = captured_logs()
            assert any(r["message"] == "cost_lines_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("usage_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Clock and config fixtures
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(NOW)


@pytest.fixture
def config():
    reload_config()
    yield get_active_config()
    reload_config()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    db_session = get_session()
    try:
        yield db_session
    finally:
        db_session.close()
        drop_tables()
        reset_engine()


@pytest.fixture
def seed(session):
    """
    Insert lookup and usage rows into the test session.

    Usage::

        def test_something(session, seed):
            seed.asset("a1", category="thermal", rate=900)
            seed.log("log-1", "a1", "2026-01-01T00:00:00Z", "2026-01-01T02:00:00Z")
    """
    from usage_kernel.models import (
        AssetCategoryRateModel,
        AssetModel,
        ProjectModel,
        TestProjectModel,
        UsageLogModel,
    )

    class _Seeder:
        def asset(self, asset_id, name=None, category=None, rate=0, status="available"):
            row = AssetModel(
                id=asset_id,
                name=name or asset_id.upper(),
                category=category,
                hourly_rate_cents=rate,
                status=status,
            )
            session.add(row)
            session.flush()
            return row

        def category_rate(self, category, rate):
            row = AssetCategoryRateModel(category=category, hourly_rate_cents=rate)
            session.add(row)
            session.flush()
            return row

        def project(self, project_id, name):
            row = ProjectModel(id=project_id, name=name)
            session.add(row)
            session.flush()
            return row

        def test_project(self, test_project_id, name):
            row = TestProjectModel(id=test_project_id, name=name)
            session.add(row)
            session.flush()
            return row

        def log(self, log_id, asset_id, start, end=None, status="completed", **columns):
            row = UsageLogModel(
                id=log_id,
                asset_id=asset_id,
                start_time=start,
                end_time=end,
                status=status,
                **columns,
            )
            session.add(row)
            session.flush()
            return row

    return _Seeder()
