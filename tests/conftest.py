"""
Pytest fixtures for the labor wage engine test suite.

Provides:
- In-memory SQLite engine + tables per test (StaticPool, shared connection)
- Sessions, a deterministic clock and the default wage policy
- Seed helpers for projects, contractors, rate profiles, periods and
  attendance
- Structured log capture

Environment Variables:
- DATABASE_URL: optional SQLAlchemy URL; defaults to in-memory SQLite.
"""

import json
import logging
import os
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from labor_config import WagePolicy
from labor_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from labor_kernel.domain.attendance import ScanPunch, WorkType
from labor_kernel.domain.clock import DeterministicClock
from labor_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from labor_kernel.services.attendance_service import AttendanceService
from labor_kernel.services.contractor_service import ContractorService
from labor_kernel.services.scan_service import ScanService
from labor_kernel.services.wage_period_service import WagePeriodService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

PERIOD_START = date(2025, 1, 1)
PERIOD_END = date(2025, 1, 16)


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
    Capture labor_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "wage_calculation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("labor_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", "sqlite:///:memory:")


@pytest.fixture
def engine():
    """Fresh schema per test."""
    eng = init_engine_from_url(get_database_url())
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    s = session_factory()
    yield s
    s.rollback()
    s.close()


# =============================================================================
# Common collaborators
# =============================================================================


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def policy():
    return WagePolicy()


@pytest.fixture
def contractor_service(session, deterministic_clock, policy):
    return ContractorService(session, clock=deterministic_clock, policy=policy)


@pytest.fixture
def period_service(session, deterministic_clock, policy):
    return WagePeriodService(session, clock=deterministic_clock, policy=policy)


@pytest.fixture
def attendance_service(session, deterministic_clock, policy):
    return AttendanceService(session, clock=deterministic_clock, policy=policy)


@pytest.fixture
def scan_service(session, deterministic_clock, policy):
    return ScanService(session, clock=deterministic_clock, policy=policy)


# =============================================================================
# Seed helpers
# =============================================================================


@pytest.fixture
def project_id(contractor_service, test_actor_id):
    return contractor_service.create_project("SITE-01", "Riverside Tower", test_actor_id)


@pytest.fixture
def create_contractor(contractor_service, test_actor_id):
    """Factory: contractor plus (optionally) a rate profile effective at period start."""

    def _create(
        employee_id: str = "100001",
        name: str = "Somchai",
        hourly_rate: Decimal | None = Decimal("320"),
        professional_rate: Decimal = Decimal("120"),
        phone_allowance: Decimal = Decimal("200"),
        follower_count: int = 4,
        effective_date: date = PERIOD_START,
        **profile_fields,
    ):
        contractor = contractor_service.create_contractor(
            employee_id, name, test_actor_id, skill_name="Welder",
        )
        if hourly_rate is not None:
            contractor_service.add_rate_profile(
                contractor.id,
                effective_date,
                test_actor_id,
                hourly_rate=hourly_rate,
                professional_rate=professional_rate,
                phone_allowance=phone_allowance,
                follower_count=follower_count,
                **profile_fields,
            )
        return contractor

    return _create


@pytest.fixture
def draft_period(period_service, project_id, test_actor_id):
    return period_service.create_period(project_id, PERIOD_START, PERIOD_END, test_actor_id)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute))


@pytest.fixture
def record_regular_days(attendance_service, project_id, test_actor_id):
    """Factory: 08:00-17:00 daily reports on ``days`` consecutive days."""

    def _record(contractor_ids, days: int = 10, first_day: date = date(2025, 1, 2)):
        records = []
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            records.extend(
                attendance_service.create_daily_report(
                    list(contractor_ids), project_id, day,
                    at(day, 8), at(day, 17), test_actor_id,
                )
            )
        return records

    return _record


@pytest.fixture
def record_evening_ot(attendance_service, project_id, test_actor_id):
    def _record(contractor_ids, day: date = date(2025, 1, 3)):
        return attendance_service.create_overtime_record(
            list(contractor_ids), project_id, day,
            at(day, 17), at(day, 22), WorkType.OT_EVENING, test_actor_id,
        )

    return _record


@pytest.fixture
def record_punches(scan_service, project_id, test_actor_id):
    def _record(contractor, day: date, *moments: tuple[int, int]):
        punches = [
            ScanPunch(
                contractor_id=contractor.id,
                project_id=project_id,
                employee_id=contractor.employee_id,
                scan_time=at(day, hour, minute),
            )
            for hour, minute in moments
        ]
        return scan_service.record_punches(punches, test_actor_id)

    return _record
