"""
Tests for PeriodCalculationOrchestrator.

Covers:
- End-to-end: 10 regular days + 5h evening OT -> net 35,850.00
- Late deductions and discrepancy flagging from scans
- All-or-nothing failure when a rate profile is missing
- Recalculation guard (force, locked)
- Cancellation, worker timeout and transient retry
"""

import threading
import time
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from labor_config import CalculationPolicy, WagePolicy
from labor_kernel.domain.attendance import DiscrepancyStatus
from labor_kernel.domain.wages import PeriodStatus
from labor_kernel.exceptions import (
    CalculationCancelledError,
    PeriodRecalculationError,
    TransientIOError,
    WageCalculationError,
    WagePeriodNotFoundError,
)
from labor_kernel.selectors.discrepancy_selector import DiscrepancySelector
from labor_kernel.services.discrepancy_service import DiscrepancyService
from labor_kernel.services.wage_period_service import WagePeriodService
from labor_services.period_calculation import (
    PeriodCalculationOrchestrator,
    PeriodLockRegistry,
)

PERIOD_START = date(2025, 1, 1)
PERIOD_END = date(2025, 1, 16)


@pytest.fixture
def orchestrator(session_factory, deterministic_clock, policy):
    return PeriodCalculationOrchestrator(
        session_factory,
        clock=deterministic_clock,
        policy=policy,
        lock_registry=PeriodLockRegistry(),
    )


@pytest.fixture
def somchai(create_contractor):
    return create_contractor("100001", "Somchai")


@pytest.fixture
def standard_period(session, draft_period, somchai, record_regular_days, record_evening_ot):
    """Ten 08:00-17:00 days plus one 17:00-22:00 evening OT, committed."""
    record_regular_days([somchai.id], days=10)
    record_evening_ot([somchai.id])
    session.commit()
    return draft_period


def _reload(session_factory, period_id):
    fresh = session_factory()
    try:
        return WagePeriodService(fresh).get_period(period_id)
    finally:
        fresh.close()


class TestEndToEnd:

    def test_net_wages(self, orchestrator, standard_period, somchai, test_actor_id):
        result = orchestrator.calculate(standard_period.id, test_actor_id)
        period = result.period

        assert period.status is PeriodStatus.CALCULATED
        assert len(period.dc_summaries) == 1
        summary = period.dc_summaries[0]
        assert summary.contractor_id == somchai.id
        assert summary.regular_hours == Decimal("80")
        assert summary.total_ot_hours == Decimal("5")
        assert summary.regular_wages == Decimal("25600")
        assert summary.ot_wages == Decimal("2400")
        assert summary.professional_fees == Decimal("9600")
        assert summary.phone_allowance == Decimal("200")
        assert summary.total_income == Decimal("37800")
        assert summary.follower_accommodation == Decimal("1200")
        assert summary.social_security_deduction == Decimal("750")
        assert summary.net_wages == Decimal("35850")

        assert period.totals.total_regular_hours == Decimal("80")
        assert period.totals.total_ot_hours == Decimal("5")
        assert period.totals.total_gross_wages == Decimal("37800")
        assert period.totals.total_deductions == Decimal("1950")
        assert period.totals.total_net_wages == Decimal("35850")
        assert period.has_unresolved_discrepancies is False
        assert period.calculated_by_id == test_actor_id
        assert result.new_discrepancies == ()

    def test_result_is_committed(
        self, orchestrator, standard_period, session_factory, test_actor_id,
    ):
        orchestrator.calculate(standard_period.id, test_actor_id)
        stored = _reload(session_factory, standard_period.id)
        assert stored.status is PeriodStatus.CALCULATED
        assert stored.version == standard_period.version + 1
        assert stored.totals.total_net_wages == Decimal("35850")
        assert stored.dc_summaries[0].net_wages == Decimal("35850")

    def test_recalculation_is_idempotent(self, orchestrator, standard_period, test_actor_id):
        first = orchestrator.calculate(standard_period.id, test_actor_id).period
        second = orchestrator.calculate(standard_period.id, test_actor_id).period
        assert second.dc_summaries == first.dc_summaries
        assert second.totals == first.totals
        assert second.version == first.version + 1

    def test_empty_period(self, session, orchestrator, draft_period, test_actor_id):
        session.commit()
        period = orchestrator.calculate(draft_period.id, test_actor_id).period
        assert period.status is PeriodStatus.CALCULATED
        assert period.dc_summaries == ()
        assert period.totals.total_net_wages == 0

    def test_records_outside_window_ignored(
        self, session, orchestrator, draft_period, somchai, record_regular_days, test_actor_id,
    ):
        record_regular_days([somchai.id], days=2, first_day=date(2025, 1, 15))
        session.commit()
        summary = orchestrator.calculate(draft_period.id, test_actor_id).period.dc_summaries[0]
        assert summary.regular_hours == Decimal("8")

    def test_line_items_included(
        self, session, orchestrator, standard_period, period_service, somchai, test_actor_id,
    ):
        period_service.add_additional_income(
            standard_period.id, somchai.id, "bonus", Decimal("1000"), test_actor_id,
        )
        period_service.add_additional_expense(
            standard_period.id, somchai.id, "advance", Decimal("500"), test_actor_id,
        )
        session.commit()
        summary = orchestrator.calculate(standard_period.id, test_actor_id).period.dc_summaries[0]
        assert summary.additional_income == Decimal("1000")
        assert summary.additional_expenses == Decimal("500")
        assert summary.net_wages == Decimal("36350")

    def test_logs_lifecycle(self, orchestrator, standard_period, test_actor_id, captured_logs):
        orchestrator.calculate(standard_period.id, test_actor_id)
        logs = captured_logs()
        messages = [r["message"] for r in logs]
        assert "wage_calculation_started" in messages
        completed = [r for r in logs if r["message"] == "wage_calculation_completed"]
        assert Decimal(completed[0]["total_net_wages"]) == Decimal("35850")
        assert completed[0]["period_id"] == str(standard_period.id)
        engines = {r.get("engine_name") for r in logs if r["message"] == "LABOR_ENGINE_TRACE"}
        assert {"time_normalizer", "wage_calculator", "period_aggregator"} <= engines


class TestScans:

    @pytest.fixture
    def late_day(self, session, standard_period, somchai, record_punches):
        record_punches(somchai, date(2025, 1, 2), (10, 0), (17, 0))
        session.commit()
        return standard_period

    def test_late_arrival_and_discrepancy(self, orchestrator, late_day, somchai, test_actor_id):
        result = orchestrator.calculate(late_day.id, test_actor_id)
        summary = result.period.dc_summaries[0]
        assert summary.late_days == 1
        assert summary.late_deductions == Decimal("320")
        assert summary.net_wages == Decimal("35530")

        assert len(result.new_discrepancies) == 1
        assert result.new_discrepancies[0].contractor_id == somchai.id
        assert result.period.has_unresolved_discrepancies is True

    def test_evening_only_day_not_late(
        self, session, orchestrator, standard_period, somchai,
        record_evening_ot, record_punches, test_actor_id,
    ):
        evening_day = date(2025, 1, 13)
        record_evening_ot([somchai.id], day=evening_day)
        record_punches(somchai, evening_day, (17, 0), (22, 0))
        session.commit()

        result = orchestrator.calculate(standard_period.id, test_actor_id)
        summary = result.period.dc_summaries[0]
        assert summary.total_ot_hours == Decimal("10")
        assert summary.late_days == 0
        assert summary.late_deductions == Decimal("0")
        assert result.new_discrepancies == ()

    def test_discrepancy_not_duplicated_on_recalculation(
        self, orchestrator, late_day, test_actor_id,
    ):
        orchestrator.calculate(late_day.id, test_actor_id)
        second = orchestrator.calculate(late_day.id, test_actor_id)
        assert second.new_discrepancies == ()
        assert second.period.has_unresolved_discrepancies is True

    def test_resolving_clears_flag_on_next_pass(
        self, orchestrator, late_day, session_factory, deterministic_clock, test_actor_id,
    ):
        first = orchestrator.calculate(late_day.id, test_actor_id)
        operator = session_factory()
        try:
            DiscrepancyService(operator, clock=deterministic_clock).update_status(
                first.new_discrepancies[0].id, DiscrepancyStatus.RESOLVED, test_actor_id,
            )
            operator.commit()
        finally:
            operator.close()

        second = orchestrator.calculate(late_day.id, test_actor_id)
        assert second.period.has_unresolved_discrepancies is False


class TestFailures:

    def test_missing_rate_profile_fails_whole_pass(
        self, session, orchestrator, standard_period, somchai, create_contractor,
        record_regular_days, record_punches, session_factory, test_actor_id,
    ):
        niran = create_contractor("100002", "Niran", hourly_rate=None)
        record_regular_days([niran.id], days=2)
        record_punches(somchai, date(2025, 1, 2), (10, 0), (17, 0))
        session.commit()

        with pytest.raises(WageCalculationError) as exc_info:
            orchestrator.calculate(standard_period.id, test_actor_id)

        error = exc_info.value
        assert [f.contractor_id for f in error.failures] == [niran.id]
        assert error.failures[0].code == "RATE_PROFILE_NOT_FOUND"
        assert error.succeeded == [str(somchai.id)]

        stored = _reload(session_factory, standard_period.id)
        assert stored.status is PeriodStatus.DRAFT
        assert stored.version == standard_period.version
        assert stored.dc_summaries == ()
        fresh = session_factory()
        try:
            assert DiscrepancySelector(fresh).in_window(
                standard_period.project_id, PERIOD_START, PERIOD_END,
            ) == ()
        finally:
            fresh.close()

    def test_profile_effective_after_period_start(
        self, session, orchestrator, draft_period, create_contractor,
        record_regular_days, test_actor_id,
    ):
        late_hire = create_contractor("100003", "Kittisak", effective_date=date(2025, 1, 5))
        record_regular_days([late_hire.id], days=1, first_day=date(2025, 1, 6))
        session.commit()
        with pytest.raises(WageCalculationError):
            orchestrator.calculate(draft_period.id, test_actor_id)

    def test_unknown_period(self, orchestrator, test_actor_id):
        with pytest.raises(WagePeriodNotFoundError):
            orchestrator.calculate(uuid4(), test_actor_id)


class TestRecalculationGuard:

    def _approve(self, session_factory, deterministic_clock, period_id, actor_id, *steps):
        s = session_factory()
        try:
            service = WagePeriodService(s, clock=deterministic_clock)
            for step in steps:
                getattr(service, step)(period_id, actor_id)
            s.commit()
        finally:
            s.close()

    def test_approved_needs_force(
        self, orchestrator, standard_period, session_factory, deterministic_clock,
        test_actor_id,
    ):
        orchestrator.calculate(standard_period.id, test_actor_id)
        self._approve(
            session_factory, deterministic_clock, standard_period.id, test_actor_id,
            "approve_period",
        )

        with pytest.raises(PeriodRecalculationError):
            orchestrator.calculate(standard_period.id, test_actor_id)

        result = orchestrator.calculate(standard_period.id, test_actor_id, force=True)
        assert result.forced is True
        assert result.period.status is PeriodStatus.CALCULATED
        assert result.period.approved_at is None

    def test_locked_never_recalculated(
        self, orchestrator, standard_period, session_factory, deterministic_clock,
        test_actor_id,
    ):
        orchestrator.calculate(standard_period.id, test_actor_id)
        self._approve(
            session_factory, deterministic_clock, standard_period.id, test_actor_id,
            "approve_period", "mark_paid", "lock_period",
        )
        with pytest.raises(PeriodRecalculationError):
            orchestrator.calculate(standard_period.id, test_actor_id, force=True)
        assert _reload(session_factory, standard_period.id).status is PeriodStatus.LOCKED


class TestPassControl:

    def test_cancelled_before_collect(
        self, orchestrator, standard_period, session_factory, test_actor_id,
    ):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(CalculationCancelledError) as exc_info:
            orchestrator.calculate(standard_period.id, test_actor_id, cancel_event=cancel)
        assert exc_info.value.stage == "collect"
        assert _reload(session_factory, standard_period.id).status is PeriodStatus.DRAFT

    def test_worker_timeout_cancels(
        self, session_factory, deterministic_clock, standard_period, test_actor_id,
        monkeypatch,
    ):
        orchestrator = PeriodCalculationOrchestrator(
            session_factory,
            clock=deterministic_clock,
            policy=WagePolicy(calculation=CalculationPolicy(timeout_seconds=0.05)),
            lock_registry=PeriodLockRegistry(),
        )
        original = orchestrator._summarize

        def slow(inputs, month):
            time.sleep(0.5)
            return original(inputs, month)

        monkeypatch.setattr(orchestrator, "_summarize", slow)
        with pytest.raises(CalculationCancelledError) as exc_info:
            orchestrator.calculate(standard_period.id, test_actor_id)
        assert exc_info.value.stage == "calculate"
        assert _reload(session_factory, standard_period.id).status is PeriodStatus.DRAFT

    def test_transient_collect_failure_retried(
        self, session_factory, deterministic_clock, standard_period, test_actor_id,
        monkeypatch, captured_logs,
    ):
        orchestrator = PeriodCalculationOrchestrator(
            session_factory,
            clock=deterministic_clock,
            policy=WagePolicy(calculation=CalculationPolicy(retry_base_delay_seconds=0.0)),
            lock_registry=PeriodLockRegistry(),
        )
        original = orchestrator._collect
        calls = []

        def flaky(session, period):
            calls.append(period.id)
            if len(calls) == 1:
                raise TransientIOError("collect", "connection reset")
            return original(session, period)

        monkeypatch.setattr(orchestrator, "_collect", flaky)
        result = orchestrator.calculate(standard_period.id, test_actor_id)
        assert len(calls) == 2
        assert result.period.totals.total_net_wages == Decimal("35850")
        assert any(r["message"] == "retry_scheduled" for r in captured_logs())


class TestAuditedRecords:

    def test_soft_deleted_record_excluded(
        self, session, orchestrator, draft_period, somchai, record_regular_days,
        attendance_service, test_actor_id,
    ):
        records = record_regular_days([somchai.id], days=10)
        attendance_service.soft_delete(records[0].record_id, test_actor_id, reason="duplicate")
        session.commit()
        summary = orchestrator.calculate(draft_period.id, test_actor_id).period.dc_summaries[0]
        assert summary.regular_hours == Decimal("72")

    def test_edited_record_used(
        self, session, orchestrator, draft_period, somchai, record_regular_days,
        attendance_service, test_actor_id,
    ):
        records = record_regular_days([somchai.id], days=1)
        attendance_service.update_record(
            records[0].record_id, test_actor_id, reason="left early",
            end_time=records[0].start_time.replace(hour=15),
        )
        session.commit()
        summary = orchestrator.calculate(draft_period.id, test_actor_id).period.dc_summaries[0]
        assert summary.regular_hours == Decimal("6")
