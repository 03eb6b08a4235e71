"""
labor_services.period_calculation -- The wage period calculation pass.

Responsibility:
    Run one calculation pass over a wage period:

        collect -> normalize -> detect -> calculate -> aggregate -> apply

    Inputs are read once (with retry on transient I/O), per-contractor
    summaries are computed concurrently from those in-memory inputs, totals
    are aggregated on the calling thread, and the result is written in a
    single transaction together with any newly detected discrepancies.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  All business
    rules live in ``labor_engines``; persistence lives in the kernel
    services.  Worker threads never touch the database session.

Invariants enforced:
    - At most one pass per period id runs in this process
      (``PeriodLockRegistry``); across processes the period ``version``
      column rejects a stale apply.
    - All-or-nothing: nothing is flushed before the apply stage, and any
      failure rolls the whole transaction back.
    - A contractor with a missing rate profile fails the pass; partial
      totals are never committed.
    - Identical inputs produce identical summaries and totals.

Failure modes:
    - WagePeriodNotFoundError for unknown ids.
    - PeriodRecalculationError when status forbids recalculation.
    - CalculationInProgressError when another pass holds the period.
    - WageCalculationError with per-contractor failures.
    - CalculationCancelledError on cancellation or worker timeout.
    - OptimisticLockError when the period changed during the pass.

Audit relevance:
    Emits ``wage_calculation_started`` / ``wage_calculation_completed`` /
    ``wage_calculation_failed`` with the period code bound to the log
    context; each engine call emits its own LABOR_ENGINE_TRACE record.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable, Iterator
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from contextlib import contextmanager
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from labor_config import WagePolicy, get_active_policy
from labor_engines.discrepancy import DailyComparison, compare_days
from labor_engines.period_aggregator import (
    aggregate_totals,
    check_recalculation_allowed,
    has_unresolved,
    period_month,
)
from labor_engines.scan_reconciliation import late_arrivals, scan_records
from labor_engines.time_normalizer import bucket_hours
from labor_engines.wage_calculator import calculate_wage_summary
from labor_kernel.domain.attendance import AttendanceRecord, ScanDiscrepancyInfo
from labor_kernel.domain.clock import Clock, SystemClock
from labor_kernel.domain.wages import (
    ContractorCalculationFailure,
    ContractorInfo,
    DCRateProfile,
    DCWageSummary,
    LineItem,
    WagePeriodInfo,
)
from labor_kernel.exceptions import (
    CalculationCancelledError,
    CalculationInProgressError,
    ContractorNotFoundError,
    MissingDependencyError,
    MissingRateFieldError,
    WageCalculationError,
)
from labor_kernel.logging_config import LogContext, get_logger
from labor_kernel.selectors.attendance_selector import AttendanceSelector
from labor_kernel.selectors.contractor_selector import ContractorSelector
from labor_kernel.selectors.discrepancy_selector import DiscrepancySelector
from labor_kernel.selectors.line_item_selector import LineItemSelector
from labor_kernel.selectors.rate_profile_selector import RateProfileSelector
from labor_kernel.services.discrepancy_service import DiscrepancyService
from labor_kernel.services.wage_period_service import WagePeriodService
from labor_kernel.utils.retry import call_with_retry

logger = get_logger("services.period_calculation")


# ---------------------------------------------------------------------------
# Single-writer registry
# ---------------------------------------------------------------------------


class PeriodLockRegistry:
    """Non-blocking, per-period mutual exclusion within one process."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._held: set[UUID] = set()

    def is_held(self, period_id: UUID) -> bool:
        with self._guard:
            return period_id in self._held

    def held(self) -> frozenset[UUID]:
        with self._guard:
            return frozenset(self._held)

    @contextmanager
    def hold(self, period_id: UUID) -> Iterator[None]:
        """
        Raises:
            CalculationInProgressError: Another holder has the period.
        """
        with self._guard:
            if period_id in self._held:
                raise CalculationInProgressError(str(period_id))
            self._held.add(period_id)
        try:
            yield
        finally:
            with self._guard:
                self._held.discard(period_id)


_DEFAULT_REGISTRY = PeriodLockRegistry()


# ---------------------------------------------------------------------------
# Pass state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContractorInputs:
    """Everything one contractor's summary needs, already fetched."""
    contractor: ContractorInfo
    profile: DCRateProfile
    records: tuple[AttendanceRecord, ...]
    incomes: tuple[LineItem, ...]
    expenses: tuple[LineItem, ...]
    late_minutes: tuple[int, ...]


@dataclass(frozen=True)
class CollectedInputs:
    manual_records: tuple[AttendanceRecord, ...]
    scanned_records: tuple[AttendanceRecord, ...]
    contractors: tuple[ContractorInputs, ...]
    failures: tuple[ContractorCalculationFailure, ...] = ()


@dataclass(frozen=True)
class CalculationResult:
    """Outcome of a committed calculation pass."""
    period: WagePeriodInfo
    new_discrepancies: tuple[ScanDiscrepancyInfo, ...] = ()
    forced: bool = False
    comparisons: tuple[DailyComparison, ...] = field(default=(), repr=False)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class PeriodCalculationOrchestrator:
    """
    Runs calculation passes against sessions from ``session_factory``.

    Contract:
        ``calculate`` opens its own session and owns commit/rollback.
    Guarantees:
        - On success the period is ``calculated`` with freshly replaced
          summaries and totals.
        - On any failure the database is unchanged.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Clock | None = None,
        policy: WagePolicy | None = None,
        lock_registry: PeriodLockRegistry | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._policy = policy or get_active_policy()
        self._locks = lock_registry if lock_registry is not None else _DEFAULT_REGISTRY

    @property
    def policy(self) -> WagePolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _check_cancelled(
        self,
        cancel_event: threading.Event | None,
        period_code: str,
        stage: str,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise CalculationCancelledError(period_code, stage)

    def _collect(self, session: Session, period: WagePeriodInfo) -> CollectedInputs:
        attendance = AttendanceSelector(session)
        manual = attendance.manual_records(period.project_id, period.start_date, period.end_date)
        punches = attendance.scan_punches(period.project_id, period.start_date, period.end_date)
        scanned = scan_records(punches)

        records_by_contractor: dict[UUID, list[AttendanceRecord]] = defaultdict(list)
        for record in manual:
            records_by_contractor[record.contractor_id].append(record)

        late_by_contractor: dict[UUID, list[int]] = defaultdict(list)
        for arrival in late_arrivals(punches, self._policy):
            late_by_contractor[arrival.contractor_id].append(arrival.late_minutes)

        contractors = ContractorSelector(session).get_many(records_by_contractor)
        line_items = LineItemSelector(session)
        incomes = line_items.incomes_by_contractor(period.id)
        expenses = line_items.expenses_by_contractor(period.id)
        profiles = RateProfileSelector(session)

        inputs = []
        failures = []
        for contractor_id in sorted(records_by_contractor, key=str):
            try:
                contractor = contractors.get(contractor_id)
                if contractor is None:
                    raise ContractorNotFoundError(str(contractor_id))
                profile = profiles.effective_profile(contractor_id, period.start_date)
            except (MissingDependencyError, MissingRateFieldError) as exc:
                failures.append(
                    ContractorCalculationFailure(
                        contractor_id=contractor_id, code=exc.code, message=str(exc),
                    )
                )
                continue
            inputs.append(
                ContractorInputs(
                    contractor=contractor,
                    profile=profile,
                    records=tuple(records_by_contractor[contractor_id]),
                    incomes=incomes.get(contractor_id, ()),
                    expenses=expenses.get(contractor_id, ()),
                    late_minutes=tuple(late_by_contractor.get(contractor_id, ())),
                )
            )

        return CollectedInputs(
            manual_records=manual,
            scanned_records=scanned,
            contractors=tuple(inputs),
            failures=tuple(failures),
        )

    def _collect_with_retry(self, session: Session, period: WagePeriodInfo) -> CollectedInputs:
        def attempt() -> CollectedInputs:
            try:
                return self._collect(session, period)
            except OperationalError:
                session.rollback()
                raise

        calc = self._policy.calculation
        return call_with_retry(
            attempt,
            operation="collect_calculation_inputs",
            max_attempts=calc.collect_max_attempts,
            base_delay=calc.retry_base_delay_seconds,
        )

    def _summarize(self, inputs: ContractorInputs, month: str) -> DCWageSummary:
        buckets = bucket_hours(inputs.records, self._policy)
        return calculate_wage_summary(
            inputs.contractor,
            inputs.profile,
            buckets,
            inputs.incomes,
            inputs.expenses,
            inputs.late_minutes,
            month,
            self._policy,
        )

    def _compute_summaries(
        self,
        collected: CollectedInputs,
        period: WagePeriodInfo,
        cancel_event: threading.Event | None,
    ) -> tuple[DCWageSummary, ...]:
        if not collected.contractors:
            return ()
        month = period_month(period.start_date)
        calc = self._policy.calculation
        workers = max(1, min(calc.max_workers, len(collected.contractors)))

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="wage-calc")
        try:
            futures = [
                pool.submit(self._summarize, inputs, month)
                for inputs in collected.contractors
            ]
            done, pending = wait(
                futures, timeout=calc.timeout_seconds, return_when=FIRST_EXCEPTION,
            )
            for future in done:
                exc = future.exception()
                if exc is not None:
                    raise exc
            if pending:
                logger.error(
                    "wage_calculation_timeout",
                    extra={
                        "period_code": period.period_code,
                        "timeout_seconds": calc.timeout_seconds,
                        "pending": len(pending),
                    },
                )
                raise CalculationCancelledError(period.period_code, "calculate")
            summaries = [future.result() for future in futures]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        self._check_cancelled(cancel_event, period.period_code, "aggregate")

        return tuple(sorted(summaries, key=lambda s: (s.employee_id, str(s.contractor_id))))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def calculate(
        self,
        period_id: UUID,
        actor_id: UUID,
        force: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> CalculationResult:
        """
        Run a full calculation pass and commit it atomically.

        Args:
            period_id: Wage period to calculate.
            actor_id: User stamped as ``calculated_by``.
            force: Allow recalculating an approved or paid period, which
                returns it to ``calculated``.
            cancel_event: Checked between stages; when set the pass aborts
                without writing anything.
        """
        with self._locks.hold(period_id), LogContext.bind(
            period_id=str(period_id), actor_id=str(actor_id),
        ):
            session = self._session_factory()
            try:
                result = self._run(session, period_id, actor_id, force, cancel_event)
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

            logger.info(
                "wage_calculation_completed",
                extra={
                    "period_code": result.period.period_code,
                    "contractor_count": len(result.period.dc_summaries),
                    "total_net_wages": str(result.period.totals.total_net_wages),
                    "new_discrepancies": len(result.new_discrepancies),
                    "forced": result.forced,
                },
            )
        return result

    def _run(
        self,
        session: Session,
        period_id: UUID,
        actor_id: UUID,
        force: bool,
        cancel_event: threading.Event | None,
    ) -> CalculationResult:
        periods = WagePeriodService(session, clock=self._clock, policy=self._policy)
        period = periods.get_period(period_id)
        forced = check_recalculation_allowed(period.period_code, period.status, force)

        logger.info(
            "wage_calculation_started",
            extra={
                "period_code": period.period_code,
                "status": period.status.value,
                "version": period.version,
                "forced": force,
            },
        )

        self._check_cancelled(cancel_event, period.period_code, "collect")
        collected = self._collect_with_retry(session, period)

        self._check_cancelled(cancel_event, period.period_code, "detect")
        comparisons = compare_days(
            collected.manual_records, collected.scanned_records, self._policy,
        )

        self._check_cancelled(cancel_event, period.period_code, "calculate")
        summaries = self._compute_summaries(collected, period, cancel_event)

        if collected.failures:
            logger.error(
                "wage_calculation_failed",
                extra={
                    "period_code": period.period_code,
                    "failures": [
                        {"contractor_id": str(f.contractor_id), "code": f.code}
                        for f in collected.failures
                    ],
                },
            )
            raise WageCalculationError(
                period.period_code,
                list(collected.failures),
                [str(s.contractor_id) for s in summaries],
            )

        totals = aggregate_totals(summaries)

        self._check_cancelled(cancel_event, period.period_code, "apply")
        new_discrepancies = DiscrepancyService(
            session, clock=self._clock, policy=self._policy,
        ).persist(comparisons, actor_id)
        window = DiscrepancySelector(session).in_window(
            period.project_id, period.start_date, period.end_date,
        )

        updated = periods.apply_calculation(
            period_id,
            expected_version=period.version,
            summaries=summaries,
            totals=totals,
            has_unresolved_discrepancies=has_unresolved(window),
            actor_id=actor_id,
            force=force,
        )
        return CalculationResult(
            period=updated,
            new_discrepancies=new_discrepancies,
            forced=forced,
            comparisons=comparisons,
        )
