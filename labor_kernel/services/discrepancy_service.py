"""
DiscrepancyService -- persistence and operator lifecycle of scan discrepancies.

Responsibility:
    Turns detector comparisons into ``pending`` ScanDiscrepancy rows (only
    those above the noise threshold, at most one per daily report) and
    moves them through the operator-driven statuses.

Invariants enforced:
    - Detection never overwrites, resolves or deletes an existing row.
    - Allowed status moves: pending -> investigating | resolved | ignored,
      investigating -> resolved | ignored.  resolved and ignored are final.
"""

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import select

from labor_engines.discrepancy import DailyComparison, compare_days, is_surfaceable
from labor_engines.scan_reconciliation import scan_records
from labor_kernel.domain.attendance import DiscrepancyStatus, ScanDiscrepancyInfo
from labor_kernel.exceptions import (
    DiscrepancyNotFoundError,
    InvalidDiscrepancyTransitionError,
)
from labor_kernel.logging_config import get_logger
from labor_kernel.models.discrepancy import ScanDiscrepancyModel
from labor_kernel.selectors.attendance_selector import AttendanceSelector
from labor_kernel.services.base import BaseService

logger = get_logger("services.discrepancy")

ALLOWED_DISCREPANCY_TRANSITIONS: dict[DiscrepancyStatus, frozenset[DiscrepancyStatus]] = {
    DiscrepancyStatus.PENDING: frozenset({
        DiscrepancyStatus.INVESTIGATING,
        DiscrepancyStatus.RESOLVED,
        DiscrepancyStatus.IGNORED,
    }),
    DiscrepancyStatus.INVESTIGATING: frozenset({
        DiscrepancyStatus.RESOLVED,
        DiscrepancyStatus.IGNORED,
    }),
    DiscrepancyStatus.RESOLVED: frozenset(),
    DiscrepancyStatus.IGNORED: frozenset(),
}


class DiscrepancyService(BaseService):

    def surfaceable(self, comparisons: Iterable[DailyComparison]) -> list[DailyComparison]:
        return [c for c in comparisons if is_surfaceable(c.result, self.policy)]

    def existing_report_ids(self, report_ids: Iterable[UUID]) -> set[UUID]:
        ids = list(report_ids)
        if not ids:
            return set()
        return set(self.session.execute(
            select(ScanDiscrepancyModel.daily_report_id)
            .where(ScanDiscrepancyModel.daily_report_id.in_(ids))
        ).scalars().all())

    def persist(
        self,
        comparisons: Iterable[DailyComparison],
        actor_id: UUID,
    ) -> tuple[ScanDiscrepancyInfo, ...]:
        """Insert ``pending`` rows for surfaceable comparisons not yet recorded."""
        candidates = self.surfaceable(comparisons)
        existing = self.existing_report_ids(c.daily_report_id for c in candidates)

        created = []
        for comparison in candidates:
            if comparison.daily_report_id in existing:
                continue
            result = comparison.result
            row = ScanDiscrepancyModel(
                daily_report_id=comparison.daily_report_id,
                contractor_id=comparison.contractor_id,
                project_id=comparison.project_id,
                work_date=comparison.work_date,
                reported_hours=result.reported_hours,
                scanned_hours=result.scanned_hours,
                hours_difference=result.difference,
                severity=result.severity.value,
                status=DiscrepancyStatus.PENDING.value,
                detection_reason=comparison.detection_reason,
                created_by_id=actor_id,
            )
            self.session.add(row)
            created.append(row)
            existing.add(comparison.daily_report_id)

        self.session.flush()
        for row in created:
            logger.info(
                "discrepancy_detected",
                extra={
                    "contractor_id": str(row.contractor_id),
                    "work_date": row.work_date.isoformat(),
                    "hours_difference": str(row.hours_difference),
                    "severity": row.severity,
                },
            )
        return tuple(row.to_dto() for row in created)

    def detect_for_window(
        self,
        project_id: UUID,
        start_date: date,
        end_date: date,
        actor_id: UUID,
    ) -> tuple[ScanDiscrepancyInfo, ...]:
        """Compare reports with scans over ``[start_date, end_date)`` and persist."""
        selector = AttendanceSelector(self.session)
        manual = selector.manual_records(project_id, start_date, end_date)
        scanned = scan_records(selector.scan_punches(project_id, start_date, end_date))
        comparisons = compare_days(manual, scanned, self.policy)
        return self.persist(comparisons, actor_id)

    def update_status(
        self,
        discrepancy_id: UUID,
        target_status: DiscrepancyStatus,
        actor_id: UUID,
        notes: str | None = None,
    ) -> ScanDiscrepancyInfo:
        """
        Operator resolution action.

        Raises:
            DiscrepancyNotFoundError: Unknown id.
            InvalidDiscrepancyTransitionError: Move not allowed.
        """
        row = self.session.get(ScanDiscrepancyModel, discrepancy_id)
        if row is None:
            raise DiscrepancyNotFoundError(str(discrepancy_id))

        current = DiscrepancyStatus(row.status)
        target = DiscrepancyStatus(target_status)
        if target not in ALLOWED_DISCREPANCY_TRANSITIONS[current]:
            raise InvalidDiscrepancyTransitionError(
                str(discrepancy_id), current.value, target.value,
            )

        row.status = target.value
        row.updated_by_id = actor_id
        if notes is not None:
            row.resolution_notes = notes
        if not target.is_unresolved:
            row.resolved_at = self._clock.now()
            row.resolved_by_id = actor_id
        self.session.flush()

        logger.info(
            "discrepancy_status_changed",
            extra={
                "discrepancy_id": str(discrepancy_id),
                "from_status": current.value,
                "to_status": target.value,
            },
        )
        return row.to_dto()
