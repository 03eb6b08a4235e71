"""
AttendanceService -- capture and audited editing of manual attendance.

Responsibility:
    - Daily reports: one submission for N contractors materializes N
      independent ``regular`` records from a shared template.
    - OT records: start and end must fall inside the window configured for
      the OT type.
    - Edits, soft deletes and restores bump ``version`` and write one
      EditHistory row each.

Invariants enforced:
    - Hours are recomputed by the time normalizer on every write, so an
      invalid span is rejected before anything is flushed.
    - Records are never hard-deleted.

Failure modes:
    - ContractorNotFoundError / ProjectNotFoundError for unknown references.
    - InvalidTimeSpanError for end-before-start.
    - InvalidWorkTypeError / InvalidOvertimeWindowError for bad OT input.
    - InvalidCrewError / NonEditableFieldError for malformed submissions.
    - AttendanceRecordNotFoundError for unknown ids.
"""

from collections.abc import Sequence
from datetime import date, datetime
from uuid import UUID

from labor_engines.time_normalizer import normalize
from labor_kernel.db.types import round_hours
from labor_kernel.domain.attendance import (
    AttendanceRecord,
    ChangeType,
    ReportStatus,
    WorkType,
)
from labor_kernel.exceptions import (
    AttendanceRecordNotFoundError,
    InvalidCrewError,
    InvalidOvertimeWindowError,
    InvalidWorkTypeError,
    NonEditableFieldError,
)
from labor_kernel.logging_config import get_logger
from labor_kernel.models.attendance import AttendanceRecordModel, EditHistoryModel
from labor_kernel.selectors.contractor_selector import ContractorSelector
from labor_kernel.selectors.project_selector import ProjectSelector
from labor_kernel.services.base import BaseService

logger = get_logger("services.attendance")


def _parse_work_type(value) -> WorkType:
    try:
        return WorkType(value)
    except ValueError:
        raise InvalidWorkTypeError(
            str(value), ", ".join(w.value for w in WorkType),
        ) from None


EDITABLE_FIELDS = frozenset({
    "work_date",
    "start_time",
    "end_time",
    "work_type",
    "is_overnight",
    "task_name",
    "notes",
    "status",
})


class AttendanceService(BaseService):

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_references(self, contractor_ids: Sequence[UUID], project_id: UUID) -> None:
        ProjectSelector(self.session).get(project_id)
        selector = ContractorSelector(self.session)
        for contractor_id in contractor_ids:
            selector.get(contractor_id)

    def _check_ot_window(self, work_type: WorkType, start: datetime, end: datetime) -> None:
        if not work_type.is_overtime:
            raise InvalidWorkTypeError(work_type.value, "ot_morning, ot_noon or ot_evening")
        window = self.policy.ot_windows[work_type.value]
        if not (window.contains(start.time()) and window.contains(end.time())):
            raise InvalidOvertimeWindowError(
                work_type.value,
                start.time().isoformat(timespec="minutes"),
                end.time().isoformat(timespec="minutes"),
                window.start.isoformat(timespec="minutes"),
                window.end.isoformat(timespec="minutes"),
            )

    def _apply_hours(self, record: AttendanceRecordModel) -> None:
        hours = normalize(
            record.start_time,
            record.end_time,
            WorkType(record.work_type),
            record.is_overnight,
            self.policy,
        )
        record.total_hours = round_hours(hours.total_hours)
        record.break_hours = round_hours(hours.break_hours)
        record.net_hours = round_hours(hours.net_hours)

    def _history(
        self,
        record: AttendanceRecordModel,
        change_type: ChangeType,
        actor_id: UUID,
        old_values: dict | None,
        new_values: dict | None,
        reason: str | None,
        previous_version: int,
    ) -> None:
        changed = []
        if old_values is not None and new_values is not None:
            changed = sorted(k for k in new_values if old_values.get(k) != new_values[k])
        elif new_values is not None:
            changed = sorted(new_values)
        self.session.add(
            EditHistoryModel(
                record_id=record.id,
                previous_version=previous_version,
                change_type=change_type.value,
                changed_fields=changed,
                old_values=old_values,
                new_values=new_values,
                reason=reason,
                created_by_id=actor_id,
            )
        )

    def _create(
        self,
        contractor_ids: Sequence[UUID],
        project_id: UUID,
        work_date: date,
        start_time: datetime,
        end_time: datetime,
        work_type: WorkType,
        actor_id: UUID,
        is_overnight: bool,
        task_name: str,
        notes: str | None,
        status: ReportStatus,
    ) -> list[AttendanceRecord]:
        if not contractor_ids:
            raise InvalidCrewError("at least one contractor is required")
        if len(set(contractor_ids)) != len(contractor_ids):
            raise InvalidCrewError("duplicate contractor in submission")
        self._check_references(contractor_ids, project_id)

        rows = []
        for contractor_id in contractor_ids:
            row = AttendanceRecordModel(
                contractor_id=contractor_id,
                project_id=project_id,
                work_date=work_date,
                start_time=start_time,
                end_time=end_time,
                work_type=work_type.value,
                is_overnight=is_overnight,
                task_name=task_name,
                notes=notes,
                status=ReportStatus(status).value,
                is_deleted=False,
                version=1,
                created_by_id=actor_id,
            )
            self._apply_hours(row)
            self.session.add(row)
            rows.append(row)
        self.session.flush()

        for row in rows:
            self._history(row, ChangeType.CREATE, actor_id, None, row.snapshot(), None, 0)
        self.session.flush()

        logger.info(
            "attendance_records_created",
            extra={
                "project_id": str(project_id),
                "work_date": work_date.isoformat(),
                "work_type": work_type.value,
                "record_count": len(rows),
            },
        )
        return [row.to_dto() for row in rows]

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def create_daily_report(
        self,
        contractor_ids: Sequence[UUID],
        project_id: UUID,
        work_date: date,
        start_time: datetime,
        end_time: datetime,
        actor_id: UUID,
        is_overnight: bool = False,
        task_name: str = "",
        notes: str | None = None,
        status: ReportStatus = ReportStatus.SUBMITTED,
    ) -> list[AttendanceRecord]:
        """One ``regular`` record per contractor, sharing every other field."""
        return self._create(
            contractor_ids, project_id, work_date, start_time, end_time,
            WorkType.REGULAR, actor_id, is_overnight, task_name, notes, status,
        )

    def create_overtime_record(
        self,
        contractor_ids: Sequence[UUID],
        project_id: UUID,
        work_date: date,
        start_time: datetime,
        end_time: datetime,
        work_type: WorkType,
        actor_id: UUID,
        task_name: str = "",
        notes: str | None = None,
        status: ReportStatus = ReportStatus.SUBMITTED,
    ) -> list[AttendanceRecord]:
        """OT records; times must sit inside the configured window."""
        work_type = _parse_work_type(work_type)
        self._check_ot_window(work_type, start_time, end_time)
        return self._create(
            contractor_ids, project_id, work_date, start_time, end_time,
            work_type, actor_id, False, task_name, notes, status,
        )

    # ------------------------------------------------------------------
    # Audited changes
    # ------------------------------------------------------------------

    def _load(self, record_id: UUID) -> AttendanceRecordModel:
        row = self.session.get(AttendanceRecordModel, record_id)
        if row is None:
            raise AttendanceRecordNotFoundError(str(record_id))
        return row

    def update_record(
        self,
        record_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
        **changes,
    ) -> AttendanceRecord:
        """
        Apply field changes, recompute hours, bump version, log history.

        Raises:
            NonEditableFieldError: For a field that cannot be edited.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise NonEditableFieldError(sorted(unknown))

        row = self._load(record_id)
        old_values = row.snapshot()
        previous_version = row.version

        if "work_type" in changes:
            changes["work_type"] = _parse_work_type(changes["work_type"]).value
        if "status" in changes:
            changes["status"] = ReportStatus(changes["status"]).value

        work_type = WorkType(changes.get("work_type", row.work_type))
        start = changes.get("start_time", row.start_time)
        end = changes.get("end_time", row.end_time)
        if work_type.is_overtime:
            self._check_ot_window(work_type, start, end)
        # raises on an invalid span before the row is touched
        normalize(start, end, work_type, changes.get("is_overnight", row.is_overnight), self.policy)

        for name, value in changes.items():
            setattr(row, name, value)
        self._apply_hours(row)

        new_values = row.snapshot()
        if new_values == old_values:
            return row.to_dto()

        row.version = previous_version + 1
        row.updated_by_id = actor_id
        self._history(
            row, ChangeType.UPDATE, actor_id, old_values, new_values, reason, previous_version,
        )
        self.session.flush()

        logger.info(
            "attendance_record_updated",
            extra={
                "record_id": str(record_id),
                "version": row.version,
                "changed_fields": sorted(
                    k for k in new_values if old_values.get(k) != new_values[k]
                ),
            },
        )
        return row.to_dto()

    def _set_deleted(
        self,
        record_id: UUID,
        actor_id: UUID,
        reason: str | None,
        deleted: bool,
    ) -> AttendanceRecord:
        row = self._load(record_id)
        if row.is_deleted == deleted:
            return row.to_dto()

        old_values = row.snapshot()
        previous_version = row.version
        row.is_deleted = deleted
        row.deleted_at = self._clock.now() if deleted else None
        row.deleted_by_id = actor_id if deleted else None
        row.version = previous_version + 1
        row.updated_by_id = actor_id
        self._history(
            row,
            ChangeType.DELETE if deleted else ChangeType.RESTORE,
            actor_id,
            old_values,
            row.snapshot(),
            reason,
            previous_version,
        )
        self.session.flush()

        logger.info(
            "attendance_record_deleted" if deleted else "attendance_record_restored",
            extra={"record_id": str(record_id), "version": row.version},
        )
        return row.to_dto()

    def soft_delete(self, record_id: UUID, actor_id: UUID, reason: str | None = None) -> AttendanceRecord:
        return self._set_deleted(record_id, actor_id, reason, True)

    def restore(self, record_id: UUID, actor_id: UUID, reason: str | None = None) -> AttendanceRecord:
        return self._set_deleted(record_id, actor_id, reason, False)
