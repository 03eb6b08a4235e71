"""
Module: labor_kernel.selectors.attendance_selector
Responsibility: Read attendance inputs of a calculation window: manual
    records (daily reports and OT entries) and fingerprint punches.
Architecture position: Kernel > Selectors.

All window queries are half-open: ``start_date <= work_date < end_date``.
Soft-deleted manual records are never returned by window queries.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from labor_kernel.domain.attendance import AttendanceRecord, ScanPunch
from labor_kernel.exceptions import AttendanceRecordNotFoundError
from labor_kernel.models.attendance import AttendanceRecordModel, EditHistoryModel
from labor_kernel.models.scan import ScanRecordModel
from labor_kernel.selectors.base import BaseSelector


class AttendanceSelector(BaseSelector):
    """Manual attendance and scan punches by project and date window."""

    def manual_records(
        self,
        project_id: UUID,
        start_date: date,
        end_date: date,
        contractor_id: UUID | None = None,
    ) -> tuple[AttendanceRecord, ...]:
        query = (
            select(AttendanceRecordModel)
            .where(AttendanceRecordModel.project_id == project_id)
            .where(AttendanceRecordModel.work_date >= start_date)
            .where(AttendanceRecordModel.work_date < end_date)
            .where(AttendanceRecordModel.is_deleted.is_(False))
            .order_by(
                AttendanceRecordModel.contractor_id,
                AttendanceRecordModel.work_date,
                AttendanceRecordModel.start_time,
            )
        )
        if contractor_id is not None:
            query = query.where(AttendanceRecordModel.contractor_id == contractor_id)
        rows = self.session.execute(query).scalars().all()
        return tuple(row.to_dto() for row in rows)

    def scan_punches(
        self,
        project_id: UUID,
        start_date: date,
        end_date: date,
    ) -> tuple[ScanPunch, ...]:
        rows = self.session.execute(
            select(ScanRecordModel)
            .where(ScanRecordModel.project_id == project_id)
            .where(ScanRecordModel.work_date >= start_date)
            .where(ScanRecordModel.work_date < end_date)
            .order_by(ScanRecordModel.contractor_id, ScanRecordModel.scan_time)
        ).scalars().all()
        return tuple(row.to_dto() for row in rows)

    def get_record(self, record_id: UUID) -> AttendanceRecord:
        """
        Raises:
            AttendanceRecordNotFoundError: If no such record exists.
        """
        row = self.session.get(AttendanceRecordModel, record_id)
        if row is None:
            raise AttendanceRecordNotFoundError(str(record_id))
        return row.to_dto()

    def edit_history(self, record_id: UUID) -> list[dict]:
        """Edit history rows of a record, oldest first."""
        rows = self.session.execute(
            select(EditHistoryModel)
            .where(EditHistoryModel.record_id == record_id)
            .order_by(EditHistoryModel.previous_version)
        ).scalars().all()
        return [
            {
                "previous_version": row.previous_version,
                "change_type": row.change_type,
                "changed_fields": list(row.changed_fields or []),
                "old_values": row.old_values,
                "new_values": row.new_values,
                "reason": row.reason,
                "actor_id": row.created_by_id,
            }
            for row in rows
        ]
