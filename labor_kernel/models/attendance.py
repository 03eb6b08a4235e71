"""
Module: labor_kernel.models.attendance
Responsibility: ORM persistence for manually entered attendance (daily
    reports and OT records) and their edit history.
Architecture position: Kernel > Models.

Invariants enforced:
    - Every change to a record bumps ``version`` and writes exactly one
      EditHistoryModel row carrying the previous version.
    - Deletion is soft: ``is_deleted`` rows are excluded from calculation but
      never removed.
    - Hour columns are derived by the time normalizer at write time.

Audit relevance:
    Edit history is the trail behind every payable hour: who changed which
    field, from what, to what, and why.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from labor_kernel.db.base import TrackedBase


class AttendanceRecordModel(TrackedBase):
    """
    One contractor's attendance entry for one day and one work type.

    Start and end are local wall-clock timestamps (timezone-naive).  An
    overnight record ends on the following day in elapsed terms but stores
    its end time on the work date.
    """

    __tablename__ = "attendance_records"

    __table_args__ = (
        Index("idx_attendance_contractor_date", "contractor_id", "work_date"),
        Index("idx_attendance_project_date", "project_id", "work_date"),
        Index("idx_attendance_deleted", "is_deleted"),
    )

    contractor_id: Mapped[UUID] = mapped_column(
        ForeignKey("daily_contractors.id"), nullable=False,
    )
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("project_locations.id"), nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    work_type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_overnight: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    task_name: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)

    total_hours: Mapped[Decimal] = mapped_column(nullable=False)
    break_hours: Mapped[Decimal] = mapped_column(nullable=False)
    net_hours: Mapped[Decimal] = mapped_column(nullable=False)

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    deleted_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def to_dto(self):
        from labor_kernel.domain.attendance import (
            AttendanceRecord,
            RecordSource,
            WorkType,
        )
        return AttendanceRecord(
            contractor_id=self.contractor_id,
            project_id=self.project_id,
            work_date=self.work_date,
            start_time=self.start_time,
            end_time=self.end_time,
            work_type=WorkType(self.work_type),
            is_overnight=self.is_overnight,
            source=RecordSource.MANUAL,
            record_id=self.id,
        )

    def snapshot(self) -> dict:
        """JSON-safe view of the editable fields, for edit history."""
        return {
            "work_date": self.work_date.isoformat(),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "work_type": self.work_type,
            "is_overnight": self.is_overnight,
            "task_name": self.task_name,
            "notes": self.notes,
            "status": self.status,
            "net_hours": str(self.net_hours),
            "is_deleted": self.is_deleted,
        }

    def __repr__(self) -> str:
        return (
            f"<AttendanceRecordModel {self.contractor_id} {self.work_date} "
            f"{self.work_type} v{self.version}>"
        )


class EditHistoryModel(TrackedBase):
    """Append-only change log for attendance records."""

    __tablename__ = "attendance_edit_history"

    __table_args__ = (
        Index("idx_edit_history_record", "record_id"),
    )

    record_id: Mapped[UUID] = mapped_column(
        ForeignKey("attendance_records.id"), nullable=False,
    )
    previous_version: Mapped[int] = mapped_column(Integer, nullable=False)
    change_type: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_fields: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<EditHistoryModel {self.record_id} {self.change_type} "
            f"from v{self.previous_version}>"
        )
