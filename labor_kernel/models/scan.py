"""
Module: labor_kernel.models.scan
Responsibility: ORM persistence for fingerprint-clock punches.
Architecture position: Kernel > Models.

Punches are stored as imported, alongside their derived fields (time rounded
down to the rounding granularity, behaviour classification, late flag).
They never feed payable hours directly; the calculation pass pairs the first
and last punch of a day into a scan-sourced attendance record.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from labor_kernel.db.base import TrackedBase


class ScanRecordModel(TrackedBase):
    """A single fingerprint punch."""

    __tablename__ = "scan_records"

    __table_args__ = (
        Index("idx_scan_contractor_date", "contractor_id", "work_date"),
        Index("idx_scan_project_date", "project_id", "work_date"),
        Index("idx_scan_batch", "import_batch_id"),
    )

    contractor_id: Mapped[UUID] = mapped_column(
        ForeignKey("daily_contractors.id"), nullable=False,
    )
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("project_locations.id"), nullable=False,
    )
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    scan_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    rounded_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    behavior: Mapped[str] = mapped_column(String(20), nullable=False)
    is_late: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    late_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    import_batch_id: Mapped[UUID | None] = mapped_column(nullable=True)

    def to_dto(self):
        from labor_kernel.domain.attendance import ScanPunch
        return ScanPunch(
            contractor_id=self.contractor_id,
            project_id=self.project_id,
            employee_id=self.employee_id,
            scan_time=self.scan_time,
            work_date=self.work_date,
        )

    def __repr__(self) -> str:
        return f"<ScanRecordModel {self.employee_id} {self.scan_time} {self.behavior}>"
