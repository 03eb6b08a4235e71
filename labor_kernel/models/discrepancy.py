"""
Module: labor_kernel.models.discrepancy
Responsibility: ORM persistence for reported-vs-scanned hour mismatches.
Architecture position: Kernel > Models.

Invariants enforced:
    - At most one discrepancy per daily report (uq_discrepancy_report).
    - Discrepancies are never deleted and never auto-resolved; only an
      operator moves them out of ``pending``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from labor_kernel.db.base import TrackedBase


class ScanDiscrepancyModel(TrackedBase):
    """Mismatch between a daily report's hours and the scanned hours."""

    __tablename__ = "scan_discrepancies"

    __table_args__ = (
        UniqueConstraint("daily_report_id", name="uq_discrepancy_report"),
        Index("idx_discrepancy_project_date", "project_id", "work_date"),
        Index("idx_discrepancy_status", "status"),
    )

    daily_report_id: Mapped[UUID] = mapped_column(
        ForeignKey("attendance_records.id"), nullable=False,
    )
    contractor_id: Mapped[UUID] = mapped_column(
        ForeignKey("daily_contractors.id"), nullable=False,
    )
    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("project_locations.id"), nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    reported_hours: Mapped[Decimal] = mapped_column(nullable=False)
    scanned_hours: Mapped[Decimal] = mapped_column(nullable=False)
    hours_difference: Mapped[Decimal] = mapped_column(nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    detection_reason: Mapped[str] = mapped_column(String(500), nullable=False)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    resolved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    def to_dto(self):
        from labor_kernel.domain.attendance import (
            DiscrepancySeverity,
            DiscrepancyStatus,
            ScanDiscrepancyInfo,
        )
        return ScanDiscrepancyInfo(
            id=self.id,
            daily_report_id=self.daily_report_id,
            contractor_id=self.contractor_id,
            project_id=self.project_id,
            work_date=self.work_date,
            reported_hours=self.reported_hours,
            scanned_hours=self.scanned_hours,
            hours_difference=self.hours_difference,
            severity=DiscrepancySeverity(self.severity),
            status=DiscrepancyStatus(self.status),
            detection_reason=self.detection_reason,
            resolution_notes=self.resolution_notes,
            resolved_at=self.resolved_at,
            resolved_by_id=self.resolved_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<ScanDiscrepancyModel {self.contractor_id} {self.work_date} "
            f"{self.hours_difference} {self.status}>"
        )
