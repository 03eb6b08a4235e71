"""
Module: labor_kernel.models.wage_period
Responsibility: ORM persistence for bi-weekly wage periods, including the
    embedded per-contractor summaries.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (project_id, period_code) is unique (uq_wage_period_code).
    - ``dc_summaries`` is a JSON array replaced wholesale on every
      calculation; rows are never patched in place.
    - ``version`` is the SQLAlchemy version counter: any flush against a
      stale row raises StaleDataError, which services surface as
      OptimisticLockError.

Audit relevance:
    calculated/approved/paid/locked stamps record who moved the period
    through its lifecycle and when.  Once LOCKED, the period is final.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from labor_kernel.db.base import TrackedBase


class WagePeriodModel(TrackedBase):
    """
    A 15-day wage period for one project.

    Dates form the half-open window ``[start_date, end_date)``.
    """

    __tablename__ = "wage_periods"

    __table_args__ = (
        UniqueConstraint("project_id", "period_code", name="uq_wage_period_code"),
        Index("idx_wage_period_status", "status"),
        Index("idx_wage_period_dates", "start_date", "end_date"),
    )

    period_code: Mapped[str] = mapped_column(String(20), nullable=False)
    project_id: Mapped[UUID] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_days: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)

    dc_summaries: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    total_regular_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    total_ot_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    total_gross_wages: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    total_net_wages: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    has_unresolved_discrepancies: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )

    calculated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    calculated_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(nullable=True)
    locked_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        from labor_kernel.domain.wages import (
            DCWageSummary,
            PeriodStatus,
            PeriodTotals,
            WagePeriodInfo,
        )
        return WagePeriodInfo(
            id=self.id,
            period_code=self.period_code,
            project_id=self.project_id,
            start_date=self.start_date,
            end_date=self.end_date,
            period_days=self.period_days,
            status=PeriodStatus(self.status),
            dc_summaries=tuple(
                DCWageSummary.from_dict(s) for s in (self.dc_summaries or [])
            ),
            totals=PeriodTotals(
                total_regular_hours=self.total_regular_hours,
                total_ot_hours=self.total_ot_hours,
                total_gross_wages=self.total_gross_wages,
                total_deductions=self.total_deductions,
                total_net_wages=self.total_net_wages,
            ),
            has_unresolved_discrepancies=self.has_unresolved_discrepancies,
            version=self.version,
            calculated_at=self.calculated_at,
            calculated_by_id=self.calculated_by_id,
            approved_at=self.approved_at,
            approved_by_id=self.approved_by_id,
            paid_at=self.paid_at,
            paid_by_id=self.paid_by_id,
            locked_at=self.locked_at,
            locked_by_id=self.locked_by_id,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<WagePeriodModel {self.period_code}: {self.status} v{self.version}>"
