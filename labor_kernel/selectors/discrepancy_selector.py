"""
Module: labor_kernel.selectors.discrepancy_selector
Responsibility: Scan discrepancies touching a project and date window.
Architecture position: Kernel > Selectors.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from labor_kernel.domain.attendance import DiscrepancyStatus, ScanDiscrepancyInfo
from labor_kernel.exceptions import DiscrepancyNotFoundError
from labor_kernel.models.discrepancy import ScanDiscrepancyModel
from labor_kernel.selectors.base import BaseSelector


class DiscrepancySelector(BaseSelector):

    def in_window(
        self,
        project_id: UUID,
        start_date: date,
        end_date: date,
        status: DiscrepancyStatus | None = None,
    ) -> tuple[ScanDiscrepancyInfo, ...]:
        query = (
            select(ScanDiscrepancyModel)
            .where(ScanDiscrepancyModel.project_id == project_id)
            .where(ScanDiscrepancyModel.work_date >= start_date)
            .where(ScanDiscrepancyModel.work_date < end_date)
            .order_by(ScanDiscrepancyModel.work_date, ScanDiscrepancyModel.contractor_id)
        )
        if status is not None:
            query = query.where(ScanDiscrepancyModel.status == DiscrepancyStatus(status).value)
        rows = self.session.execute(query).scalars().all()
        return tuple(row.to_dto() for row in rows)

    def get(self, discrepancy_id: UUID) -> ScanDiscrepancyInfo:
        row = self.session.get(ScanDiscrepancyModel, discrepancy_id)
        if row is None:
            raise DiscrepancyNotFoundError(str(discrepancy_id))
        return row.to_dto()
