"""
Module: labor_kernel.selectors.contractor_selector
Responsibility: Contractor lookups for the calculation pass.
Architecture position: Kernel > Selectors.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select

from labor_kernel.domain.wages import ContractorInfo
from labor_kernel.exceptions import ContractorNotFoundError
from labor_kernel.models.contractor import DailyContractorModel
from labor_kernel.selectors.base import BaseSelector


class ContractorSelector(BaseSelector):

    def get(self, contractor_id: UUID) -> ContractorInfo:
        """
        Raises:
            ContractorNotFoundError: If no such contractor exists.
        """
        row = self.session.get(DailyContractorModel, contractor_id)
        if row is None:
            raise ContractorNotFoundError(str(contractor_id))
        return row.to_dto()

    def get_many(self, contractor_ids: Iterable[UUID]) -> dict[UUID, ContractorInfo]:
        """Contractors found among ``contractor_ids``; missing ids are absent."""
        ids = list(contractor_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(DailyContractorModel).where(DailyContractorModel.id.in_(ids))
        ).scalars().all()
        return {row.id: row.to_dto() for row in rows}

    def find_by_employee_id(self, employee_id: str) -> ContractorInfo | None:
        row = self.session.execute(
            select(DailyContractorModel).where(DailyContractorModel.employee_id == employee_id)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None
