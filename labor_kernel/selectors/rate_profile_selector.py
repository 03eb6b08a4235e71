"""
Module: labor_kernel.selectors.rate_profile_selector
Responsibility: Resolve the rate profile in effect for a contractor.
Architecture position: Kernel > Selectors.

The profile in effect on a date is the active profile with the latest
``effective_date`` on or before that date.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from labor_kernel.domain.wages import DCRateProfile
from labor_kernel.exceptions import RateProfileNotFoundError
from labor_kernel.models.rate_profile import DCRateProfileModel
from labor_kernel.selectors.base import BaseSelector


class RateProfileSelector(BaseSelector):

    def effective_profile(self, contractor_id: UUID, as_of: date) -> DCRateProfile:
        """
        Raises:
            RateProfileNotFoundError: No active profile effective by ``as_of``.
            MissingRateFieldError: The profile found lacks a required rate.
        """
        row = self.session.execute(
            select(DCRateProfileModel)
            .where(DCRateProfileModel.contractor_id == contractor_id)
            .where(DCRateProfileModel.is_active.is_(True))
            .where(DCRateProfileModel.effective_date <= as_of)
            .order_by(DCRateProfileModel.effective_date.desc())
            .limit(1)
        ).scalar_one_or_none()
        if row is None:
            raise RateProfileNotFoundError(str(contractor_id), as_of.isoformat())
        return row.to_dto()
