"""
ContractorService -- reference data for the wage pipeline.

Responsibility:
    Creates projects and daily contractors and records effective-dated rate
    profiles.

Invariants enforced:
    - ``is_social_security_exempt`` is seeded from the employee-ID prefix
      rule only when the caller does not supply it, and only here.
    - A rate profile missing a required rate is rejected at write time.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from labor_engines.wage_calculator import is_exempt_employee_id
from labor_kernel.db.types import ZERO
from labor_kernel.domain.wages import ContractorInfo, DCRateProfile
from labor_kernel.logging_config import get_logger
from labor_kernel.models.contractor import DailyContractorModel, ProjectLocationModel
from labor_kernel.models.rate_profile import DCRateProfileModel
from labor_kernel.selectors.contractor_selector import ContractorSelector
from labor_kernel.services.base import BaseService

logger = get_logger("services.contractor")


class ContractorService(BaseService):

    def create_project(self, code: str, name: str, actor_id: UUID) -> UUID:
        project = ProjectLocationModel(code=code, name=name, created_by_id=actor_id)
        self.session.add(project)
        self.session.flush()
        logger.info("project_created", extra={"project_code": code})
        return project.id

    def create_contractor(
        self,
        employee_id: str,
        name: str,
        actor_id: UUID,
        skill_name: str = "",
        is_social_security_exempt: bool | None = None,
    ) -> ContractorInfo:
        """Create a contractor, seeding the exemption flag when not given."""
        if is_social_security_exempt is None:
            is_social_security_exempt = is_exempt_employee_id(
                employee_id, self.policy.social_security.exempt_employee_id_prefix,
            )
        contractor = DailyContractorModel(
            employee_id=employee_id,
            name=name,
            skill_name=skill_name,
            is_social_security_exempt=is_social_security_exempt,
            created_by_id=actor_id,
        )
        self.session.add(contractor)
        self.session.flush()
        logger.info(
            "contractor_created",
            extra={
                "employee_id": employee_id,
                "is_social_security_exempt": is_social_security_exempt,
            },
        )
        return contractor.to_dto()

    def add_rate_profile(
        self,
        contractor_id: UUID,
        effective_date: date,
        actor_id: UUID,
        hourly_rate: Decimal,
        professional_rate: Decimal = ZERO,
        phone_allowance: Decimal = ZERO,
        accommodation_cost: Decimal = ZERO,
        follower_count: int = 0,
        refrigerator_cost: Decimal = ZERO,
        sound_system_cost: Decimal = ZERO,
        tv_cost: Decimal = ZERO,
        washing_machine_cost: Decimal = ZERO,
        portable_ac_cost: Decimal = ZERO,
    ) -> DCRateProfile:
        """
        Raises:
            ContractorNotFoundError: Unknown contractor.
            MissingRateFieldError: A required rate is missing or negative.
        """
        ContractorSelector(self.session).get(contractor_id)
        profile = DCRateProfile(
            contractor_id=contractor_id,
            effective_date=effective_date,
            hourly_rate=hourly_rate,
            professional_rate=professional_rate,
            phone_allowance=phone_allowance,
            accommodation_cost=accommodation_cost,
            follower_count=follower_count,
            refrigerator_cost=refrigerator_cost,
            sound_system_cost=sound_system_cost,
            tv_cost=tv_cost,
            washing_machine_cost=washing_machine_cost,
            portable_ac_cost=portable_ac_cost,
        )
        row = DCRateProfileModel(
            contractor_id=contractor_id,
            effective_date=effective_date,
            hourly_rate=profile.hourly_rate,
            professional_rate=profile.professional_rate,
            phone_allowance=profile.phone_allowance,
            accommodation_cost=profile.accommodation_cost,
            follower_count=profile.follower_count,
            refrigerator_cost=profile.refrigerator_cost,
            sound_system_cost=profile.sound_system_cost,
            tv_cost=profile.tv_cost,
            washing_machine_cost=profile.washing_machine_cost,
            portable_ac_cost=profile.portable_ac_cost,
            created_by_id=actor_id,
        )
        self.session.add(row)
        self.session.flush()
        return row.to_dto()
