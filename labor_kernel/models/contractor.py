"""
Module: labor_kernel.models.contractor
Responsibility: ORM persistence for daily contractors and project locations.
Architecture position: Kernel > Models.  May import from db/base.py only
    (DTO conversion imports domain lazily).

Invariants enforced:
    - employee_id is unique across contractors.
    - is_social_security_exempt is an explicit column.  It is seeded from the
      employee-ID prefix rule once, at creation, by the caller; it is never
      re-derived from the ID afterwards.
    - project code is unique.
"""

from uuid import UUID

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from labor_kernel.db.base import TrackedBase


class DailyContractorModel(TrackedBase):
    """
    A daily contractor (DC) paid bi-weekly on hours worked.

    Guarantees:
        - employee_id is unique (uq_dc_employee_id).
    """

    __tablename__ = "daily_contractors"

    __table_args__ = (
        UniqueConstraint("employee_id", name="uq_dc_employee_id"),
        Index("idx_dc_active", "is_active"),
    )

    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    skill_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    is_social_security_exempt: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_dto(self):
        from labor_kernel.domain.wages import ContractorInfo
        return ContractorInfo(
            id=self.id,
            employee_id=self.employee_id,
            name=self.name,
            skill_name=self.skill_name,
            is_social_security_exempt=self.is_social_security_exempt,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "DailyContractorModel":
        return cls(
            id=dto.id,
            employee_id=dto.employee_id,
            name=dto.name,
            skill_name=dto.skill_name,
            is_social_security_exempt=dto.is_social_security_exempt,
            is_active=dto.is_active,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<DailyContractorModel {self.employee_id}: {self.name}>"


class ProjectLocationModel(TrackedBase):
    """A project site that attendance and wage periods are scoped to."""

    __tablename__ = "project_locations"

    __table_args__ = (
        UniqueConstraint("code", name="uq_project_code"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<ProjectLocationModel {self.code}: {self.name}>"
