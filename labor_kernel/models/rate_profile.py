"""
Module: labor_kernel.models.rate_profile
Responsibility: ORM persistence for effective-dated contractor rate profiles
    and the ad hoc additional income / expense line items of a wage period.
Architecture position: Kernel > Models.

Invariants enforced:
    - All monetary fields use Decimal -- NEVER float.
    - At most one profile per (contractor, effective_date).
    - The profile used for a period is the active one with the latest
      effective_date on or before the period start (selector rule).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from labor_kernel.db.base import TrackedBase


class DCRateProfileModel(TrackedBase):
    """Rates and standing charges for a contractor from ``effective_date``."""

    __tablename__ = "dc_rate_profiles"

    __table_args__ = (
        UniqueConstraint(
            "contractor_id", "effective_date", name="uq_rate_profile_effective",
        ),
        Index("idx_rate_profile_lookup", "contractor_id", "is_active", "effective_date"),
    )

    contractor_id: Mapped[UUID] = mapped_column(
        ForeignKey("daily_contractors.id"), nullable=False,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    professional_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    phone_allowance: Mapped[Decimal | None] = mapped_column(nullable=True)
    accommodation_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    follower_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    refrigerator_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    sound_system_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    tv_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    washing_machine_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    portable_ac_cost: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_dto(self):
        """
        Build the domain profile.

        Raises:
            MissingRateFieldError: If a required rate is null or negative.
        """
        from labor_kernel.domain.wages import DCRateProfile
        return DCRateProfile(
            contractor_id=self.contractor_id,
            effective_date=self.effective_date,
            hourly_rate=self.hourly_rate,
            professional_rate=self.professional_rate,
            phone_allowance=self.phone_allowance,
            accommodation_cost=self.accommodation_cost,
            follower_count=self.follower_count,
            refrigerator_cost=self.refrigerator_cost,
            sound_system_cost=self.sound_system_cost,
            tv_cost=self.tv_cost,
            washing_machine_cost=self.washing_machine_cost,
            portable_ac_cost=self.portable_ac_cost,
            profile_id=self.id,
        )

    def __repr__(self) -> str:
        return (
            f"<DCRateProfileModel {self.contractor_id} from {self.effective_date}: "
            f"{self.hourly_rate}/h>"
        )


class _LineItemColumns:
    contractor_id: Mapped[UUID] = mapped_column(
        ForeignKey("daily_contractors.id"), nullable=False,
    )
    wage_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("wage_periods.id"), nullable=False,
    )
    item_type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    def to_dto(self):
        from labor_kernel.domain.wages import LineItem
        return LineItem(
            id=self.id,
            contractor_id=self.contractor_id,
            wage_period_id=self.wage_period_id,
            item_type=self.item_type,
            amount=self.amount,
            description=self.description,
        )


class AdditionalIncomeModel(_LineItemColumns, TrackedBase):
    """Ad hoc income for one contractor in one wage period (bonus, refund)."""

    __tablename__ = "dc_additional_income"

    __table_args__ = (
        Index("idx_additional_income_lookup", "contractor_id", "wage_period_id"),
    )


class AdditionalExpenseModel(_LineItemColumns, TrackedBase):
    """Ad hoc expense for one contractor in one wage period (advance, fine)."""

    __tablename__ = "dc_additional_expenses"

    __table_args__ = (
        Index("idx_additional_expense_lookup", "contractor_id", "wage_period_id"),
    )
