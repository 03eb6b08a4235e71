"""
Wage Domain Types (``labor_kernel.domain.wages``).

Responsibility
--------------
Frozen value objects for the wage side of the engine: contractors, effective
dated rate profiles, ad hoc income/expense line items, social-security
breakdowns, per-contractor wage summaries, and the wage period DTO.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``DCWageSummary.net_wages == total_income - total_expenses`` exactly, and
  both totals equal the sum of their component lines.
* Rate profiles reject missing or negative rates at construction.

Audit relevance
---------------
``DCWageSummary.to_dict()`` is the embedded document shape stored on the
wage period row; ``from_dict()`` restores it losslessly.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from labor_kernel.db.types import ZERO
from labor_kernel.exceptions import MissingRateFieldError


class PeriodStatus(str, Enum):
    """Wage period lifecycle. Transitions are strictly forward."""
    DRAFT = "draft"
    CALCULATED = "calculated"
    APPROVED = "approved"
    PAID = "paid"
    LOCKED = "locked"


@dataclass(frozen=True)
class ContractorInfo:
    """A daily contractor as seen by the wage engine."""
    id: UUID
    employee_id: str
    name: str
    skill_name: str = ""
    is_social_security_exempt: bool = False
    is_active: bool = True


_REQUIRED_RATE_FIELDS = ("hourly_rate", "professional_rate", "phone_allowance")
_NON_NEGATIVE_FIELDS = (
    "hourly_rate",
    "professional_rate",
    "phone_allowance",
    "accommodation_cost",
    "refrigerator_cost",
    "sound_system_cost",
    "tv_cost",
    "washing_machine_cost",
    "portable_ac_cost",
)


@dataclass(frozen=True)
class DCRateProfile:
    """Rates and standing charges for one contractor, effective from a date."""
    contractor_id: UUID
    effective_date: date
    hourly_rate: Decimal
    professional_rate: Decimal = ZERO
    phone_allowance: Decimal = ZERO
    accommodation_cost: Decimal = ZERO
    follower_count: int = 0
    refrigerator_cost: Decimal = ZERO
    sound_system_cost: Decimal = ZERO
    tv_cost: Decimal = ZERO
    washing_machine_cost: Decimal = ZERO
    portable_ac_cost: Decimal = ZERO
    profile_id: UUID | None = None

    def __post_init__(self):
        for name in _REQUIRED_RATE_FIELDS:
            if getattr(self, name) is None:
                raise MissingRateFieldError(str(self.contractor_id), name)
        for name in _NON_NEGATIVE_FIELDS:
            if getattr(self, name) < 0:
                raise MissingRateFieldError(str(self.contractor_id), name, "negative")
        if self.follower_count < 0:
            raise MissingRateFieldError(
                str(self.contractor_id), "follower_count", "negative"
            )

    @property
    def equipment_costs(self) -> Decimal:
        return (
            self.refrigerator_cost
            + self.sound_system_cost
            + self.tv_cost
            + self.washing_machine_cost
            + self.portable_ac_cost
        )


@dataclass(frozen=True)
class LineItem:
    """An ad hoc additional income or expense for a contractor and period."""
    id: UUID
    contractor_id: UUID
    wage_period_id: UUID
    item_type: str
    amount: Decimal
    description: str = ""


@dataclass(frozen=True)
class SocialSecurityCalculation:
    """Breakdown of one contractor's social-security withholding."""
    is_exempt: bool
    gross_wages: Decimal
    contribution_rate: Decimal
    calculated_amount: Decimal
    capped_amount: Decimal
    final_amount: Decimal
    period_month: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_exempt": self.is_exempt,
            "gross_wages": str(self.gross_wages),
            "contribution_rate": str(self.contribution_rate),
            "calculated_amount": str(self.calculated_amount),
            "capped_amount": str(self.capped_amount),
            "final_amount": str(self.final_amount),
            "period_month": self.period_month,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SocialSecurityCalculation:
        return cls(
            is_exempt=bool(data["is_exempt"]),
            gross_wages=Decimal(data["gross_wages"]),
            contribution_rate=Decimal(data["contribution_rate"]),
            calculated_amount=Decimal(data["calculated_amount"]),
            capped_amount=Decimal(data["capped_amount"]),
            final_amount=Decimal(data["final_amount"]),
            period_month=data["period_month"],
        )


@dataclass(frozen=True)
class DCWageSummary:
    """
    Per-contractor wage breakdown for one period.

    Income:   regular_wages + ot_wages + professional_fees + phone_allowance
              + additional_income
    Expenses: accommodation_cost + follower_accommodation + equipment_costs
              + additional_expenses + social_security_deduction
              + late_deductions
    """
    contractor_id: UUID
    employee_id: str
    name: str
    skill_name: str

    # Hours
    regular_hours: Decimal
    ot_morning_hours: Decimal
    ot_noon_hours: Decimal
    ot_evening_hours: Decimal
    total_ot_hours: Decimal
    total_hours: Decimal

    # Income
    hourly_rate: Decimal
    professional_rate: Decimal
    phone_allowance: Decimal
    regular_wages: Decimal
    ot_wages: Decimal
    professional_fees: Decimal
    additional_income: Decimal
    total_income: Decimal

    # Expenses
    accommodation_cost: Decimal
    follower_count: int
    follower_accommodation: Decimal
    refrigerator_cost: Decimal
    sound_system_cost: Decimal
    tv_cost: Decimal
    washing_machine_cost: Decimal
    portable_ac_cost: Decimal
    equipment_costs: Decimal
    additional_expenses: Decimal
    social_security_deduction: Decimal
    late_deductions: Decimal
    late_days: int
    total_expenses: Decimal

    net_wages: Decimal

    additional_income_ids: tuple[UUID, ...] = field(default_factory=tuple)
    additional_expense_ids: tuple[UUID, ...] = field(default_factory=tuple)
    social_security: SocialSecurityCalculation | None = None
    rate_profile_id: UUID | None = None

    def __post_init__(self):
        income = (
            self.regular_wages
            + self.ot_wages
            + self.professional_fees
            + self.phone_allowance
            + self.additional_income
        )
        expenses = (
            self.accommodation_cost
            + self.follower_accommodation
            + self.equipment_costs
            + self.additional_expenses
            + self.social_security_deduction
            + self.late_deductions
        )
        if income != self.total_income:
            raise ValueError(
                f"total_income {self.total_income} != sum of income lines {income}"
            )
        if expenses != self.total_expenses:
            raise ValueError(
                f"total_expenses {self.total_expenses} != sum of expense lines {expenses}"
            )
        if self.net_wages != self.total_income - self.total_expenses:
            raise ValueError(
                f"net_wages {self.net_wages} != total_income - total_expenses"
            )

    @property
    def gross_wages(self) -> Decimal:
        return self.total_income

    def to_dict(self) -> dict[str, Any]:
        """Embedded-document form: Decimals and UUIDs as strings."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _DECIMAL_FIELDS:
                out[f.name] = str(value)
            elif f.name in ("additional_income_ids", "additional_expense_ids"):
                out[f.name] = [str(v) for v in value]
            elif f.name == "social_security":
                out[f.name] = value.to_dict() if value is not None else None
            elif isinstance(value, UUID):
                out[f.name] = str(value)
            else:
                out[f.name] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DCWageSummary:
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name in _DECIMAL_FIELDS:
                kwargs[f.name] = Decimal(value)
            elif f.name in ("additional_income_ids", "additional_expense_ids"):
                kwargs[f.name] = tuple(UUID(v) for v in value)
            elif f.name == "social_security":
                kwargs[f.name] = (
                    SocialSecurityCalculation.from_dict(value) if value else None
                )
            elif f.name in ("contractor_id", "rate_profile_id"):
                kwargs[f.name] = UUID(value) if value else None
            else:
                kwargs[f.name] = value
        return cls(**kwargs)


_DECIMAL_FIELDS = frozenset(
    f.name
    for f in fields(DCWageSummary)
    if f.type in ("Decimal", Decimal)
)


@dataclass(frozen=True)
class ContractorCalculationFailure:
    """One contractor's failure inside a calculation pass."""
    contractor_id: UUID
    code: str
    message: str


@dataclass(frozen=True)
class PeriodTotals:
    """Elementwise sums over a period's contractor summaries."""
    total_regular_hours: Decimal = ZERO
    total_ot_hours: Decimal = ZERO
    total_gross_wages: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_net_wages: Decimal = ZERO


@dataclass(frozen=True)
class WagePeriodInfo:
    """Immutable snapshot of a wage period row."""
    id: UUID
    period_code: str
    project_id: UUID
    start_date: date
    end_date: date
    period_days: int
    status: PeriodStatus
    dc_summaries: tuple[DCWageSummary, ...]
    totals: PeriodTotals
    has_unresolved_discrepancies: bool
    version: int
    calculated_at: datetime | None = None
    calculated_by_id: UUID | None = None
    approved_at: datetime | None = None
    approved_by_id: UUID | None = None
    paid_at: datetime | None = None
    paid_by_id: UUID | None = None
    locked_at: datetime | None = None
    locked_by_id: UUID | None = None
    notes: str | None = None
