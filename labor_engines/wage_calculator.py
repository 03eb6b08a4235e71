"""
Wage Calculator (``labor_engines.wage_calculator``).

Responsibility
--------------
Turn a contractor's hour buckets, rate profile and ad hoc line items into a
complete ``DCWageSummary``.

Income::

    regular_wages      = regular hours x hourly rate
    ot_wages           = total OT hours x hourly rate x OT multiplier (1.5)
    professional_fees  = regular hours x professional rate (OT excluded)
    phone_allowance    = fixed, once per period
    additional_income  = sum of income line items

Expenses::

    accommodation_cost, follower_accommodation (count x 300),
    equipment_costs, additional_expenses,
    social_security_deduction (5% of gross, clamped to [83, 750], 0 if exempt),
    late_deductions (one hour's pay per day late by >= 15 minutes)

Architecture position
---------------------
**Engines layer** -- pure functional core.  Fetching profiles and storing
summaries is the caller's job.

Invariants enforced
-------------------
* Every component is quantized to money precision before it is summed, so
  ``net_wages == total_income - total_expenses`` holds exactly.
* Hour-based wages are computed from whole minutes, never from rounded
  hour figures.
* Identical inputs always produce an identical summary.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from labor_config.schema import WagePolicy
from labor_engines.tracer import traced_engine
from labor_kernel.db.types import (
    MINUTES_PER_HOUR,
    ZERO,
    minutes_to_hours,
    round_hours,
    round_money,
)
from labor_kernel.domain.attendance import HourBuckets
from labor_kernel.domain.wages import (
    ContractorInfo,
    DCRateProfile,
    DCWageSummary,
    LineItem,
    SocialSecurityCalculation,
)


def is_exempt_employee_id(employee_id: str, prefix: str) -> bool:
    """
    The legacy employee-ID prefix rule.

    Used only to seed ``is_social_security_exempt`` when a contractor is
    created; the calculator itself reads the explicit flag.
    """
    return bool(prefix) and employee_id.startswith(prefix)


def calculate_social_security(
    gross_wages: Decimal,
    is_exempt: bool,
    period_month: str,
    policy: WagePolicy,
) -> SocialSecurityCalculation:
    """
    Social-security withholding for one contractor and period.

    Zero gross still clamps up to the minimum; an exempt contractor pays 0
    whatever the gross.
    """
    ss = policy.social_security
    calculated = round_money(gross_wages * ss.rate)
    capped = min(max(calculated, ss.min_contribution), ss.max_contribution)
    capped = round_money(capped)
    return SocialSecurityCalculation(
        is_exempt=is_exempt,
        gross_wages=gross_wages,
        contribution_rate=ss.rate,
        calculated_amount=calculated,
        capped_amount=capped,
        final_amount=round_money(ZERO) if is_exempt else capped,
        period_month=period_month,
    )


def calculate_late_deduction(
    late_minutes: int,
    hourly_rate: Decimal,
    policy: WagePolicy,
) -> Decimal:
    """Step function: 14 minutes costs nothing, 15 costs one hour's pay."""
    if late_minutes >= policy.late.threshold_minutes:
        return round_money(hourly_rate * policy.late.deduction_hours)
    return round_money(ZERO)


def calculate_follower_accommodation(follower_count: int, policy: WagePolicy) -> Decimal:
    return round_money(Decimal(follower_count) * policy.follower_accommodation_rate)


def _pay_for_minutes(minutes: int, rate: Decimal) -> Decimal:
    return round_money(Decimal(minutes) * rate / MINUTES_PER_HOUR)


def _sum_items(items: Iterable[LineItem]) -> tuple[Decimal, tuple]:
    ordered = sorted(items, key=lambda item: str(item.id))
    total = sum((round_money(item.amount) for item in ordered), round_money(ZERO))
    return total, tuple(item.id for item in ordered)


@traced_engine(
    "wage_calculator",
    "1.0",
    fingerprint_fields=(
        "contractor", "profile", "buckets", "incomes", "expenses",
        "late_minutes", "period_month",
    ),
)
def calculate_wage_summary(
    contractor: ContractorInfo,
    profile: DCRateProfile,
    buckets: HourBuckets,
    incomes: Iterable[LineItem],
    expenses: Iterable[LineItem],
    late_minutes: Iterable[int],
    period_month: str,
    policy: WagePolicy,
) -> DCWageSummary:
    """
    Full income/expense breakdown for one contractor.

    Args:
        contractor: Identity and the explicit social-security exemption flag.
        profile: Rate profile effective at the period start.
        buckets: Net minutes per work-type bucket for the period.
        incomes: Additional income line items for this contractor+period.
        expenses: Additional expense line items for this contractor+period.
        late_minutes: Late minutes of each late day in the period.
        period_month: ``YYYY-MM`` of the period start.
        policy: Wage policy in effect.

    Returns:
        DCWageSummary whose net equals total income minus total expenses.
    """
    hourly = profile.hourly_rate

    regular_wages = _pay_for_minutes(buckets.regular_minutes, hourly)
    ot_wages = _pay_for_minutes(buckets.total_ot_minutes, hourly * policy.ot_multiplier)
    professional_fees = _pay_for_minutes(buckets.regular_minutes, profile.professional_rate)
    phone_allowance = round_money(profile.phone_allowance)
    additional_income, income_ids = _sum_items(incomes)

    total_income = (
        regular_wages + ot_wages + professional_fees + phone_allowance + additional_income
    )

    accommodation = round_money(profile.accommodation_cost)
    follower_accommodation = calculate_follower_accommodation(profile.follower_count, policy)
    refrigerator = round_money(profile.refrigerator_cost)
    sound_system = round_money(profile.sound_system_cost)
    tv = round_money(profile.tv_cost)
    washing_machine = round_money(profile.washing_machine_cost)
    portable_ac = round_money(profile.portable_ac_cost)
    equipment = refrigerator + sound_system + tv + washing_machine + portable_ac
    additional_expenses, expense_ids = _sum_items(expenses)

    social_security = calculate_social_security(
        total_income, contractor.is_social_security_exempt, period_month, policy,
    )

    late_deductions = round_money(ZERO)
    late_days = 0
    for minutes in late_minutes:
        deduction = calculate_late_deduction(minutes, hourly, policy)
        if deduction > 0:
            late_days += 1
            late_deductions += deduction

    total_expenses = (
        accommodation
        + follower_accommodation
        + equipment
        + additional_expenses
        + social_security.final_amount
        + late_deductions
    )

    return DCWageSummary(
        contractor_id=contractor.id,
        employee_id=contractor.employee_id,
        name=contractor.name,
        skill_name=contractor.skill_name,
        regular_hours=round_hours(buckets.regular_hours),
        ot_morning_hours=round_hours(minutes_to_hours(buckets.ot_morning_minutes)),
        ot_noon_hours=round_hours(minutes_to_hours(buckets.ot_noon_minutes)),
        ot_evening_hours=round_hours(minutes_to_hours(buckets.ot_evening_minutes)),
        total_ot_hours=round_hours(buckets.total_ot_hours),
        total_hours=round_hours(minutes_to_hours(buckets.total_minutes)),
        hourly_rate=hourly,
        professional_rate=profile.professional_rate,
        phone_allowance=phone_allowance,
        regular_wages=regular_wages,
        ot_wages=ot_wages,
        professional_fees=professional_fees,
        additional_income=additional_income,
        total_income=total_income,
        accommodation_cost=accommodation,
        follower_count=profile.follower_count,
        follower_accommodation=follower_accommodation,
        refrigerator_cost=refrigerator,
        sound_system_cost=sound_system,
        tv_cost=tv,
        washing_machine_cost=washing_machine,
        portable_ac_cost=portable_ac,
        equipment_costs=equipment,
        additional_expenses=additional_expenses,
        social_security_deduction=social_security.final_amount,
        late_deductions=late_deductions,
        late_days=late_days,
        total_expenses=total_expenses,
        net_wages=total_income - total_expenses,
        additional_income_ids=income_ids,
        additional_expense_ids=expense_ids,
        social_security=social_security,
        rate_profile_id=profile.profile_id,
    )
