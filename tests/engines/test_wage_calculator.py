"""
Tests for the wage calculator engine.

Covers:
- Social security: rate, floor, cap, exemption, half-up rounding
- Late deduction step function
- Follower accommodation
- Full summary breakdown and its arithmetic invariants
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from labor_config import WagePolicy
from labor_engines.wage_calculator import (
    calculate_follower_accommodation,
    calculate_late_deduction,
    calculate_social_security,
    calculate_wage_summary,
    is_exempt_employee_id,
)
from labor_kernel.domain.attendance import HourBuckets
from labor_kernel.domain.wages import ContractorInfo, DCRateProfile, DCWageSummary, LineItem
from labor_kernel.exceptions import MissingRateFieldError

POLICY = WagePolicy()
MONTH = "2025-01"


def _contractor(exempt: bool = False) -> ContractorInfo:
    return ContractorInfo(
        id=uuid4(),
        employee_id="900001" if exempt else "100001",
        name="Somchai",
        skill_name="Welder",
        is_social_security_exempt=exempt,
    )


def _profile(contractor: ContractorInfo, **overrides) -> DCRateProfile:
    fields = dict(
        contractor_id=contractor.id,
        effective_date=date(2025, 1, 1),
        hourly_rate=Decimal("320"),
        professional_rate=Decimal("120"),
        phone_allowance=Decimal("200"),
        follower_count=4,
    )
    fields.update(overrides)
    return DCRateProfile(**fields)


def _item(contractor: ContractorInfo, amount: str, item_type: str = "bonus") -> LineItem:
    return LineItem(
        id=uuid4(),
        contractor_id=contractor.id,
        wage_period_id=uuid4(),
        item_type=item_type,
        amount=Decimal(amount),
    )


STANDARD_BUCKETS = HourBuckets(regular_minutes=80 * 60, ot_evening_minutes=5 * 60)


class TestSocialSecurity:

    def test_five_percent_between_floor_and_cap(self):
        ss = calculate_social_security(Decimal("10000"), False, MONTH, POLICY)
        assert ss.calculated_amount == Decimal("500.00")
        assert ss.final_amount == Decimal("500.00")

    def test_floor(self):
        ss = calculate_social_security(Decimal("1000"), False, MONTH, POLICY)
        assert ss.calculated_amount == Decimal("50.00")
        assert ss.final_amount == Decimal("83.00")

    def test_zero_gross_still_pays_floor(self):
        assert calculate_social_security(Decimal("0"), False, MONTH, POLICY).final_amount == 83

    def test_cap(self):
        ss = calculate_social_security(Decimal("20000"), False, MONTH, POLICY)
        assert ss.capped_amount == Decimal("750.00")
        assert ss.final_amount == Decimal("750.00")

    def test_exempt_pays_nothing(self):
        ss = calculate_social_security(Decimal("20000"), True, MONTH, POLICY)
        assert ss.is_exempt
        assert ss.capped_amount == Decimal("750.00")
        assert ss.final_amount == Decimal("0.00")

    def test_half_up_rounding(self):
        ss = calculate_social_security(Decimal("1670.10"), False, MONTH, POLICY)
        assert ss.calculated_amount == Decimal("83.51")

    def test_breakdown_round_trips(self):
        ss = calculate_social_security(Decimal("12345.67"), False, MONTH, POLICY)
        assert type(ss).from_dict(ss.to_dict()) == ss


class TestLateDeduction:

    def test_fourteen_minutes_free(self):
        assert calculate_late_deduction(14, Decimal("320"), POLICY) == Decimal("0.00")

    def test_fifteen_minutes_costs_an_hour(self):
        assert calculate_late_deduction(15, Decimal("320"), POLICY) == Decimal("320.00")

    def test_two_hours_late_still_one_hour(self):
        assert calculate_late_deduction(120, Decimal("320"), POLICY) == Decimal("320.00")


def test_follower_accommodation():
    assert calculate_follower_accommodation(4, POLICY) == Decimal("1200.00")
    assert calculate_follower_accommodation(0, POLICY) == Decimal("0.00")


def test_exemption_prefix_rule():
    assert is_exempt_employee_id("900123", "9")
    assert not is_exempt_employee_id("190000", "9")
    assert not is_exempt_employee_id("900123", "")


class TestWageSummary:

    def test_standard_breakdown(self):
        contractor = _contractor()
        summary = calculate_wage_summary(
            contractor, _profile(contractor), STANDARD_BUCKETS, (), (), (), MONTH, POLICY,
        )
        assert summary.regular_hours == Decimal("80")
        assert summary.total_ot_hours == Decimal("5")
        assert summary.ot_evening_hours == Decimal("5")
        assert summary.regular_wages == Decimal("25600.00")
        assert summary.ot_wages == Decimal("2400.00")
        assert summary.professional_fees == Decimal("9600.00")
        assert summary.phone_allowance == Decimal("200.00")
        assert summary.total_income == Decimal("37800.00")
        assert summary.follower_accommodation == Decimal("1200.00")
        assert summary.social_security_deduction == Decimal("750.00")
        assert summary.total_expenses == Decimal("1950.00")
        assert summary.net_wages == Decimal("35850.00")
        assert summary.gross_wages == summary.total_income

    def test_professional_fees_exclude_overtime(self):
        contractor = _contractor()
        buckets = HourBuckets(regular_minutes=0, ot_morning_minutes=600)
        summary = calculate_wage_summary(
            contractor, _profile(contractor), buckets, (), (), (), MONTH, POLICY,
        )
        assert summary.professional_fees == Decimal("0.00")
        assert summary.ot_wages == Decimal("4800.00")

    def test_line_items_and_late_days(self):
        contractor = _contractor()
        bonus = _item(contractor, "500")
        tools = _item(contractor, "100", "tools")
        summary = calculate_wage_summary(
            contractor, _profile(contractor), STANDARD_BUCKETS,
            (bonus,), (tools,), (20, 10), MONTH, POLICY,
        )
        assert summary.additional_income == Decimal("500.00")
        assert summary.additional_expenses == Decimal("100.00")
        assert summary.late_days == 1
        assert summary.late_deductions == Decimal("320.00")
        assert summary.additional_income_ids == (bonus.id,)
        assert summary.additional_expense_ids == (tools.id,)
        assert summary.net_wages == Decimal("35930.00")

    def test_exempt_contractor(self):
        contractor = _contractor(exempt=True)
        summary = calculate_wage_summary(
            contractor, _profile(contractor), STANDARD_BUCKETS, (), (), (), MONTH, POLICY,
        )
        assert summary.social_security_deduction == Decimal("0.00")
        assert summary.net_wages == Decimal("36600.00")

    def test_equipment_costs_are_expenses(self):
        contractor = _contractor()
        profile = _profile(
            contractor,
            accommodation_cost=Decimal("1500"),
            refrigerator_cost=Decimal("100"),
            tv_cost=Decimal("50.50"),
            portable_ac_cost=Decimal("200"),
        )
        summary = calculate_wage_summary(
            contractor, profile, STANDARD_BUCKETS, (), (), (), MONTH, POLICY,
        )
        assert summary.equipment_costs == Decimal("350.50")
        assert summary.total_expenses == Decimal("3800.50")

    def test_minute_pay_rounds_half_up(self):
        contractor = _contractor()
        profile = _profile(
            contractor, hourly_rate=Decimal("100"), professional_rate=Decimal("0"),
            phone_allowance=Decimal("0"), follower_count=0,
        )
        summary = calculate_wage_summary(
            contractor, profile, HourBuckets(regular_minutes=1), (), (), (), MONTH, POLICY,
        )
        assert summary.regular_wages == Decimal("1.67")

    def test_summary_dict_round_trip(self):
        contractor = _contractor()
        summary = calculate_wage_summary(
            contractor, _profile(contractor), STANDARD_BUCKETS,
            (_item(contractor, "75.25"),), (), (30,), MONTH, POLICY,
        )
        assert DCWageSummary.from_dict(summary.to_dict()) == summary

    def test_deterministic(self):
        contractor = _contractor()
        profile = _profile(contractor)
        first = calculate_wage_summary(
            contractor, profile, STANDARD_BUCKETS, (), (), (20,), MONTH, POLICY,
        )
        second = calculate_wage_summary(
            contractor, profile, STANDARD_BUCKETS, (), (), (20,), MONTH, POLICY,
        )
        assert first == second


class TestRateProfileValidation:

    def test_missing_hourly_rate(self):
        contractor = _contractor()
        with pytest.raises(MissingRateFieldError) as exc_info:
            _profile(contractor, hourly_rate=None)
        assert exc_info.value.field_name == "hourly_rate"

    def test_negative_rate(self):
        contractor = _contractor()
        with pytest.raises(MissingRateFieldError) as exc_info:
            _profile(contractor, professional_rate=Decimal("-1"))
        assert exc_info.value.reason == "negative"
