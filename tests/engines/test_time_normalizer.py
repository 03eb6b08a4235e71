"""
Tests for the time normalizer engine.

Covers:
- Flooring to the rounding granularity (never rounding up)
- Overnight spans
- Lunch-break deduction rules (regular only, window straddle)
- Invalid spans
- Per-bucket aggregation
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from labor_config import WagePolicy
from labor_engines.time_normalizer import (
    bucket_hours,
    calculate_break_hours,
    calculate_total_hours,
    calculate_total_minutes,
    floor_minutes,
    normalize,
)
from labor_kernel.domain.attendance import AttendanceRecord, WorkType
from labor_kernel.exceptions import InvalidTimeSpanError

DAY = date(2025, 1, 6)
POLICY = WagePolicy()


def _t(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2025, 1, 6, hour, minute, second)


def _record(start, end, work_type=WorkType.REGULAR, is_overnight=False):
    return AttendanceRecord(
        contractor_id=uuid4(),
        project_id=uuid4(),
        work_date=DAY,
        start_time=start,
        end_time=end,
        work_type=work_type,
        is_overnight=is_overnight,
    )


class TestTotalHours:

    def test_excess_minutes_are_discarded(self):
        assert calculate_total_hours(_t(8), _t(17, 4), False, POLICY) == Decimal("9")

    def test_exact_granularity_kept(self):
        assert calculate_total_minutes(_t(8), _t(8, 35), False, POLICY) == 35

    def test_seconds_never_round_up(self):
        hours = normalize(_t(8), _t(8, 4, 59), WorkType.OT_MORNING, False, POLICY)
        assert hours.total_minutes == 0

    def test_overnight_adds_a_day(self):
        assert calculate_total_hours(_t(22), _t(6), True, POLICY) == Decimal("8")

    def test_zero_length_is_valid(self):
        hours = normalize(_t(9), _t(9), WorkType.REGULAR, False, POLICY)
        assert hours.total_minutes == 0
        assert hours.net_minutes == 0

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidTimeSpanError):
            calculate_total_hours(_t(17), _t(8), False, POLICY)

    def test_floor_minutes(self):
        assert floor_minutes(59, 5) == 55
        assert floor_minutes(60, 5) == 60
        assert floor_minutes(4, 5) == 0


class TestBreakHours:

    def test_full_day_gets_break(self):
        assert calculate_break_hours(_t(8), _t(17), WorkType.REGULAR, POLICY) == Decimal("1.0")

    def test_morning_only_no_break(self):
        assert calculate_break_hours(_t(8), _t(12), WorkType.REGULAR, POLICY) == 0

    def test_ending_at_one_gets_break(self):
        hours = normalize(_t(8), _t(13), WorkType.REGULAR, False, POLICY)
        assert hours.break_minutes == 60
        assert hours.net_minutes == 240

    def test_afternoon_start_no_break(self):
        assert calculate_break_hours(_t(13), _t(17), WorkType.REGULAR, POLICY) == 0

    @pytest.mark.parametrize(
        "work_type", [WorkType.OT_MORNING, WorkType.OT_NOON, WorkType.OT_EVENING],
    )
    def test_overtime_never_gets_break(self, work_type):
        assert calculate_break_hours(_t(8), _t(17), work_type, POLICY) == 0

    def test_net_floored_at_zero(self):
        hours = normalize(_t(12, 30), _t(13, 10), WorkType.REGULAR, False, POLICY)
        assert hours.total_minutes == 40
        assert hours.break_minutes == 60
        assert hours.net_minutes == 0

    def test_overnight_regular_has_no_break(self):
        hours = normalize(_t(22), _t(6), WorkType.REGULAR, True, POLICY)
        assert hours.break_minutes == 0
        assert hours.net_hours == Decimal("8")


class TestBucketHours:

    def test_buckets_by_work_type(self):
        records = (
            _record(_t(8), _t(17)),
            _record(_t(8), _t(17)),
            _record(_t(17), _t(22), WorkType.OT_EVENING),
            _record(_t(12), _t(13), WorkType.OT_NOON),
            _record(_t(5), _t(8), WorkType.OT_MORNING),
        )
        buckets = bucket_hours(records, POLICY)
        assert buckets.regular_minutes == 960
        assert buckets.ot_evening_minutes == 300
        assert buckets.ot_noon_minutes == 60
        assert buckets.ot_morning_minutes == 180
        assert buckets.total_ot_minutes == 540
        assert buckets.total_minutes == 1500
        assert buckets.regular_hours == Decimal("16")

    def test_empty_records(self):
        buckets = bucket_hours((), POLICY)
        assert buckets.total_minutes == 0

    def test_emits_engine_trace(self, captured_logs):
        bucket_hours((_record(_t(8), _t(17)),), POLICY)
        traces = [r for r in captured_logs() if r["message"] == "LABOR_ENGINE_TRACE"]
        assert any(t["engine_name"] == "time_normalizer" for t in traces)
        assert all(t["input_fingerprint"] for t in traces)
