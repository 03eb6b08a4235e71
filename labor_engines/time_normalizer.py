"""
Time Normalizer (``labor_engines.time_normalizer``).

Responsibility
--------------
Turn raw start/end timestamps into payable minutes:

* elapsed time (plus 24 hours when the record is flagged overnight),
* floored to the rounding granularity (5 minutes) -- never rounded up,
* minus a fixed lunch break for ``regular`` records spanning the break
  window, floored at zero,
* summed per work-type bucket for a contractor's period.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO database,
ZERO clock reads.  The policy is passed in by the caller.

Invariants enforced
-------------------
* ``total_minutes`` is a non-negative multiple of ``rounding_minutes`` and
  never exceeds the true elapsed minutes.
* ``net_minutes >= 0``.
* OT records never receive a break deduction.

Failure modes
-------------
* ``InvalidTimeSpanError`` when a non-overnight record ends before it
  starts, or an overnight record's adjusted span is still negative.
  Zero-length spans are valid and yield zero hours.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal

from labor_config.schema import WagePolicy
from labor_engines.tracer import traced_engine
from labor_kernel.db.types import MINUTES_PER_HOUR, ZERO, minutes_to_hours
from labor_kernel.domain.attendance import (
    AttendanceRecord,
    HourBuckets,
    NormalizedHours,
    WorkType,
)
from labor_kernel.exceptions import InvalidTimeSpanError

_OVERNIGHT = timedelta(hours=24)


def _elapsed(start: datetime, end: datetime, is_overnight: bool) -> timedelta:
    if not is_overnight and end < start:
        raise InvalidTimeSpanError(start.isoformat(), end.isoformat(), is_overnight)
    elapsed = end - start
    if is_overnight:
        elapsed += _OVERNIGHT
    if elapsed < timedelta(0):
        raise InvalidTimeSpanError(start.isoformat(), end.isoformat(), is_overnight)
    return elapsed


def floor_minutes(minutes: int, granularity: int) -> int:
    """Floor ``minutes`` to a multiple of ``granularity``."""
    return minutes - (minutes % granularity)


def calculate_total_minutes(
    start: datetime,
    end: datetime,
    is_overnight: bool,
    policy: WagePolicy,
) -> int:
    """Elapsed whole minutes, floored to the rounding granularity."""
    elapsed = _elapsed(start, end, is_overnight)
    whole_minutes = int(elapsed.total_seconds() // 60)
    return floor_minutes(whole_minutes, policy.rounding_minutes)


def calculate_total_hours(
    start: datetime,
    end: datetime,
    is_overnight: bool,
    policy: WagePolicy,
) -> Decimal:
    """
    Total hours for a record.

    08:00-17:04 yields 9.0 (the 4 excess minutes are discarded);
    22:00-06:00 overnight yields 8.0.
    """
    return minutes_to_hours(calculate_total_minutes(start, end, is_overnight, policy))


def calculate_break_hours(
    start: datetime,
    end: datetime,
    work_type: WorkType,
    policy: WagePolicy,
) -> Decimal:
    """
    Lunch-break deduction for a record.

    Only ``regular`` records qualify, and only when the record starts before
    the window closes (start hour < 13) and ends after it opens (end hour > 12).
    An 08:00-12:00 record therefore gets no deduction; 08:00-13:00 gets 1.0.
    """
    if WorkType(work_type) is not WorkType.REGULAR:
        return ZERO
    window = policy.break_window
    if start.hour < window.end.hour and end.hour > window.start.hour:
        return policy.break_hours
    return ZERO


def normalize(
    start: datetime,
    end: datetime,
    work_type: WorkType,
    is_overnight: bool,
    policy: WagePolicy,
) -> NormalizedHours:
    """Total, break and net minutes for one record."""
    total_minutes = calculate_total_minutes(start, end, is_overnight, policy)
    break_hours = calculate_break_hours(start, end, work_type, policy)
    break_minutes = int(break_hours * MINUTES_PER_HOUR)
    return NormalizedHours(total_minutes=total_minutes, break_minutes=break_minutes)


def normalize_record(record: AttendanceRecord, policy: WagePolicy) -> NormalizedHours:
    return normalize(
        record.start_time,
        record.end_time,
        record.work_type,
        record.is_overnight,
        policy,
    )


@traced_engine("time_normalizer", "1.0", fingerprint_fields=("records",))
def bucket_hours(
    records: Iterable[AttendanceRecord],
    policy: WagePolicy,
) -> HourBuckets:
    """Sum net minutes of ``records`` into regular and per-window OT buckets."""
    totals = {work_type: 0 for work_type in WorkType}
    for record in records:
        totals[WorkType(record.work_type)] += normalize_record(record, policy).net_minutes

    return HourBuckets(
        regular_minutes=totals[WorkType.REGULAR],
        ot_morning_minutes=totals[WorkType.OT_MORNING],
        ot_noon_minutes=totals[WorkType.OT_NOON],
        ot_evening_minutes=totals[WorkType.OT_EVENING],
    )
