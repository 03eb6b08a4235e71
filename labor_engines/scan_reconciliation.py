"""
Scan Reconciliation Engine (``labor_engines.scan_reconciliation``).

Responsibility
--------------
Pure functions over fingerprint-clock punches:

* round a punch down to the rounding granularity,
* classify a punch by time of day (OT morning, regular in/out, OT noon,
  OT evening),
* compute late minutes against the work start time,
* pair a contractor's first and last punch of a day into a scan-sourced
  ``regular`` attendance record, used as the scanned side of discrepancy
  detection,
* derive per-day late arrivals from each day's first punch, skipping
  overtime-only days.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.

Invariants enforced
-------------------
* Scan-sourced records never contribute payable hours; they exist only to
  be compared with reported hours.
* A day with a single punch yields no scan record (no span to measure).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, time
from uuid import UUID

from labor_config.schema import WagePolicy
from labor_kernel.domain.attendance import (
    AttendanceRecord,
    LateArrival,
    RecordSource,
    ScanBehavior,
    ScanPunch,
    WorkType,
)


def round_down_to_granularity(ts: datetime, minutes: int) -> datetime:
    """Floor ``ts`` to a multiple of ``minutes`` within the hour; drop seconds."""
    return ts.replace(minute=ts.minute - ts.minute % minutes, second=0, microsecond=0)


def _minute_of_day(moment: datetime | time) -> int:
    return moment.hour * 60 + moment.minute


def classify_scan_behavior(ts: datetime, policy: WagePolicy) -> ScanBehavior:
    """
    Classify a punch by its time of day.

    Windows are half-open ``[start, end)``.  OT noon is checked before the
    regular day so a punch at 12:30 is ``ot_noon``.  Anything outside every
    window defaults to ``regular_in``.
    """
    minute = _minute_of_day(ts)
    morning = policy.ot_windows["ot_morning"]
    noon = policy.ot_windows["ot_noon"]
    evening = policy.ot_windows["ot_evening"]

    if _minute_of_day(morning.start) <= minute < _minute_of_day(morning.end):
        return ScanBehavior.OT_MORNING
    if _minute_of_day(noon.start) <= minute < _minute_of_day(noon.end):
        return ScanBehavior.OT_NOON
    if _minute_of_day(evening.start) <= minute < _minute_of_day(evening.end):
        return ScanBehavior.OT_EVENING
    if _minute_of_day(policy.work_start) <= minute < _minute_of_day(evening.start):
        if minute < _minute_of_day(policy.break_window.start):
            return ScanBehavior.REGULAR_IN
        return ScanBehavior.REGULAR_OUT
    return ScanBehavior.REGULAR_IN


def check_late(ts: datetime, work_start: time) -> tuple[bool, int]:
    """Return ``(is_late, late_minutes)`` for a punch against ``work_start``."""
    late_minutes = _minute_of_day(ts) - _minute_of_day(work_start)
    if late_minutes > 0:
        return True, late_minutes
    return False, 0


def group_by_day(
    punches: Iterable[ScanPunch],
) -> dict[tuple[UUID, date], list[ScanPunch]]:
    """Group punches by (contractor, work date), each group sorted by time."""
    groups: dict[tuple[UUID, date], list[ScanPunch]] = defaultdict(list)
    for punch in punches:
        groups[(punch.contractor_id, punch.effective_work_date)].append(punch)
    for day_punches in groups.values():
        day_punches.sort(key=lambda p: p.scan_time)
    return dict(groups)


def scan_day_to_attendance(punches: list[ScanPunch]) -> AttendanceRecord | None:
    """
    Pair the first and last punch of one contractor's day.

    ``punches`` must all belong to the same contractor and work date.
    """
    if len(punches) < 2:
        return None
    ordered = sorted(punches, key=lambda p: p.scan_time)
    first, last = ordered[0], ordered[-1]
    if first.contractor_id != last.contractor_id:
        raise ValueError("punches span more than one contractor")
    return AttendanceRecord(
        contractor_id=first.contractor_id,
        project_id=first.project_id,
        work_date=first.effective_work_date,
        start_time=first.scan_time,
        end_time=last.scan_time,
        work_type=WorkType.REGULAR,
        is_overnight=False,
        source=RecordSource.SCAN,
    )


def scan_records(punches: Iterable[ScanPunch]) -> tuple[AttendanceRecord, ...]:
    """Scan-sourced attendance records for every (contractor, day) with a span."""
    records = []
    grouped = group_by_day(punches)
    for key in sorted(grouped, key=lambda k: (str(k[0]), k[1])):
        record = scan_day_to_attendance(grouped[key])
        if record is not None:
            records.append(record)
    return tuple(records)


_LATE_EXEMPT = frozenset({ScanBehavior.OT_NOON, ScanBehavior.OT_EVENING})


def _opens_regular_day(ts: datetime, policy: WagePolicy) -> bool:
    """True when a day's first punch falls between OT-morning start and OT-evening start."""
    if classify_scan_behavior(ts, policy) in _LATE_EXEMPT:
        return False
    minute = _minute_of_day(ts)
    morning = policy.ot_windows["ot_morning"]
    evening = policy.ot_windows["ot_evening"]
    return _minute_of_day(morning.start) <= minute < _minute_of_day(evening.start)


def late_arrivals(
    punches: Iterable[ScanPunch],
    policy: WagePolicy,
) -> tuple[LateArrival, ...]:
    """
    Late minutes per (contractor, day), from the day's first punch.

    Days whose first punch is OT noon, OT evening or outside the working
    day (an overtime-only day) are not late arrivals.
    """
    result = []
    grouped = group_by_day(punches)
    for key in sorted(grouped, key=lambda k: (str(k[0]), k[1])):
        contractor_id, work_date = key
        first = grouped[key][0].scan_time
        if not _opens_regular_day(first, policy):
            continue
        is_late, minutes = check_late(first, policy.work_start)
        if is_late:
            result.append(
                LateArrival(
                    contractor_id=contractor_id,
                    work_date=work_date,
                    late_minutes=minutes,
                )
            )
    return tuple(result)
