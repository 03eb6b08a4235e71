"""
Discrepancy Detector (``labor_engines.discrepancy``).

Responsibility
--------------
Compare a contractor's reported net hours for a day with the scanned net
hours for the same contractor, project and day.

* difference = reported - scanned (signed)
* severity is ``warning`` when |difference| > 2.0 hours, else ``info``
  (an exact match is ``info`` too; every comparison yields a result)
* results at or below the noise threshold (0.5 hours) are informational
  and are not surfaced to operators

Architecture position
---------------------
**Engines layer** -- pure functional core.  Persistence and the operator
resolution lifecycle live in ``labor_kernel.services.discrepancy_service``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from labor_config.schema import WagePolicy
from labor_engines.time_normalizer import normalize_record
from labor_engines.tracer import traced_engine
from labor_kernel.db.types import minutes_to_hours, round_hours
from labor_kernel.domain.attendance import (
    AttendanceRecord,
    DiscrepancyResult,
    DiscrepancySeverity,
    RecordSource,
    WorkType,
)


@dataclass(frozen=True)
class DailyComparison:
    """One contractor-day comparison, anchored to a daily report."""
    contractor_id: UUID
    project_id: UUID
    work_date: date
    daily_report_id: UUID
    result: DiscrepancyResult

    @property
    def detection_reason(self) -> str:
        return (
            f"Reported {self.result.reported_hours}h vs scanned "
            f"{self.result.scanned_hours}h (difference {self.result.difference}h)"
        )


def classify_severity(difference: Decimal, policy: WagePolicy) -> DiscrepancySeverity:
    """2.0 exactly is ``info``; 2.01 is ``warning``."""
    if abs(difference) > policy.discrepancy.warning_threshold_hours:
        return DiscrepancySeverity.WARNING
    return DiscrepancySeverity.INFO


def detect_discrepancy(
    reported_hours: Decimal,
    scanned_hours: Decimal,
    policy: WagePolicy,
) -> DiscrepancyResult:
    difference = reported_hours - scanned_hours
    return DiscrepancyResult(
        reported_hours=reported_hours,
        scanned_hours=scanned_hours,
        difference=difference,
        severity=classify_severity(difference, policy),
    )


def is_surfaceable(result: DiscrepancyResult, policy: WagePolicy) -> bool:
    """True when the difference exceeds the noise threshold."""
    return abs(result.difference) > policy.discrepancy.noise_threshold_hours


def _anchor_report(records: list[AttendanceRecord]) -> AttendanceRecord:
    regular = [r for r in records if WorkType(r.work_type) is WorkType.REGULAR]
    candidates = regular or records
    return min(candidates, key=lambda r: r.start_time)


@traced_engine(
    "discrepancy_detector", "1.0", fingerprint_fields=("manual_records", "scan_records"),
)
def compare_days(
    manual_records: Iterable[AttendanceRecord],
    scan_records: Iterable[AttendanceRecord],
    policy: WagePolicy,
) -> tuple[DailyComparison, ...]:
    """
    Compare every contractor-day that has both manual and scanned time.

    Reported hours are the summed net hours of all manual records of the
    day (regular and OT).  Scanned hours are the net hours of the scan span
    normalized as a ``regular`` record, so the lunch break is applied the
    same way on both sides.  Days with only one side are not compared.
    """
    manual_by_day: dict[tuple[UUID, date], list[AttendanceRecord]] = defaultdict(list)
    for record in manual_records:
        if record.source is RecordSource.MANUAL:
            manual_by_day[(record.contractor_id, record.work_date)].append(record)

    scanned_minutes: dict[tuple[UUID, date], int] = defaultdict(int)
    for record in scan_records:
        if record.source is RecordSource.SCAN:
            key = (record.contractor_id, record.work_date)
            scanned_minutes[key] += normalize_record(record, policy).net_minutes

    comparisons = []
    for key in sorted(manual_by_day.keys() & scanned_minutes.keys(),
                      key=lambda k: (str(k[0]), k[1])):
        day_records = manual_by_day[key]
        reported_minutes = sum(normalize_record(r, policy).net_minutes for r in day_records)
        anchor = _anchor_report(day_records)
        if anchor.record_id is None:
            raise ValueError("manual records must carry a record_id to be compared")
        result = detect_discrepancy(
            round_hours(minutes_to_hours(reported_minutes)),
            round_hours(minutes_to_hours(scanned_minutes[key])),
            policy,
        )
        comparisons.append(
            DailyComparison(
                contractor_id=key[0],
                project_id=anchor.project_id,
                work_date=key[1],
                daily_report_id=anchor.record_id,
                result=result,
            )
        )
    return tuple(comparisons)
