"""
Attendance Domain Types (``labor_kernel.domain.attendance``).

Responsibility
--------------
Frozen value objects for raw time data and its normalized form: attendance
records (manual reports, OT entries, scan-derived days), fingerprint punches,
normalized hours, hour buckets, late arrivals, and scan discrepancies.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Consumed by the
``labor_engines`` calculation core and returned by selectors.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* Hours are carried as whole minutes; Decimal hours are derived, never stored
  as floats.
* Net minutes are never negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from labor_kernel.db.types import minutes_to_hours


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class WorkType(str, Enum):
    """Work-type tag of an attendance record."""
    REGULAR = "regular"
    OT_MORNING = "ot_morning"
    OT_NOON = "ot_noon"
    OT_EVENING = "ot_evening"

    @property
    def is_overtime(self) -> bool:
        return self is not WorkType.REGULAR


class RecordSource(str, Enum):
    """Where an attendance record came from."""
    MANUAL = "manual"
    SCAN = "scan"


class ReportStatus(str, Enum):
    """Daily report workflow states."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    LOCKED = "locked"


class ChangeType(str, Enum):
    """Edit history change kinds."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"


class ScanBehavior(str, Enum):
    """Classification of a fingerprint punch by time of day."""
    OT_MORNING = "ot_morning"
    REGULAR_IN = "regular_in"
    REGULAR_OUT = "regular_out"
    OT_NOON = "ot_noon"
    OT_EVENING = "ot_evening"


class DiscrepancySeverity(str, Enum):
    """Severity of a reported-vs-scanned mismatch."""
    INFO = "info"
    WARNING = "warning"


class DiscrepancyStatus(str, Enum):
    """Operator-driven resolution lifecycle."""
    PENDING = "pending"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    IGNORED = "ignored"

    @property
    def is_unresolved(self) -> bool:
        return self in (DiscrepancyStatus.PENDING, DiscrepancyStatus.INVESTIGATING)


# ---------------------------------------------------------------------------
# Raw records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttendanceRecord:
    """Unified view over a daily report, an OT entry, or a scanned day."""
    contractor_id: UUID
    project_id: UUID
    work_date: date
    start_time: datetime
    end_time: datetime
    work_type: WorkType
    is_overnight: bool = False
    source: RecordSource = RecordSource.MANUAL
    record_id: UUID | None = None


@dataclass(frozen=True)
class ScanPunch:
    """A single fingerprint-clock punch."""
    contractor_id: UUID
    project_id: UUID
    employee_id: str
    scan_time: datetime
    work_date: date | None = None

    @property
    def effective_work_date(self) -> date:
        return self.work_date or self.scan_time.date()


@dataclass(frozen=True)
class LateArrival:
    """Late minutes for one contractor on one day."""
    contractor_id: UUID
    work_date: date
    late_minutes: int


# ---------------------------------------------------------------------------
# Normalized hours
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NormalizedHours:
    """Elapsed time after flooring and break deduction."""
    total_minutes: int
    break_minutes: int = 0

    def __post_init__(self):
        if self.total_minutes < 0:
            raise ValueError("total_minutes cannot be negative")
        if self.break_minutes < 0:
            raise ValueError("break_minutes cannot be negative")

    @property
    def net_minutes(self) -> int:
        return max(0, self.total_minutes - self.break_minutes)

    @property
    def total_hours(self) -> Decimal:
        return minutes_to_hours(self.total_minutes)

    @property
    def break_hours(self) -> Decimal:
        return minutes_to_hours(self.break_minutes)

    @property
    def net_hours(self) -> Decimal:
        return minutes_to_hours(self.net_minutes)


@dataclass(frozen=True)
class HourBuckets:
    """Net minutes per work-type bucket for one contractor and period."""
    regular_minutes: int = 0
    ot_morning_minutes: int = 0
    ot_noon_minutes: int = 0
    ot_evening_minutes: int = 0

    @property
    def total_ot_minutes(self) -> int:
        return self.ot_morning_minutes + self.ot_noon_minutes + self.ot_evening_minutes

    @property
    def total_minutes(self) -> int:
        return self.regular_minutes + self.total_ot_minutes

    @property
    def regular_hours(self) -> Decimal:
        return minutes_to_hours(self.regular_minutes)

    @property
    def total_ot_hours(self) -> Decimal:
        return minutes_to_hours(self.total_ot_minutes)


# ---------------------------------------------------------------------------
# Discrepancies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiscrepancyResult:
    """Outcome of comparing reported and scanned hours for one day."""
    reported_hours: Decimal
    scanned_hours: Decimal
    difference: Decimal
    severity: DiscrepancySeverity


@dataclass(frozen=True)
class ScanDiscrepancyInfo:
    """Persisted discrepancy, as returned by selectors and services."""
    id: UUID
    daily_report_id: UUID
    contractor_id: UUID
    project_id: UUID
    work_date: date
    reported_hours: Decimal
    scanned_hours: Decimal
    hours_difference: Decimal
    severity: DiscrepancySeverity
    status: DiscrepancyStatus
    detection_reason: str
    resolution_notes: str | None = None
    resolved_at: datetime | None = None
    resolved_by_id: UUID | None = None
