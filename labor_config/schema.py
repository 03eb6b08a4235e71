"""
Wage Policy Schema (``labor_config.schema``).

Responsibility
--------------
Frozen dataclasses describing every tunable constant of the wage engine:
multipliers, caps, thresholds, time windows and calculation-pass limits.

Architecture position
---------------------
**Config layer** -- pure data.  Consumed by ``labor_engines`` (passed in as
an argument, never imported as a global) and by services.

Invariants enforced
-------------------
* All monetary and rate values are ``Decimal``.
* Every window has ``start <= end`` and every threshold is non-negative
  (checked in ``__post_init__``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from decimal import Decimal


@dataclass(frozen=True)
class TimeWindow:
    """A same-day wall-clock window, inclusive at both ends."""
    start: time
    end: time

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")

    def contains(self, moment: time) -> bool:
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class SocialSecurityPolicy:
    rate: Decimal = Decimal("0.05")
    min_contribution: Decimal = Decimal("83")
    max_contribution: Decimal = Decimal("750")
    exempt_employee_id_prefix: str = "9"

    def __post_init__(self):
        if self.rate < 0:
            raise ValueError("social security rate cannot be negative")
        if self.min_contribution > self.max_contribution:
            raise ValueError("social security min exceeds max")


@dataclass(frozen=True)
class LatePolicy:
    threshold_minutes: int = 15
    deduction_hours: Decimal = Decimal("1")

    def __post_init__(self):
        if self.threshold_minutes < 0:
            raise ValueError("late threshold cannot be negative")


@dataclass(frozen=True)
class DiscrepancyPolicy:
    """``warning`` above warning_threshold; nothing persisted at or below noise."""
    warning_threshold_hours: Decimal = Decimal("2.0")
    noise_threshold_hours: Decimal = Decimal("0.5")
    block_approval_on_unresolved: bool = False

    def __post_init__(self):
        if self.noise_threshold_hours < 0 or self.warning_threshold_hours < 0:
            raise ValueError("discrepancy thresholds cannot be negative")


@dataclass(frozen=True)
class CalculationPolicy:
    """Limits for one calculation pass."""
    max_workers: int = 4
    timeout_seconds: float = 120.0
    collect_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.1

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.collect_max_attempts < 1:
            raise ValueError("collect_max_attempts must be >= 1")


def _default_ot_windows() -> dict[str, TimeWindow]:
    return {
        "ot_morning": TimeWindow(time(3, 0), time(8, 0)),
        "ot_noon": TimeWindow(time(12, 0), time(13, 0)),
        "ot_evening": TimeWindow(time(17, 0), time(22, 0)),
    }


@dataclass(frozen=True)
class WagePolicy:
    """
    The complete, immutable policy a calculation runs under.

    ``checksum`` is filled in by the loader from the source document; a
    policy built in code carries an empty checksum.
    """
    ot_multiplier: Decimal = Decimal("1.5")
    follower_accommodation_rate: Decimal = Decimal("300")
    rounding_minutes: int = 5
    break_window: TimeWindow = field(
        default_factory=lambda: TimeWindow(time(12, 0), time(13, 0))
    )
    break_hours: Decimal = Decimal("1.0")
    period_days: int = 15
    work_start: time = time(8, 0)
    money_precision: Decimal = Decimal("0.01")
    ot_windows: dict[str, TimeWindow] = field(default_factory=_default_ot_windows)
    social_security: SocialSecurityPolicy = field(default_factory=SocialSecurityPolicy)
    late: LatePolicy = field(default_factory=LatePolicy)
    discrepancy: DiscrepancyPolicy = field(default_factory=DiscrepancyPolicy)
    calculation: CalculationPolicy = field(default_factory=CalculationPolicy)
    name: str = "default"
    checksum: str = ""

    def __post_init__(self):
        if self.rounding_minutes < 1:
            raise ValueError("rounding_minutes must be >= 1")
        if self.period_days < 1:
            raise ValueError("period_days must be >= 1")
        if self.ot_multiplier < 0:
            raise ValueError("ot_multiplier cannot be negative")
        missing = {"ot_morning", "ot_noon", "ot_evening"} - set(self.ot_windows)
        if missing:
            raise ValueError(f"Missing OT windows: {sorted(missing)}")

    def __hash__(self) -> int:
        return hash((self.name, self.checksum))
