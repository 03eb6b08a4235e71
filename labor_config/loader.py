"""
Wage Policy Loader (``labor_config.loader``).

Responsibility
--------------
Loads a YAML policy document and parses it into a frozen ``WagePolicy``.
Keys absent from the document keep their schema defaults; unknown keys are
rejected so that a typo never silently falls back to a default.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or bad value  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from labor_config.schema import (
    CalculationPolicy,
    DiscrepancyPolicy,
    LatePolicy,
    SocialSecurityPolicy,
    TimeWindow,
    WagePolicy,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def parse_time(value: Any) -> time:
    """Parse ``HH:MM`` (YAML hands over sexagesimal ints for unquoted 8:00)."""
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        # YAML 1.1 reads unquoted 8:00 as base-60 integer 480.
        return time(value // 60, value % 60)
    try:
        return time.fromisoformat(str(value))
    except ValueError as exc:
        raise ValueError(f"Invalid time: {value!r}") from exc


def parse_decimal(value: Any) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid decimal: {value!r}") from exc


def parse_window(data: dict[str, Any]) -> TimeWindow:
    return TimeWindow(start=parse_time(data["start"]), end=parse_time(data["end"]))


def _check_keys(section: str, data: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown keys in {section}: {sorted(unknown)}")


def parse_social_security(data: dict[str, Any]) -> SocialSecurityPolicy:
    _check_keys(
        "social_security", data,
        {"rate", "min_contribution", "max_contribution", "exempt_employee_id_prefix"},
    )
    defaults = SocialSecurityPolicy()
    return SocialSecurityPolicy(
        rate=parse_decimal(data.get("rate", defaults.rate)),
        min_contribution=parse_decimal(data.get("min_contribution", defaults.min_contribution)),
        max_contribution=parse_decimal(data.get("max_contribution", defaults.max_contribution)),
        exempt_employee_id_prefix=str(
            data.get("exempt_employee_id_prefix", defaults.exempt_employee_id_prefix)
        ),
    )


def parse_late(data: dict[str, Any]) -> LatePolicy:
    _check_keys("late", data, {"threshold_minutes", "deduction_hours"})
    defaults = LatePolicy()
    return LatePolicy(
        threshold_minutes=int(data.get("threshold_minutes", defaults.threshold_minutes)),
        deduction_hours=parse_decimal(data.get("deduction_hours", defaults.deduction_hours)),
    )


def parse_discrepancy(data: dict[str, Any]) -> DiscrepancyPolicy:
    _check_keys(
        "discrepancy", data,
        {"warning_threshold_hours", "noise_threshold_hours", "block_approval_on_unresolved"},
    )
    defaults = DiscrepancyPolicy()
    return DiscrepancyPolicy(
        warning_threshold_hours=parse_decimal(
            data.get("warning_threshold_hours", defaults.warning_threshold_hours)
        ),
        noise_threshold_hours=parse_decimal(
            data.get("noise_threshold_hours", defaults.noise_threshold_hours)
        ),
        block_approval_on_unresolved=bool(
            data.get("block_approval_on_unresolved", defaults.block_approval_on_unresolved)
        ),
    )


def parse_calculation(data: dict[str, Any]) -> CalculationPolicy:
    _check_keys(
        "calculation", data,
        {"max_workers", "timeout_seconds", "collect_max_attempts", "retry_base_delay_seconds"},
    )
    defaults = CalculationPolicy()
    return CalculationPolicy(
        max_workers=int(data.get("max_workers", defaults.max_workers)),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
        collect_max_attempts=int(
            data.get("collect_max_attempts", defaults.collect_max_attempts)
        ),
        retry_base_delay_seconds=float(
            data.get("retry_base_delay_seconds", defaults.retry_base_delay_seconds)
        ),
    )


_TOP_LEVEL_KEYS = {
    "name",
    "ot_multiplier",
    "follower_accommodation_rate",
    "rounding_minutes",
    "break_window",
    "break_hours",
    "period_days",
    "work_start",
    "money_precision",
    "ot_windows",
    "social_security",
    "late",
    "discrepancy",
    "calculation",
}


def parse_wage_policy(data: dict[str, Any]) -> WagePolicy:
    """
    Build a WagePolicy from a parsed YAML mapping.

    Postconditions:
        - The returned policy carries ``compute_checksum(data)``.
    """
    _check_keys("wage policy", data, _TOP_LEVEL_KEYS)
    defaults = WagePolicy()

    ot_windows = dict(defaults.ot_windows)
    for work_type, window in (data.get("ot_windows") or {}).items():
        if work_type not in ot_windows:
            raise ValueError(f"Unknown OT window: {work_type}")
        ot_windows[work_type] = parse_window(window)

    return WagePolicy(
        name=str(data.get("name", defaults.name)),
        ot_multiplier=parse_decimal(data.get("ot_multiplier", defaults.ot_multiplier)),
        follower_accommodation_rate=parse_decimal(
            data.get("follower_accommodation_rate", defaults.follower_accommodation_rate)
        ),
        rounding_minutes=int(data.get("rounding_minutes", defaults.rounding_minutes)),
        break_window=(
            parse_window(data["break_window"])
            if "break_window" in data else defaults.break_window
        ),
        break_hours=parse_decimal(data.get("break_hours", defaults.break_hours)),
        period_days=int(data.get("period_days", defaults.period_days)),
        work_start=(
            parse_time(data["work_start"]) if "work_start" in data else defaults.work_start
        ),
        money_precision=parse_decimal(data.get("money_precision", defaults.money_precision)),
        ot_windows=ot_windows,
        social_security=parse_social_security(data.get("social_security") or {}),
        late=parse_late(data.get("late") or {}),
        discrepancy=parse_discrepancy(data.get("discrepancy") or {}),
        calculation=parse_calculation(data.get("calculation") or {}),
        checksum=compute_checksum(data),
    )


def load_wage_policy(path: Path) -> WagePolicy:
    """Load and parse a policy YAML file."""
    return parse_wage_policy(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
