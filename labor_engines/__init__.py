"""
Module: labor_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines of the
    wage pipeline: time normalization, scan reconciliation, discrepancy
    detection, wage calculation and period aggregation.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  May import
    labor_kernel.domain, labor_kernel.db.types, labor_kernel.exceptions and
    labor_config.schema.  MUST NOT import services, selectors or models.

Invariants enforced:
    - Purity: engines never read the clock or the database; dates and the
      wage policy are passed in.
    - Decimal-only money arithmetic.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine``
    (``labor_engines.tracer``), emitting LABOR_ENGINE_TRACE records.
"""

from labor_engines.discrepancy import (
    DailyComparison,
    classify_severity,
    compare_days,
    detect_discrepancy,
    is_surfaceable,
)
from labor_engines.period_aggregator import (
    ALLOWED_TRANSITIONS,
    aggregate_totals,
    check_recalculation_allowed,
    generate_period_code,
    has_unresolved,
    in_window,
    period_month,
    validate_period_span,
    validate_transition,
)
from labor_engines.scan_reconciliation import (
    check_late,
    classify_scan_behavior,
    late_arrivals,
    round_down_to_granularity,
    scan_day_to_attendance,
    scan_records,
)
from labor_engines.time_normalizer import (
    bucket_hours,
    calculate_break_hours,
    calculate_total_hours,
    normalize,
    normalize_record,
)
from labor_engines.wage_calculator import (
    calculate_follower_accommodation,
    calculate_late_deduction,
    calculate_social_security,
    calculate_wage_summary,
    is_exempt_employee_id,
)

__all__ = [
    "DailyComparison",
    "classify_severity",
    "compare_days",
    "detect_discrepancy",
    "is_surfaceable",
    "ALLOWED_TRANSITIONS",
    "aggregate_totals",
    "check_recalculation_allowed",
    "generate_period_code",
    "has_unresolved",
    "in_window",
    "period_month",
    "validate_period_span",
    "validate_transition",
    "check_late",
    "classify_scan_behavior",
    "late_arrivals",
    "round_down_to_granularity",
    "scan_day_to_attendance",
    "scan_records",
    "bucket_hours",
    "calculate_break_hours",
    "calculate_total_hours",
    "normalize",
    "normalize_record",
    "calculate_follower_accommodation",
    "calculate_late_deduction",
    "calculate_social_security",
    "calculate_wage_summary",
    "is_exempt_employee_id",
]
