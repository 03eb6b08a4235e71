"""
Period Aggregator (``labor_engines.period_aggregator``).

Responsibility
--------------
Pure rules of the wage period aggregate:

* period code derivation (``YYYYMM-P1`` when the period starts on day 1,
  otherwise ``YYYYMM-P2``),
* the exact-span precondition (end - start == 15 days),
* the forward-only lifecycle ``draft -> calculated -> approved -> paid ->
  locked``,
* the recalculation guard,
* elementwise period totals over contractor summaries.

Architecture position
---------------------
**Engines layer** -- pure functional core.  The stateful side is
``labor_kernel.services.wage_period_service`` and
``labor_services.period_calculation``.

Invariants enforced
-------------------
* The period window is half-open: ``start_date <= d < end_date``.
* No transition returns a period to an earlier state, except the explicit
  forced recalculation of an approved or paid period back to
  ``calculated``.
* A locked period is never recalculated.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from labor_config.schema import WagePolicy
from labor_engines.tracer import traced_engine
from labor_kernel.db.types import ZERO
from labor_kernel.domain.attendance import ScanDiscrepancyInfo
from labor_kernel.domain.wages import DCWageSummary, PeriodStatus, PeriodTotals
from labor_kernel.exceptions import (
    InvalidPeriodSpanError,
    InvalidPeriodTransitionError,
    PeriodRecalculationError,
)

ALLOWED_TRANSITIONS: dict[PeriodStatus, frozenset[PeriodStatus]] = {
    PeriodStatus.DRAFT: frozenset({PeriodStatus.CALCULATED}),
    PeriodStatus.CALCULATED: frozenset({PeriodStatus.CALCULATED, PeriodStatus.APPROVED}),
    PeriodStatus.APPROVED: frozenset({PeriodStatus.PAID}),
    PeriodStatus.PAID: frozenset({PeriodStatus.LOCKED}),
    PeriodStatus.LOCKED: frozenset(),
}

RECALCULABLE = frozenset({PeriodStatus.DRAFT, PeriodStatus.CALCULATED})
FORCE_RECALCULABLE = frozenset({PeriodStatus.APPROVED, PeriodStatus.PAID})


def generate_period_code(start_date: date) -> str:
    """2025-01-01 -> ``202501-P1``; 2025-01-16 -> ``202501-P2``."""
    half = "P1" if start_date.day == 1 else "P2"
    return f"{start_date:%Y%m}-{half}"


def period_month(start_date: date) -> str:
    return f"{start_date:%Y-%m}"


def validate_period_span(start_date: date, end_date: date, policy: WagePolicy) -> None:
    """
    Raises:
        InvalidPeriodSpanError: Unless ``end - start`` is exactly the
            configured number of days.
    """
    actual = (end_date - start_date).days
    if actual != policy.period_days:
        raise InvalidPeriodSpanError(
            start_date.isoformat(), end_date.isoformat(), actual, policy.period_days,
        )


def in_window(day: date, start_date: date, end_date: date) -> bool:
    return start_date <= day < end_date


def validate_transition(
    period_code: str,
    current: PeriodStatus,
    target: PeriodStatus,
) -> None:
    """
    Raises:
        InvalidPeriodTransitionError: If ``target`` is not reachable from
            ``current`` in one step.
    """
    current = PeriodStatus(current)
    target = PeriodStatus(target)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidPeriodTransitionError(period_code, current.value, target.value)


def check_recalculation_allowed(
    period_code: str,
    status: PeriodStatus,
    force: bool,
) -> bool:
    """
    Decide whether a calculation pass may run.

    Returns:
        True when the pass is a forced recalculation that will reset an
        approved or paid period to ``calculated``; False for an ordinary
        pass over a draft or calculated period.

    Raises:
        PeriodRecalculationError: For a locked period, or an approved/paid
            period without ``force``.
    """
    status = PeriodStatus(status)
    if status in RECALCULABLE:
        return False
    if status is PeriodStatus.LOCKED:
        raise PeriodRecalculationError(period_code, status.value, "period is locked")
    if not force:
        raise PeriodRecalculationError(
            period_code, status.value, "recalculation requires force=True",
        )
    return True


def has_unresolved(discrepancies: Iterable[ScanDiscrepancyInfo]) -> bool:
    return any(d.status.is_unresolved for d in discrepancies)


@traced_engine("period_aggregator", "1.0", fingerprint_fields=("summaries",))
def aggregate_totals(summaries: Iterable[DCWageSummary]) -> PeriodTotals:
    """Elementwise sums; gross is total income and deductions total expenses."""
    regular = ot = gross = deductions = net = ZERO
    for summary in summaries:
        regular += summary.regular_hours
        ot += summary.total_ot_hours
        gross += summary.total_income
        deductions += summary.total_expenses
        net += summary.net_wages
    return PeriodTotals(
        total_regular_hours=regular,
        total_ot_hours=ot,
        total_gross_wages=gross,
        total_deductions=deductions,
        total_net_wages=net,
    )
