"""
WagePeriodService -- wage period lifecycle and persistence.

Responsibility:
    Creates wage periods, drives the forward-only lifecycle
    (draft -> calculated -> approved -> paid -> locked), records ad hoc
    income/expense line items, and applies a completed calculation pass to
    the period row in one wholesale replacement.

Architecture position:
    Kernel > Services -- imperative shell around
    ``labor_engines.period_aggregator``.

Invariants enforced:
    - Creation requires end - start == 15 days exactly.
    - (project, period_code) is unique.
    - ``apply_calculation`` replaces every summary and total at once and
      only against the version the pass started from.
    - A period is never deleted.

Failure modes:
    - InvalidPeriodSpanError, ProjectNotFoundError, WagePeriodExistsError on
      creation.
    - WagePeriodNotFoundError for unknown ids.
    - InvalidPeriodTransitionError for out-of-order lifecycle actions.
    - UnresolvedDiscrepanciesError when approval is blocked by policy.
    - OptimisticLockError when the row changed underneath the caller.

Audit relevance:
    Every transition stamps the acting user and the injected clock time and
    logs a structured event.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from labor_engines.period_aggregator import (
    check_recalculation_allowed,
    generate_period_code,
    validate_period_span,
    validate_transition,
)
from labor_kernel.db.types import round_money
from labor_kernel.domain.wages import (
    DCWageSummary,
    LineItem,
    PeriodStatus,
    PeriodTotals,
    WagePeriodInfo,
)
from labor_kernel.exceptions import (
    InvalidLineItemError,
    OptimisticLockError,
    UnresolvedDiscrepanciesError,
    WagePeriodExistsError,
    WagePeriodNotFoundError,
)
from labor_kernel.logging_config import get_logger
from labor_kernel.models.rate_profile import AdditionalExpenseModel, AdditionalIncomeModel
from labor_kernel.models.wage_period import WagePeriodModel
from labor_kernel.selectors.contractor_selector import ContractorSelector
from labor_kernel.selectors.project_selector import ProjectSelector
from labor_kernel.services.base import BaseService

logger = get_logger("services.wage_period")


class WagePeriodService(BaseService):
    """Lifecycle operations on WagePeriodModel rows."""

    # ------------------------------------------------------------------
    # Creation and lookup
    # ------------------------------------------------------------------

    def create_period(
        self,
        project_id: UUID,
        start_date: date,
        end_date: date,
        actor_id: UUID,
        notes: str | None = None,
    ) -> WagePeriodInfo:
        """
        Create a draft period for ``project_id``.

        Raises:
            InvalidPeriodSpanError: Span is not exactly the policy length.
            ProjectNotFoundError: Unknown project.
            WagePeriodExistsError: Same code already exists for the project.
        """
        validate_period_span(start_date, end_date, self.policy)
        ProjectSelector(self.session).get(project_id)

        period_code = generate_period_code(start_date)
        if self.find_by_period_code(project_id, period_code) is not None:
            raise WagePeriodExistsError(period_code, str(project_id))

        period = WagePeriodModel(
            period_code=period_code,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
            period_days=self.policy.period_days,
            status=PeriodStatus.DRAFT.value,
            dc_summaries=[],
            total_regular_hours=Decimal("0"),
            total_ot_hours=Decimal("0"),
            total_gross_wages=Decimal("0"),
            total_deductions=Decimal("0"),
            total_net_wages=Decimal("0"),
            has_unresolved_discrepancies=False,
            notes=notes,
            created_by_id=actor_id,
        )
        self.session.add(period)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise WagePeriodExistsError(period_code, str(project_id)) from exc

        logger.info(
            "wage_period_created",
            extra={
                "period_code": period_code,
                "project_id": str(project_id),
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
        )
        return period.to_dto()

    def _load(self, period_id: UUID) -> WagePeriodModel:
        period = self.session.get(WagePeriodModel, period_id)
        if period is None:
            raise WagePeriodNotFoundError(str(period_id))
        return period

    def get_period(self, period_id: UUID) -> WagePeriodInfo:
        return self._load(period_id).to_dto()

    def find_by_period_code(self, project_id: UUID, period_code: str) -> WagePeriodInfo | None:
        row = self.session.execute(
            select(WagePeriodModel)
            .where(WagePeriodModel.project_id == project_id)
            .where(WagePeriodModel.period_code == period_code)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def list_by_project(self, project_id: UUID) -> list[WagePeriodInfo]:
        rows = self.session.execute(
            select(WagePeriodModel)
            .where(WagePeriodModel.project_id == project_id)
            .order_by(WagePeriodModel.start_date)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def list_by_status(self, status: PeriodStatus) -> list[WagePeriodInfo]:
        rows = self.session.execute(
            select(WagePeriodModel)
            .where(WagePeriodModel.status == PeriodStatus(status).value)
            .order_by(WagePeriodModel.start_date, WagePeriodModel.period_code)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _transition(self, period: WagePeriodModel, target: PeriodStatus) -> None:
        validate_transition(period.period_code, PeriodStatus(period.status), target)
        period.status = target.value

    def approve_period(self, period_id: UUID, actor_id: UUID) -> WagePeriodInfo:
        """calculated -> approved."""
        period = self._load(period_id)
        validate_transition(
            period.period_code, PeriodStatus(period.status), PeriodStatus.APPROVED,
        )
        if (
            self.policy.discrepancy.block_approval_on_unresolved
            and period.has_unresolved_discrepancies
        ):
            raise UnresolvedDiscrepanciesError(period.period_code)
        period.status = PeriodStatus.APPROVED.value

        period.approved_at = self._clock.now()
        period.approved_by_id = actor_id
        period.updated_by_id = actor_id
        self._flush_versioned("WagePeriod", period_id)

        logger.info("wage_period_approved", extra={"period_code": period.period_code})
        return period.to_dto()

    def mark_paid(self, period_id: UUID, actor_id: UUID) -> WagePeriodInfo:
        """approved -> paid."""
        period = self._load(period_id)
        self._transition(period, PeriodStatus.PAID)
        period.paid_at = self._clock.now()
        period.paid_by_id = actor_id
        period.updated_by_id = actor_id
        self._flush_versioned("WagePeriod", period_id)

        logger.info("wage_period_paid", extra={"period_code": period.period_code})
        return period.to_dto()

    def lock_period(self, period_id: UUID, actor_id: UUID) -> WagePeriodInfo:
        """paid -> locked.  Terminal."""
        period = self._load(period_id)
        self._transition(period, PeriodStatus.LOCKED)
        period.locked_at = self._clock.now()
        period.locked_by_id = actor_id
        period.updated_by_id = actor_id
        self._flush_versioned("WagePeriod", period_id)

        logger.info("wage_period_locked", extra={"period_code": period.period_code})
        return period.to_dto()

    # ------------------------------------------------------------------
    # Calculation result
    # ------------------------------------------------------------------

    def apply_calculation(
        self,
        period_id: UUID,
        expected_version: int,
        summaries: Sequence[DCWageSummary],
        totals: PeriodTotals,
        has_unresolved_discrepancies: bool,
        actor_id: UUID,
        force: bool = False,
    ) -> WagePeriodInfo:
        """
        Replace summaries and totals wholesale and mark the period calculated.

        Preconditions:
            The row is still at ``expected_version`` (the version the
            calculation pass read).

        Raises:
            OptimisticLockError: The row moved past ``expected_version``.
            PeriodRecalculationError: Status forbids recalculation.
        """
        period = self._load(period_id)
        if period.version != expected_version:
            raise OptimisticLockError("WagePeriod", str(period_id))

        forced_reset = check_recalculation_allowed(
            period.period_code, PeriodStatus(period.status), force,
        )
        if forced_reset:
            logger.warning(
                "wage_period_forced_recalculation",
                extra={
                    "period_code": period.period_code,
                    "previous_status": period.status,
                },
            )
            period.approved_at = None
            period.approved_by_id = None
            period.paid_at = None
            period.paid_by_id = None

        period.dc_summaries = [s.to_dict() for s in summaries]
        period.total_regular_hours = totals.total_regular_hours
        period.total_ot_hours = totals.total_ot_hours
        period.total_gross_wages = totals.total_gross_wages
        period.total_deductions = totals.total_deductions
        period.total_net_wages = totals.total_net_wages
        period.has_unresolved_discrepancies = has_unresolved_discrepancies
        period.status = PeriodStatus.CALCULATED.value
        period.calculated_at = self._clock.now()
        period.calculated_by_id = actor_id
        period.updated_by_id = actor_id
        self._flush_versioned("WagePeriod", period_id)

        logger.info(
            "wage_period_calculated",
            extra={
                "period_code": period.period_code,
                "contractor_count": len(summaries),
                "total_net_wages": str(totals.total_net_wages),
                "forced": forced_reset,
            },
        )
        return period.to_dto()

    # ------------------------------------------------------------------
    # Ad hoc line items
    # ------------------------------------------------------------------

    def _add_line_item(
        self,
        model,
        period_id: UUID,
        contractor_id: UUID,
        item_type: str,
        amount: Decimal,
        actor_id: UUID,
        description: str,
    ) -> LineItem:
        self._load(period_id)
        ContractorSelector(self.session).get(contractor_id)
        if amount < 0:
            raise InvalidLineItemError(item_type, str(amount))
        item = model(
            contractor_id=contractor_id,
            wage_period_id=period_id,
            item_type=item_type,
            amount=round_money(amount),
            description=description,
            created_by_id=actor_id,
        )
        self.session.add(item)
        self.session.flush()
        return item.to_dto()

    def add_additional_income(
        self,
        period_id: UUID,
        contractor_id: UUID,
        item_type: str,
        amount: Decimal,
        actor_id: UUID,
        description: str = "",
    ) -> LineItem:
        return self._add_line_item(
            AdditionalIncomeModel, period_id, contractor_id, item_type,
            amount, actor_id, description,
        )

    def add_additional_expense(
        self,
        period_id: UUID,
        contractor_id: UUID,
        item_type: str,
        amount: Decimal,
        actor_id: UUID,
        description: str = "",
    ) -> LineItem:
        return self._add_line_item(
            AdditionalExpenseModel, period_id, contractor_id, item_type,
            amount, actor_id, description,
        )
