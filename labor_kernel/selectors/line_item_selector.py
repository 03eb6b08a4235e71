"""
Module: labor_kernel.selectors.line_item_selector
Responsibility: Ad hoc additional income and expense items of a wage period.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from labor_kernel.domain.wages import LineItem
from labor_kernel.models.rate_profile import AdditionalExpenseModel, AdditionalIncomeModel
from labor_kernel.selectors.base import BaseSelector


class LineItemSelector(BaseSelector):

    def _items(self, model, wage_period_id: UUID) -> dict[UUID, tuple[LineItem, ...]]:
        rows = self.session.execute(
            select(model)
            .where(model.wage_period_id == wage_period_id)
            .order_by(model.contractor_id, model.id)
        ).scalars().all()
        grouped: dict[UUID, list[LineItem]] = {}
        for row in rows:
            grouped.setdefault(row.contractor_id, []).append(row.to_dto())
        return {cid: tuple(items) for cid, items in grouped.items()}

    def incomes_by_contractor(self, wage_period_id: UUID) -> dict[UUID, tuple[LineItem, ...]]:
        return self._items(AdditionalIncomeModel, wage_period_id)

    def expenses_by_contractor(self, wage_period_id: UUID) -> dict[UUID, tuple[LineItem, ...]]:
        return self._items(AdditionalExpenseModel, wage_period_id)
