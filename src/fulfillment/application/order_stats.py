"""Application service: Order Statistics use case (administrators)."""

from __future__ import annotations

from fulfillment.application.dto import OrderStatsDTO
from fulfillment.domain.model.order import OrderStatus
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.repository.order_repository import OrderRepository


class OrderStatsHandler:

    def __init__(self, order_repo: OrderRepository, currency: str = "USD") -> None:
        self._order_repo = order_repo
        self._currency = currency

    def handle(self) -> OrderStatsDTO:
        orders = self._order_repo.list_all()
        counts = {status.value: 0 for status in OrderStatus}
        for order in orders:
            counts[order.status.value] += 1

        # Cancelled orders never count as revenue, refunded or not.
        billable = [o for o in orders if o.status != OrderStatus.CANCELLED]
        revenue = Money.total((o.total_amount for o in billable), self._currency)
        average = revenue.divided_by(len(billable)) if billable else Money.zero(self._currency)

        return OrderStatsDTO(
            total_orders=len(orders),
            status_counts=counts,
            total_revenue=str(revenue),
            average_order_value=str(average),
        )
