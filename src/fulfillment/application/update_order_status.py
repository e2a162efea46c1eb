"""Application service: Update Order Status use case (administrators).

Administrators may advance an order along
confirmed -> processing -> shipped -> delivered, confirm a pending order
without an online payment, or cancel any order that has not finished.
"""

from __future__ import annotations

from fulfillment.domain.model.order import OrderStatus
from fulfillment.domain.service.order_lifecycle import OrderLifecycle, TransitionResult


class UpdateOrderStatusHandler:

    def __init__(self, lifecycle: OrderLifecycle) -> None:
        self._lifecycle = lifecycle

    def handle(
        self,
        order_id: int,
        status: OrderStatus | str,
        admin_id: str | None = None,
        notes: str | None = None,
    ) -> TransitionResult:
        return self._lifecycle.transition(
            order_id, status, admin_id, admin=True, notes=notes
        )
