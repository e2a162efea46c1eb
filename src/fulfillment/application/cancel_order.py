"""Application service: Cancel Order use case (customers).

Customers may cancel their own orders while they are still pending; the
reserved stock goes back to the available pool.  Cancelling an order that
is already cancelled is a harmless no-op.
"""

from __future__ import annotations

from fulfillment.domain.exceptions import EntityNotFoundError
from fulfillment.domain.model.order import OrderStatus
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.service.order_lifecycle import OrderLifecycle, TransitionResult


class CancelOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        lifecycle: OrderLifecycle,
    ) -> None:
        self._order_repo = order_repo
        self._lifecycle = lifecycle

    def handle(self, order_id: int, user_id: str) -> TransitionResult:
        order = self._order_repo.get_by_id(order_id)
        # Other users' orders are reported as missing, not forbidden.
        if order is None or order.user_id != str(user_id):
            raise EntityNotFoundError(f"Order #{order_id} not found")

        return self._lifecycle.transition(order_id, OrderStatus.CANCELLED, str(user_id))
