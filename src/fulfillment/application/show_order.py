"""Application service: Show Order use case (query)."""

from __future__ import annotations

from fulfillment.application.dto import OrderDTO, order_to_dto
from fulfillment.domain.exceptions import EntityNotFoundError
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.repository.payment_repository import PaymentRepository


class ShowOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        payment_repo: PaymentRepository,
    ) -> None:
        self._order_repo = order_repo
        self._payment_repo = payment_repo

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order_to_dto(order, self._payment_repo.list_for_order(order_id))
