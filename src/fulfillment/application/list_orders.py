"""Application service: List Orders use case (query).

Customers see their own orders; administrators list every order.  Both
can filter by status.  Results are paged, newest first.
"""

from __future__ import annotations

from fulfillment.application.dto import OrderSummaryDTO, Page, paginate
from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.order import Order, OrderStatus
from fulfillment.domain.repository.order_repository import OrderRepository

DEFAULT_PAGE_SIZE = 10


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        user_id: str | None = None,
        status: OrderStatus | str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        """Return a Page of OrderSummaryDTO.  ``user_id=None`` lists all users."""
        if status is None:
            orders = self._order_repo.list_all()
        else:
            orders = self._order_repo.list_by_status(_coerce_status(status))

        if user_id is not None:
            orders = [o for o in orders if o.user_id == str(user_id)]

        orders.sort(key=lambda o: (o.created_at, o.id or 0), reverse=True)
        return paginate([to_summary(o) for o in orders], page, limit)


def to_summary(order: Order) -> OrderSummaryDTO:
    return OrderSummaryDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        user_id=order.user_id,
        status=order.status.value,
        payment_status=order.payment_status.value,
        item_count=len(order.items),
        total=str(order.total_amount),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


def _coerce_status(status: OrderStatus | str) -> OrderStatus:
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Invalid order status: {status!r}") from exc
