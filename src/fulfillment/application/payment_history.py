"""Application service: Payment History use case (query).

Lists charges and refunds, newest first.  Customers see the payments of
their own orders; administrators see all of them.
"""

from __future__ import annotations

from fulfillment.application.dto import Page, PaymentHistoryDTO, paginate
from fulfillment.domain.model.payment import Payment
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.repository.payment_repository import PaymentRepository

DEFAULT_PAGE_SIZE = 10


class PaymentHistoryHandler:

    def __init__(
        self,
        payment_repo: PaymentRepository,
        order_repo: OrderRepository,
    ) -> None:
        self._payment_repo = payment_repo
        self._order_repo = order_repo

    def handle(
        self,
        user_id: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        """Return a Page of PaymentHistoryDTO."""
        orders = {o.id: o for o in self._order_repo.list_all()}
        payments = self._payment_repo.list_all()
        if user_id is not None:
            payments = [
                p for p in payments
                if p.order_id in orders and orders[p.order_id].user_id == str(user_id)
            ]

        payments.sort(key=lambda p: (p.created_at, p.id or 0), reverse=True)
        order_numbers = {order_id: o.order_number for order_id, o in orders.items()}
        return paginate([_to_dto(p, order_numbers.get(p.order_id)) for p in payments], page, limit)


def _to_dto(payment: Payment, order_number: str | None) -> PaymentHistoryDTO:
    return PaymentHistoryDTO(
        id=payment.id,  # type: ignore[arg-type]
        order_id=payment.order_id,
        order_number=order_number,
        method=payment.method.value,
        amount=f"{payment.amount:.2f}",
        status=payment.status.value,
        transaction_id=payment.transaction_id,
        created_at=payment.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )
