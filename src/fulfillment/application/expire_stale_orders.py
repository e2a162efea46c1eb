"""Application service: Expire Stale Orders use case.

A pending order keeps its reservation until it is paid or cancelled, and a
declined payment deliberately leaves it in place so the customer can retry.
This sweep cancels pending orders that have gone unpaid for too long so
their stock returns to the available pool.  Nothing schedules it; an
operator or a cron job runs it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fulfillment.domain.exceptions import ConcurrencyConflictError, DomainException
from fulfillment.domain.model.order import OrderStatus, PaymentStatus
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.service.order_lifecycle import OrderLifecycle

logger = logging.getLogger(__name__)

EXPIRY_NOTE = "Cancelled automatically: payment not completed in time"


class ExpireStaleOrdersHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        lifecycle: OrderLifecycle,
    ) -> None:
        self._order_repo = order_repo
        self._lifecycle = lifecycle

    def handle(
        self,
        older_than: timedelta,
        now: datetime | None = None,
        actor_id: str | None = None,
    ) -> list[str]:
        """Cancel stale pending orders and return their order numbers."""
        cutoff = (now or datetime.now(timezone.utc)) - older_than
        expired: list[str] = []

        for order in self._order_repo.list_by_status(OrderStatus.PENDING):
            if order.payment_status not in (PaymentStatus.PENDING, PaymentStatus.FAILED):
                continue
            if order.created_at > cutoff:
                continue
            try:
                self._lifecycle.apply(
                    order, OrderStatus.CANCELLED, actor_id, admin=True, notes=EXPIRY_NOTE
                )
            except ConcurrencyConflictError:
                # Paid or cancelled since the listing was taken.
                logger.info("Order %s changed during expiry, skipped", order.order_number)
                continue
            except DomainException:
                logger.exception("Could not expire order %s", order.order_number)
                continue
            expired.append(order.order_number)

        if expired:
            logger.info("Expired %d stale pending order(s)", len(expired))
        return expired
