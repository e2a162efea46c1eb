"""Domain service: Order Lifecycle.

Couples the Order aggregate's status rules with the inventory effect each
transition requires:

    pending   -> confirmed   sell every item (reservation becomes a sale)
    pending   -> cancelled   release every item
    confirmed/processing/shipped -> cancelled
                             nothing to release, the stock is already sold
    confirmed -> processing -> shipped -> delivered
                             no inventory effect

Moving an order to the status it already has is a no-op: no ledger call,
no audit entry, no notification.

Every change is claimed first: the new status is written with a
compare-and-set on the order's version, and only the request that wins
that write touches the ledger.  Two requests that loaded the same pending
order therefore cannot both sell or both release its items.  If the
ledger then fails, the order is written back to its previous status.

While a gateway call is in flight the order's payment status is
``processing``; such an order can only be cancelled by payment settlement
itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fulfillment.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from fulfillment.domain.model.inventory import InventoryOperation
from fulfillment.domain.model.order import Order, OrderStatus, PaymentStatus
from fulfillment.domain.ports.audit_log import AuditLog
from fulfillment.domain.ports.notification_dispatcher import (
    NotificationDispatcher,
    NotificationKind,
)
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.service.inventory_ledger import (
    DEFAULT_MAX_ATTEMPTS,
    AdjustmentResult,
    InventoryLedger,
)
from fulfillment.domain.service.post_commit import PostCommitHooks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    order_id: int
    order_number: str
    previous_status: OrderStatus
    new_status: OrderStatus
    changed: bool


class OrderLifecycle:

    def __init__(
        self,
        order_repo: OrderRepository,
        ledger: InventoryLedger,
        audit_log: AuditLog,
        notifier: NotificationDispatcher,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._order_repo = order_repo
        self._ledger = ledger
        self._audit_log = audit_log
        self._notifier = notifier
        self._max_attempts = max_attempts

    # --- Transitions ----------------------------------------------------------

    def transition(
        self,
        order_id: int,
        new_status: OrderStatus | str,
        actor_id: str | None = None,
        *,
        admin: bool = False,
        notes: str | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> TransitionResult:
        """Load the order and move it to ``new_status``.

        If another request changes the order first, the transition is
        re-evaluated against the fresh order, so a second cancel becomes a
        no-op and a customer cancel racing a payment sees the confirmed
        order and fails.
        """
        status = _coerce_status(new_status)
        for attempt in range(1, self._max_attempts + 1):
            order = self._load(order_id)
            result = self._try_apply(order, status, actor_id, admin, notes, payment_status)
            if result is not None:
                return result
            logger.debug(
                "Order %s changed during transition (attempt %d/%d)",
                order.order_number,
                attempt,
                self._max_attempts,
            )
        raise ConcurrencyConflictError(
            f"Order #{order_id} is changing too quickly, try again"
        )

    def apply(
        self,
        order: Order,
        new_status: OrderStatus,
        actor_id: str | None = None,
        *,
        admin: bool = False,
        notes: str | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> TransitionResult:
        """Transition an already-loaded order and persist it.

        Unlike ``transition`` this does not retry: if the order changed
        since it was loaded, ConcurrencyConflictError is raised and nothing
        is touched.  ``payment_status`` lets payment settlement record the
        payment verdict in the same write as the status change.
        """
        result = self._try_apply(order, new_status, actor_id, admin, notes, payment_status)
        if result is None:
            raise ConcurrencyConflictError(
                f"Order {order.order_number} was changed by another request, try again"
            )
        return result

    # --- Payment status -------------------------------------------------------

    def claim_payment(self, order: Order) -> PaymentStatus:
        """Mark ``order`` as having a gateway call in flight.

        The write is a compare-and-set against the version ``order`` was
        loaded with, so of several requests holding the same order only one
        gets through.  Returns the payment status to restore afterwards.
        """
        previous = order.payment_status
        if previous == PaymentStatus.PROCESSING:
            raise ConcurrencyConflictError(
                f"A payment for order {order.order_number} is already in progress"
            )
        expected_version = order.version
        order.mark_payment(PaymentStatus.PROCESSING)
        try:
            self._order_repo.save(order, expected_version)
        except ConcurrencyConflictError as exc:
            order.payment_status = previous
            raise ConcurrencyConflictError(
                f"Order {order.order_number} was changed by another request, try again"
            ) from exc
        return previous

    def set_payment_status(self, order_id: int, payment_status: PaymentStatus) -> Order:
        """Record a payment verdict without changing the order status."""
        for _ in range(self._max_attempts):
            order = self._load(order_id)
            expected_version = order.version
            order.mark_payment(payment_status)
            try:
                self._order_repo.save(order, expected_version)
            except ConcurrencyConflictError:
                continue
            return order
        raise ConcurrencyConflictError(
            f"Order #{order_id} is changing too quickly, try again"
        )

    # --- Internal helpers -----------------------------------------------------

    def _load(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def _try_apply(
        self,
        order: Order,
        new_status: OrderStatus,
        actor_id: str | None,
        admin: bool,
        notes: str | None,
        payment_status: PaymentStatus | None,
    ) -> TransitionResult | None:
        """Claim and carry out one transition.  Returns None if the claim lost."""
        previous_status = order.status
        previous_payment = order.payment_status
        previous_notes = order.notes
        expected_version = order.version

        if (
            new_status == OrderStatus.CANCELLED
            and previous_status != OrderStatus.CANCELLED
            and previous_payment == PaymentStatus.PROCESSING
            and payment_status is None
        ):
            raise InvalidTransitionError(
                f"Order {order.order_number} has a payment in progress and "
                f"cannot be cancelled yet"
            )

        changed = order.transition_to(new_status, admin=admin)
        if notes is not None:
            order.add_note(notes)
        if payment_status is not None:
            order.mark_payment(payment_status)

        result = TransitionResult(
            order_id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            previous_status=previous_status,
            new_status=new_status,
            changed=changed,
        )
        if not changed and notes is None and payment_status is None:
            return result

        try:
            self._order_repo.save(order, expected_version)
        except ConcurrencyConflictError:
            _restore(order, previous_status, previous_payment, previous_notes)
            return None
        except Exception:
            _restore(order, previous_status, previous_payment, previous_notes)
            raise

        if not changed:
            return result

        hooks = PostCommitHooks()
        try:
            self._apply_ledger_effect(order, previous_status, new_status, actor_id, hooks)
        except Exception:
            self._revert(order, previous_status, previous_payment, previous_notes)
            raise

        logger.info(
            "Order %s moved %s -> %s",
            order.order_number,
            previous_status.value,
            new_status.value,
        )
        hooks.add(
            self._audit_log.record,
            "orders",
            order.id,
            "UPDATE",
            {"status": previous_status.value, "payment_status": previous_payment.value},
            {
                "status": order.status.value,
                "payment_status": order.payment_status.value,
                "notes": notes,
            },
            actor_id,
        )
        hooks.add(
            self._notifier.notify,
            order.user_id,
            NotificationKind.ORDER_STATUS_CHANGED,
            "Order Status Updated",
            f"Your order {order.order_number} status has been updated to: {order.status.value}",
            {"order_id": order.id, "order_number": order.order_number, "status": order.status.value},
        )
        hooks.run()
        return result

    def _revert(
        self,
        order: Order,
        previous_status: OrderStatus,
        previous_payment: PaymentStatus,
        previous_notes: str | None,
    ) -> None:
        logger.warning(
            "Inventory update for order %s failed, reverting it to %s",
            order.order_number,
            previous_status.value,
        )
        claimed_version = order.version
        _restore(order, previous_status, previous_payment, previous_notes)
        order.touch()
        try:
            self._order_repo.save(order, claimed_version)
        except ConcurrencyConflictError:
            logger.error(
                "Order %s changed while being reverted to %s and needs manual review",
                order.order_number,
                previous_status.value,
            )

    def _apply_ledger_effect(
        self,
        order: Order,
        previous_status: OrderStatus,
        new_status: OrderStatus,
        actor_id: str | None,
        hooks: PostCommitHooks,
    ) -> list[AdjustmentResult]:
        if previous_status == OrderStatus.PENDING and new_status == OrderStatus.CONFIRMED:
            return self._adjust_items(order, InventoryOperation.SELL, actor_id)

        if new_status == OrderStatus.CANCELLED:
            if previous_status == OrderStatus.PENDING:
                return self._adjust_items(order, InventoryOperation.RELEASE, actor_id)

            # Units of a confirmed order were sold at confirmation; they are
            # not put back on the shelf automatically.
            logger.warning(
                "Order %s cancelled from %s without restocking %d sold item(s)",
                order.order_number,
                previous_status.value,
                len(order.items),
            )
            hooks.add(
                self._audit_log.record,
                "orders",
                order.id,
                "stock_not_restocked",
                None,
                {
                    "previous_status": previous_status.value,
                    "items": [
                        {"product_id": item.product_id, "quantity": item.quantity.value}
                        for item in order.items
                    ],
                },
                actor_id,
            )
        return []

    def _adjust_items(
        self,
        order: Order,
        operation: InventoryOperation,
        actor_id: str | None,
    ) -> list[AdjustmentResult]:
        applied: list[AdjustmentResult] = []
        try:
            for item in order.items:
                applied.append(
                    self._ledger.adjust(item.product_id, item.quantity.value, operation, actor_id)
                )
        except Exception:
            self._ledger.compensate(applied, actor_id)
            raise
        return applied


def _restore(
    order: Order,
    status: OrderStatus,
    payment_status: PaymentStatus,
    notes: str | None,
) -> None:
    order.status = status
    order.payment_status = payment_status
    order.notes = notes


def _coerce_status(status: OrderStatus | str) -> OrderStatus:
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Invalid order status: {status!r}") from exc
