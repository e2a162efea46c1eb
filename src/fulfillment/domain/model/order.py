"""Order aggregate — the core of the domain.

The Order is an aggregate root that owns its line items.
Status rules are enforced here; inventory effects of a status change are
coordinated by the OrderLifecycle domain service.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from fulfillment.domain.exceptions import InvalidTransitionError, ValidationError
from fulfillment.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.DELIVERED})

# Forward progression: each status may only advance to the next one.
_NEXT_STATUS = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}

MAX_LINE_ITEMS = 50


def generate_order_number() -> str:
    """Return a URL-safe order number: creation time in ms plus a random suffix."""
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


@dataclass(frozen=True)
class OrderItem:
    """Captures the price snapshot of a product at order-creation time.

    Immutable: neither ``quantity`` nor ``unit_price`` ever change after the
    order exists, so later catalog price changes do not leak in.
    """

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders — it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    user_id: str
    order_number: str
    items: list[OrderItem]
    shipping_address: dict[str, str]
    billing_address: dict[str, str]
    payment_method: str | None = None
    notes: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0  # bumped by the repository on every write

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        user_id: str,
        order_number: str,
        items: list[OrderItem],
        shipping_address: dict[str, str],
        billing_address: dict[str, str],
        payment_method: str | None = None,
        notes: str | None = None,
        max_line_items: int = MAX_LINE_ITEMS,
    ) -> Order:
        """Create a new pending order, enforcing all invariants."""
        if not user_id or not str(user_id).strip():
            raise ValidationError("User ID is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > max_line_items:
            raise ValidationError(f"Maximum {max_line_items} items per order")

        if not shipping_address or not billing_address:
            raise ValidationError("Shipping and billing addresses are required")

        currencies = {item.unit_price.currency for item in items}
        if len(currencies) > 1:
            raise ValidationError(
                f"Order items must share one currency, got {sorted(currencies)}"
            )

        return Order(
            id=None,
            user_id=str(user_id).strip(),
            order_number=order_number,
            items=list(items),
            shipping_address=dict(shipping_address),
            billing_address=dict(billing_address),
            payment_method=payment_method,
            notes=notes,
        )

    # --- State transitions ----------------------------------------------------

    def transition_to(self, new_status: OrderStatus, *, admin: bool = False) -> bool:
        """Move to ``new_status``.

        Returns False (and changes nothing) when the order is already in
        ``new_status``.  Raises InvalidTransitionError for illegal moves.
        """
        if new_status == self.status:
            return False

        if self.status in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"Order {self.order_number} is {self.status.value} "
                f"and cannot move to {new_status.value}"
            )

        if new_status == OrderStatus.CANCELLED:
            if self.status != OrderStatus.PENDING and not admin:
                raise InvalidTransitionError(
                    f"Only pending orders can be cancelled "
                    f"(order {self.order_number} is {self.status.value})"
                )
        elif _NEXT_STATUS.get(self.status) != new_status:
            raise InvalidTransitionError(
                f"Cannot move order {self.order_number} from "
                f"{self.status.value} to {new_status.value}"
            )
        elif self.status != OrderStatus.PENDING and not admin:
            raise InvalidTransitionError(
                f"Moving an order to {new_status.value} requires an administrator"
            )

        self.status = new_status
        self.touch()
        return True

    def mark_payment(self, payment_status: PaymentStatus) -> None:
        self.payment_status = payment_status
        self.touch()

    def add_note(self, note: str) -> None:
        self.notes = note
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    # --- Computed properties --------------------------------------------------

    @property
    def total_amount(self) -> Money:
        return Money.total(
            (item.line_total for item in self.items), self.items[0].unit_price.currency
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
