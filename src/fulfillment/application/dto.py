"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.order import Order
from fulfillment.domain.model.payment import Payment


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product ID + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class CreateOrderResult:
    order_id: int
    order_number: str
    total_amount: str  # formatted, e.g. "$15.00"


@dataclass(frozen=True)
class OrderItemDTO:
    """Output: a single line item as displayed to the user."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: str
    line_total: str


@dataclass(frozen=True)
class PaymentDTO:
    id: int
    method: str
    amount: str
    status: str
    transaction_id: str | None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    order_number: str
    user_id: str
    status: str
    payment_status: str
    items: list[OrderItemDTO]
    total: str
    shipping_address: dict[str, str]
    billing_address: dict[str, str]
    notes: str | None
    created_at: str
    payments: list[PaymentDTO] = field(default_factory=list)


@dataclass(frozen=True)
class ChargeResult:
    """Outcome of a charge attempt.  A decline is a result, not an error."""

    status: str  # "success" | "failed"
    payment_id: int
    transaction_id: str | None
    reason_code: str | None = None
    message: str = ""
    gateway_response: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


@dataclass(frozen=True)
class RefundResult:
    status: str  # "success" | "failed"
    refund_payment_id: int
    refund_transaction_id: str | None
    amount: str
    full_refund: bool = False
    reason_code: str | None = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


def order_to_dto(order: Order, payments: list[Payment] | None = None) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        user_id=order.user_id,
        status=order.status.value,
        payment_status=order.payment_status.value,
        items=[
            OrderItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        total=str(order.total_amount),
        shipping_address=dict(order.shipping_address),
        billing_address=dict(order.billing_address),
        notes=order.notes,
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        payments=[
            PaymentDTO(
                id=p.id,  # type: ignore[arg-type]
                method=p.method.value,
                amount=f"{p.amount:.2f}",
                status=p.status.value,
                transaction_id=p.transaction_id,
            )
            for p in payments or []
        ],
    )


# --- Listings and summaries ---------------------------------------------------

@dataclass(frozen=True)
class Page:
    """One page of a listing, newest first."""

    items: list[Any]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit)


MAX_PAGE_SIZE = 100


def paginate(items: list[Any], page: int, limit: int) -> Page:
    if page < 1:
        raise ValidationError("Page must be 1 or greater")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
    start = (page - 1) * limit
    return Page(items=items[start:start + limit], page=page, limit=limit, total=len(items))


@dataclass(frozen=True)
class OrderSummaryDTO:
    """Output: one row of an order listing."""

    id: int
    order_number: str
    user_id: str
    status: str
    payment_status: str
    item_count: int
    total: str
    created_at: str


@dataclass(frozen=True)
class OrderStatsDTO:
    total_orders: int
    status_counts: dict[str, int]
    total_revenue: str  # excludes cancelled orders
    average_order_value: str


@dataclass(frozen=True)
class PaymentHistoryDTO:
    id: int
    order_id: int
    order_number: str | None
    method: str
    amount: str
    status: str
    transaction_id: str | None
    created_at: str


@dataclass(frozen=True)
class PaymentStatsDTO:
    successful_payments: int
    failed_payments: int
    total_revenue: str
    total_refunds: str
    average_payment: str


@dataclass(frozen=True)
class InventoryMovementDTO:
    product_id: str
    action: str
    operation: str | None
    quantity_change: int | None
    old_quantity: int | None
    new_quantity: int | None
    old_reserved: int | None
    new_reserved: int | None
    actor_id: str | None
    created_at: str
