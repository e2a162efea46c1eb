"""Application service: Create Order use case.

Builds a pending order all-or-nothing:

1. Validate the request and re-read every product and its stock.  Nothing
   is mutated until every line passes.
2. Reserve each line through the ledger.  If a reservation loses a race,
   the reservations already made for this request are released.
3. Persist the order with the prices captured in step 1.  If that fails,
   every reservation is released.

Audit and notification side effects run only after the order is saved.
"""

from __future__ import annotations

import logging

from fulfillment.application.dto import CreateOrderResult, OrderItemSpec
from fulfillment.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    InsufficientStockError,
    ValidationError,
)
from fulfillment.domain.model.inventory import InventoryOperation
from fulfillment.domain.model.order import (
    MAX_LINE_ITEMS,
    Order,
    OrderItem,
    generate_order_number,
)
from fulfillment.domain.model.payment import PaymentMethod
from fulfillment.domain.model.value_objects import Quantity
from fulfillment.domain.ports.audit_log import AuditLog
from fulfillment.domain.ports.notification_dispatcher import (
    NotificationDispatcher,
    NotificationKind,
)
from fulfillment.domain.repository.inventory_repository import InventoryRepository
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.domain.repository.product_repository import ProductRepository
from fulfillment.domain.service.inventory_ledger import AdjustmentResult, InventoryLedger
from fulfillment.domain.service.post_commit import PostCommitHooks

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5


class CreateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        inventory_repo: InventoryRepository,
        ledger: InventoryLedger,
        audit_log: AuditLog,
        notifier: NotificationDispatcher,
        max_line_items: int = MAX_LINE_ITEMS,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._inventory_repo = inventory_repo
        self._ledger = ledger
        self._audit_log = audit_log
        self._notifier = notifier
        self._max_line_items = max_line_items

    def handle(
        self,
        user_id: str,
        item_specs: list[OrderItemSpec],
        shipping_address: dict[str, str],
        billing_address: dict[str, str],
        payment_method: str | None = None,
        notes: str | None = None,
    ) -> CreateOrderResult:
        self._validate_request(item_specs, shipping_address, billing_address, payment_method)

        # Phase 1: read-only validation and price snapshot
        line_items = [self._build_line(spec) for spec in item_specs]

        order = Order.create(
            user_id=user_id,
            order_number=self._unique_order_number(),
            items=line_items,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=payment_method,
            notes=notes,
            max_line_items=self._max_line_items,
        )

        # Phase 2: reserve
        reserved = self._reserve_all(order, user_id)

        # Phase 3: persist
        try:
            self._order_repo.add(order)
        except Exception:
            logger.warning(
                "Persisting order %s failed, releasing %d reservation(s)",
                order.order_number,
                len(reserved),
            )
            self._ledger.compensate(reserved, user_id)
            raise

        total = order.total_amount
        logger.info(
            "Created order %s for user %s: %d line(s), total %s",
            order.order_number,
            order.user_id,
            len(order.items),
            total,
        )

        hooks = PostCommitHooks()
        hooks.add(
            self._audit_log.record,
            "orders",
            order.id,
            "INSERT",
            None,
            {
                "order_number": order.order_number,
                "total_amount": str(total.amount),
                "item_count": len(order.items),
            },
            user_id,
        )
        hooks.add(
            self._notifier.notify,
            order.user_id,
            NotificationKind.ORDER_CREATED,
            "Order Created",
            f"Your order {order.order_number} has been created successfully.",
            {"order_id": order.id, "order_number": order.order_number},
        )
        hooks.run()

        return CreateOrderResult(
            order_id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            total_amount=str(total),
        )

    # --- Validation -----------------------------------------------------------

    def _validate_request(
        self,
        item_specs: list[OrderItemSpec],
        shipping_address: dict[str, str],
        billing_address: dict[str, str],
        payment_method: str | None,
    ) -> None:
        if not item_specs:
            raise ValidationError("Order items are required")
        if len(item_specs) > self._max_line_items:
            raise ValidationError(f"Maximum {self._max_line_items} items per order")

        seen: set[str] = set()
        for spec in item_specs:
            if spec.product_id in seen:
                raise ValidationError(
                    f"Product '{spec.product_id}' appears more than once; "
                    f"combine the quantities into one line"
                )
            seen.add(spec.product_id)

        if not shipping_address or not billing_address:
            raise ValidationError("Shipping and billing addresses are required")

        if payment_method is not None:
            try:
                PaymentMethod(payment_method)
            except ValueError as exc:
                raise ValidationError(f"Unsupported payment method: {payment_method!r}") from exc

    def _build_line(self, spec: OrderItemSpec) -> OrderItem:
        quantity = Quantity(spec.quantity)

        product = self._product_repo.get_by_id(spec.product_id)
        if product is None:
            raise EntityNotFoundError(f"Product {spec.product_id} not found")
        if not product.is_active:
            raise ValidationError(f"Product {product.name} is no longer available")

        record = self._inventory_repo.get_by_product_id(product.id)
        if record is None:
            raise EntityNotFoundError(f"No inventory record for product '{product.name}'")
        if record.available_quantity < quantity.value:
            raise InsufficientStockError(
                f"Insufficient stock for product {product.name}. "
                f"Available: {record.available_quantity}, Requested: {quantity.value}"
            )

        return OrderItem(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            unit_price=product.price,  # <-- price snapshot
        )

    # --- Reservation ----------------------------------------------------------

    def _reserve_all(self, order: Order, user_id: str) -> list[AdjustmentResult]:
        reserved: list[AdjustmentResult] = []
        for item in order.items:
            try:
                reserved.append(
                    self._ledger.adjust(
                        item.product_id,
                        item.quantity.value,
                        InventoryOperation.RESERVE,
                        user_id,
                    )
                )
            except DomainException:
                logger.warning(
                    "Reserving %s for new order failed, releasing %d earlier reservation(s)",
                    item.product_id,
                    len(reserved),
                )
                self._ledger.compensate(reserved, user_id)
                raise
        return reserved

    def _unique_order_number(self) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            number = generate_order_number()
            if self._order_repo.get_by_order_number(number) is None:
                return number
        raise ValidationError("Could not allocate a unique order number, try again")
