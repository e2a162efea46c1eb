"""JSON-file-backed implementation of OrderRepository.

``save`` is a compare-and-set on the order's ``version`` field, checked
and written while holding the file lock.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from fulfillment.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    ValidationError,
)
from fulfillment.domain.model.order import Order, OrderItem, OrderStatus, PaymentStatus
from fulfillment.domain.model.value_objects import Money, Quantity
from fulfillment.domain.repository.order_repository import OrderRepository
from fulfillment.infrastructure.persistence.json_files import (
    ensure_file,
    load_raw,
    lock_for,
    persist_raw,
)


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)
        ensure_file(file_path)

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in load_raw(self._file_path):
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def get_by_order_number(self, order_number: str) -> Order | None:
        for raw in load_raw(self._file_path):
            if raw["order_number"] == order_number:
                return self._to_domain(raw)
        return None

    def list_by_status(self, status: OrderStatus) -> list[Order]:
        return [
            self._to_domain(raw)
            for raw in load_raw(self._file_path)
            if raw["status"] == status.value
        ]

    def list_all(self) -> list[Order]:
        return [self._to_domain(raw) for raw in load_raw(self._file_path)]

    def add(self, order: Order) -> None:
        with self._lock:
            orders = load_raw(self._file_path)
            if any(raw["order_number"] == order.order_number for raw in orders):
                raise ValidationError(
                    f"Order number {order.order_number} is already in use"
                )
            order.id = max((raw["id"] for raw in orders), default=0) + 1
            order.version = 1
            orders.append(self._to_raw(order))
            persist_raw(self._file_path, orders)

    def save(self, order: Order, expected_version: int) -> None:
        with self._lock:
            orders = load_raw(self._file_path)
            for i, raw in enumerate(orders):
                if raw["id"] != order.id:
                    continue
                if raw.get("version", 0) != expected_version:
                    raise ConcurrencyConflictError(
                        f"Order {order.order_number} was modified concurrently "
                        f"(expected version {expected_version}, "
                        f"found {raw.get('version', 0)})"
                    )
                order.version = expected_version + 1
                orders[i] = self._to_raw(order)
                persist_raw(self._file_path, orders)
                return
        raise EntityNotFoundError(f"Order #{order.id} not found")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "payment_method": order.payment_method,
            "shipping_address": order.shipping_address,
            "billing_address": order.billing_address,
            "notes": order.notes,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "version": order.version,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "currency": item.unit_price.currency,
                }
                for item in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = [
            OrderItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", "USD")),
            )
            for i in raw["items"]
        ]
        return Order(
            id=raw["id"],
            user_id=raw["user_id"],
            order_number=raw["order_number"],
            items=items,
            shipping_address=raw["shipping_address"],
            billing_address=raw["billing_address"],
            payment_method=raw.get("payment_method"),
            notes=raw.get("notes"),
            status=OrderStatus(raw["status"]),
            payment_status=PaymentStatus(raw.get("payment_status", "pending")),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw.get("updated_at", raw["created_at"])),
            version=raw.get("version", 0),
        )
