"""InventoryRecord aggregate — tracks stock and reservations per product.

Each product has one InventoryRecord that knows the quantity physically in
stock and how much of it has been promised to pending orders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from fulfillment.domain.exceptions import (
    InsufficientAvailableError,
    InsufficientStockError,
    NegativeResultError,
    ValidationError,
)


class InventoryOperation(Enum):
    RESERVE = "reserve"
    RELEASE = "release"
    SELL = "sell"
    RESTOCK = "restock"
    ADJUST = "adjust"


@dataclass
class InventoryRecord:
    """Aggregate root for inventory tracking.

    Invariants:
    - ``0 <= reserved_quantity <= quantity``
    - ``available_quantity`` is always >= 0

    ``version`` is bumped by the repository on every successful save and is
    used for compare-and-set writes.
    """

    product_id: str
    product_name: str
    quantity: int
    reserved_quantity: int = 0
    reorder_level: int = 0
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0

    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_level

    def apply(self, operation: InventoryOperation, quantity_change: int) -> None:
        """Apply one ledger operation in place.

        ``quantity_change`` is treated as a magnitude for every operation
        except ``ADJUST``, where its sign is meaningful.
        """
        if not isinstance(quantity_change, int) or isinstance(quantity_change, bool):
            raise ValidationError("Quantity change must be an integer")
        if quantity_change == 0:
            raise ValidationError("Quantity change must be non-zero")

        magnitude = abs(quantity_change)
        if operation is InventoryOperation.RESERVE:
            self.reserve(magnitude)
        elif operation is InventoryOperation.RELEASE:
            self.release(magnitude)
        elif operation is InventoryOperation.SELL:
            self.sell(magnitude)
        elif operation is InventoryOperation.RESTOCK:
            self.restock(magnitude)
        elif operation is InventoryOperation.ADJUST:
            self.adjust(quantity_change)
        else:
            raise ValidationError(f"Unknown inventory operation {operation!r}")
        self.last_updated = datetime.now(timezone.utc)

    def reserve(self, quantity: int) -> None:
        """Promise stock to a pending order."""
        if quantity > self.available_quantity:
            raise InsufficientAvailableError(
                f"Insufficient available inventory for {self.product_name} "
                f"(need {quantity}, have {self.available_quantity} available)"
            )
        self.reserved_quantity += quantity

    def release(self, quantity: int) -> None:
        """Return reserved stock to the available pool.

        Over-release is clamped at zero: overlapping cancellation paths can
        release the same units twice.
        """
        self.reserved_quantity = max(0, self.reserved_quantity - quantity)

    def sell(self, quantity: int) -> None:
        """Permanently deduct sold stock, consuming reservations first."""
        reserved_to_sell = min(self.reserved_quantity, quantity)
        new_quantity = self.quantity - quantity
        if new_quantity < 0:
            raise InsufficientStockError(
                f"Insufficient inventory to sell {quantity} of {self.product_name} "
                f"(only {self.quantity} in stock)"
            )
        self.quantity = new_quantity
        self.reserved_quantity -= reserved_to_sell

    def restock(self, quantity: int) -> None:
        self.quantity += quantity

    def adjust(self, delta: int) -> None:
        """Manual correction of the physical count."""
        new_quantity = self.quantity + delta
        if new_quantity < 0:
            raise NegativeResultError(
                f"Adjustment of {delta} would result in negative inventory "
                f"for {self.product_name} (currently {self.quantity})"
            )
        if new_quantity < self.reserved_quantity:
            raise InsufficientAvailableError(
                f"Adjustment of {delta} would leave {self.product_name} with "
                f"{new_quantity} in stock but {self.reserved_quantity} reserved"
            )
        self.quantity = new_quantity

    def set_reorder_level(self, level: int) -> None:
        if level < 0:
            raise ValidationError("Reorder level cannot be negative")
        self.reorder_level = level
        self.last_updated = datetime.now(timezone.utc)
