"""Domain service: Availability Checker.

Answers "can N units of product P be sold right now?" without touching
any state.  Negative answers are results, not errors.

The answer is advisory: nothing is held between the check and a later
reservation, so callers must still expect the ledger's reserve to fail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.repository.inventory_repository import InventoryRepository
from fulfillment.domain.repository.product_repository import ProductRepository


class UnavailableReason(Enum):
    PRODUCT_NOT_FOUND = "product_not_found"
    PRODUCT_INACTIVE = "product_inactive"
    INSUFFICIENT_STOCK = "insufficient_stock"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    product_id: str
    requested_quantity: int
    reason: UnavailableReason | None = None
    product_name: str | None = None
    available_quantity: int = 0
    total_quantity: int = 0
    reserved_quantity: int = 0


@dataclass(frozen=True)
class BulkAvailabilityResult:
    results: list[AvailabilityResult] = field(default_factory=list)

    @property
    def all_available(self) -> bool:
        return all(r.available for r in self.results)

    @property
    def available_items(self) -> list[AvailabilityResult]:
        return [r for r in self.results if r.available]

    @property
    def unavailable_items(self) -> list[AvailabilityResult]:
        return [r for r in self.results if not r.available]


class AvailabilityChecker:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        product_repo: ProductRepository,
    ) -> None:
        self._inventory_repo = inventory_repo
        self._product_repo = product_repo

    def check(self, product_id: str, requested_quantity: int) -> AvailabilityResult:
        product = self._product_repo.get_by_id(product_id)
        record = self._inventory_repo.get_by_product_id(product_id)
        if product is None or record is None:
            return AvailabilityResult(
                available=False,
                product_id=product_id,
                requested_quantity=requested_quantity,
                reason=UnavailableReason.PRODUCT_NOT_FOUND,
            )

        if not product.is_active:
            return AvailabilityResult(
                available=False,
                product_id=product_id,
                requested_quantity=requested_quantity,
                reason=UnavailableReason.PRODUCT_INACTIVE,
                product_name=product.name,
            )

        is_available = record.available_quantity >= requested_quantity
        return AvailabilityResult(
            available=is_available,
            product_id=product_id,
            requested_quantity=requested_quantity,
            reason=None if is_available else UnavailableReason.INSUFFICIENT_STOCK,
            product_name=product.name,
            available_quantity=record.available_quantity,
            total_quantity=record.quantity,
            reserved_quantity=record.reserved_quantity,
        )

    def check_many(self, items: list[tuple[str, int]]) -> BulkAvailabilityResult:
        """Check each (product_id, quantity) pair independently."""
        if not items:
            raise ValidationError("At least one item is required")
        return BulkAvailabilityResult(
            results=[self.check(product_id, qty) for product_id, qty in items]
        )
