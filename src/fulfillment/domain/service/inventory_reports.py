"""Read-only inventory reporting: low-stock list and stock valuation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from fulfillment.domain.model.inventory import InventoryRecord
from fulfillment.domain.model.value_objects import CENTS, Money
from fulfillment.domain.repository.inventory_repository import InventoryRepository
from fulfillment.domain.repository.product_repository import ProductRepository


@dataclass(frozen=True)
class InventoryValuation:
    total_value: Money
    total_cost: Money
    total_quantity: int
    product_count: int

    @property
    def potential_profit(self) -> Decimal:
        return self.total_value.amount - self.total_cost.amount

    @property
    def average_value(self) -> Decimal:
        if self.product_count == 0:
            return Decimal("0.00")
        return (self.total_value.amount / self.product_count).quantize(CENTS)

    @property
    def profit_margin(self) -> Decimal:
        """Potential profit as a percentage of stock value."""
        if self.total_value.is_zero:
            return Decimal("0.00")
        return (self.potential_profit / self.total_value.amount * 100).quantize(CENTS)


class InventoryReports:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        product_repo: ProductRepository,
        currency: str = "USD",
    ) -> None:
        self._inventory_repo = inventory_repo
        self._product_repo = product_repo
        self._currency = currency

    def low_stock_items(self, limit: int = 50) -> list[InventoryRecord]:
        """Active products at or below their reorder level, most depleted first."""
        records = [
            record
            for record in self._inventory_repo.list_all()
            if record.is_low_stock and self._is_active(record.product_id)
        ]
        records.sort(key=lambda r: r.quantity - r.reorder_level)
        return records[:limit]

    def inventory_value(self, product_id: str | None = None) -> InventoryValuation:
        total_value = Money.zero(self._currency)
        total_cost = Money.zero(self._currency)
        total_quantity = 0
        product_count = 0

        for record in self._inventory_repo.list_all():
            if product_id is not None and record.product_id != product_id:
                continue
            product = self._product_repo.get_by_id(record.product_id)
            if product is None or not product.is_active:
                continue
            total_value = total_value + product.price * record.quantity
            total_cost = total_cost + product.cost_price * record.quantity
            total_quantity += record.quantity
            product_count += 1

        return InventoryValuation(
            total_value=total_value,
            total_cost=total_cost,
            total_quantity=total_quantity,
            product_count=product_count,
        )

    def _is_active(self, product_id: str) -> bool:
        product = self._product_repo.get_by_id(product_id)
        return product is not None and product.is_active
