"""Application service: Stock Product use case.

Creates the inventory record for a product the first time it is stocked.
Later changes to the count go through the ledger (restock / adjust).
"""

from __future__ import annotations

from fulfillment.domain.exceptions import EntityNotFoundError
from fulfillment.domain.model.inventory import InventoryRecord
from fulfillment.domain.repository.product_repository import ProductRepository
from fulfillment.domain.service.inventory_ledger import InventoryLedger


class StockProductHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        ledger: InventoryLedger,
    ) -> None:
        self._product_repo = product_repo
        self._ledger = ledger

    def handle(
        self,
        product_id: str,
        quantity: int,
        reorder_level: int = 0,
        actor_id: str | None = None,
    ) -> InventoryRecord:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        return self._ledger.stock_product(product, quantity, reorder_level, actor_id)
