"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from fulfillment.domain.model.inventory import InventoryRecord
from fulfillment.domain.repository.inventory_repository import InventoryRepository


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    total: int
    reserved: int
    available: int
    reorder_level: int


def to_line(record: InventoryRecord) -> InventoryLineDTO:
    return InventoryLineDTO(
        product_id=record.product_id,
        product_name=record.product_name,
        total=record.quantity,
        reserved=record.reserved_quantity,
        available=record.available_quantity,
        reorder_level=record.reorder_level,
    )


class ShowInventoryHandler:

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def handle(self) -> list[InventoryLineDTO]:
        return [to_line(record) for record in self._inventory_repo.list_all()]
