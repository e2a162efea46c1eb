"""Application service: Adjust Inventory use cases (administrators).

Single adjustments go straight to the ledger.  Bulk adjustments are parsed
and validated up front, then applied with the ledger's all-or-nothing
bulk operation.
"""

from __future__ import annotations

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.inventory import InventoryOperation, InventoryRecord
from fulfillment.domain.service.inventory_ledger import (
    AdjustmentResult,
    BulkAdjustment,
    InventoryLedger,
)


class AdjustInventoryHandler:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def handle(
        self,
        product_id: str,
        quantity_change: int,
        operation: InventoryOperation | str = InventoryOperation.ADJUST,
        actor_id: str | None = None,
    ) -> AdjustmentResult:
        return self._ledger.adjust(product_id, quantity_change, operation, actor_id)

    def handle_bulk(
        self,
        changes: dict[str, int],
        operation: InventoryOperation | str = InventoryOperation.ADJUST,
        actor_id: str | None = None,
    ) -> list[AdjustmentResult]:
        """Apply ``{product_id: quantity_change}`` as one unit of work."""
        if not changes:
            raise ValidationError("Adjustments are required")
        adjustments = [
            BulkAdjustment(product_id=product_id, quantity_change=change)
            for product_id, change in changes.items()
        ]
        return self._ledger.bulk_adjust(adjustments, operation, actor_id)

    def set_reorder_level(
        self,
        product_id: str,
        level: int,
        actor_id: str | None = None,
    ) -> InventoryRecord:
        return self._ledger.set_reorder_level(product_id, level, actor_id)
