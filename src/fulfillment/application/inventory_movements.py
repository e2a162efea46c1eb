"""Application service: Inventory Movements use case (query).

Rebuilds the stock history of one product, or of all products, from the
inventory entries of the audit trail, newest first.
"""

from __future__ import annotations

from fulfillment.application.dto import InventoryMovementDTO
from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.ports.audit_log import AuditEntry, AuditLog

DEFAULT_LIMIT = 100


class InventoryMovementsHandler:

    def __init__(self, audit_log: AuditLog) -> None:
        self._audit_log = audit_log

    def handle(
        self,
        product_id: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[InventoryMovementDTO]:
        if limit < 1:
            raise ValidationError("Limit must be 1 or greater")
        entries = self._audit_log.history("inventory", product_id, limit)
        return [_to_dto(entry) for entry in entries]


def _to_dto(entry: AuditEntry) -> InventoryMovementDTO:
    old = entry.old_values or {}
    new = entry.new_values or {}
    return InventoryMovementDTO(
        product_id=entry.entity_id,
        action=entry.action,
        operation=new.get("operation"),
        quantity_change=new.get("quantity_change"),
        old_quantity=old.get("quantity"),
        new_quantity=new.get("quantity"),
        old_reserved=old.get("reserved_quantity"),
        new_reserved=new.get("reserved_quantity"),
        actor_id=entry.actor_id,
        created_at=entry.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )
