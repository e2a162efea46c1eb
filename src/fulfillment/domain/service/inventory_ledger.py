"""Domain service: Inventory Ledger.

The ledger is the only writer of InventoryRecord counters.  Every
adjustment is an optimistic read-modify-write on a single record: the
record is read with its version, the operation is applied in memory, and
the repository writes it back only if nobody else has written in between.
On a conflict the whole read-modify-write is repeated against fresh data,
so concurrent callers observe a serial order per product and no update is
ever lost.

Stock alerts and audit entries are queued as post-commit hooks and fire
only after the write has succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from fulfillment.domain.exceptions import (
    ConcurrencyConflictError,
    DomainException,
    EntityNotFoundError,
    ValidationError,
)
from fulfillment.domain.model.inventory import InventoryOperation, InventoryRecord
from fulfillment.domain.model.product import Product
from fulfillment.domain.ports.audit_log import AuditLog
from fulfillment.domain.ports.notification_dispatcher import (
    NotificationDispatcher,
    NotificationKind,
)
from fulfillment.domain.repository.inventory_repository import InventoryRepository
from fulfillment.domain.service.post_commit import PostCommitHooks

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10


@dataclass(frozen=True)
class AdjustmentResult:
    product_id: str
    operation: InventoryOperation
    quantity_change: int
    previous_quantity: int
    new_quantity: int
    previous_reserved: int
    new_reserved: int

    @property
    def available_quantity(self) -> int:
        return self.new_quantity - self.new_reserved

    @property
    def previous_available(self) -> int:
        return self.previous_quantity - self.previous_reserved


@dataclass(frozen=True)
class BulkAdjustment:
    product_id: str
    quantity_change: int


class InventoryLedger:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        audit_log: AuditLog,
        notifier: NotificationDispatcher,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._inventory_repo = inventory_repo
        self._audit_log = audit_log
        self._notifier = notifier
        self._max_attempts = max_attempts

    # --- Adjustments ----------------------------------------------------------

    def adjust(
        self,
        product_id: str,
        quantity_change: int,
        operation: InventoryOperation | str,
        actor_id: str | None = None,
    ) -> AdjustmentResult:
        """Apply one ledger operation atomically and return the counters.

        Raises EntityNotFoundError, InsufficientAvailableError,
        InsufficientStockError, NegativeResultError or ValidationError;
        business errors are never retried.
        """
        operation = _coerce_operation(operation)
        hooks = PostCommitHooks()
        captured: dict[str, int] = {}

        def mutate(record: InventoryRecord) -> None:
            captured["quantity"] = record.quantity
            captured["reserved"] = record.reserved_quantity
            record.apply(operation, quantity_change)

        record = self._update_record(product_id, mutate)
        result = AdjustmentResult(
            product_id=product_id,
            operation=operation,
            quantity_change=quantity_change,
            previous_quantity=captured["quantity"],
            new_quantity=record.quantity,
            previous_reserved=captured["reserved"],
            new_reserved=record.reserved_quantity,
        )
        logger.info(
            "Inventory %s %s by %d: quantity %d -> %d, reserved %d -> %d",
            product_id,
            operation.value,
            quantity_change,
            result.previous_quantity,
            result.new_quantity,
            result.previous_reserved,
            result.new_reserved,
        )
        self._queue_side_effects(record, result, hooks, actor_id)
        hooks.run()
        return result

    def bulk_adjust(
        self,
        adjustments: list[BulkAdjustment],
        operation: InventoryOperation | str,
        actor_id: str | None = None,
    ) -> list[AdjustmentResult]:
        """Apply several adjustments with a single success/failure outcome.

        Adjustments run in order.  If one fails, every adjustment already
        applied is compensated in reverse order before the error propagates.
        """
        operation = _coerce_operation(operation)
        if not adjustments:
            raise ValidationError("At least one adjustment is required")
        if operation is InventoryOperation.SELL:
            raise ValidationError("Sales cannot be recorded as a bulk adjustment")

        applied: list[AdjustmentResult] = []
        for adjustment in adjustments:
            try:
                applied.append(
                    self.adjust(
                        adjustment.product_id,
                        adjustment.quantity_change,
                        operation,
                        actor_id,
                    )
                )
            except DomainException:
                self.compensate(applied, actor_id)
                raise
        return applied

    def compensate(
        self,
        results: list[AdjustmentResult],
        actor_id: str | None = None,
    ) -> None:
        """Undo already-committed adjustments, newest first.

        The inverse is derived from the recorded before/after counters, so a
        clamped release is undone by re-reserving only what it freed.
        Stock is put back before reservations are restored, and reservations
        are dropped before stock is taken away, so the record invariant
        holds after every step.
        """
        for result in reversed(results):
            reserved_delta = result.new_reserved - result.previous_reserved
            quantity_delta = result.new_quantity - result.previous_quantity
            logger.warning(
                "Compensating %s of %d on product %s",
                result.operation.value,
                result.quantity_change,
                result.product_id,
            )
            try:
                if quantity_delta < 0:
                    self.adjust(result.product_id, -quantity_delta, InventoryOperation.ADJUST, actor_id)
                if reserved_delta > 0:
                    self.adjust(result.product_id, reserved_delta, InventoryOperation.RELEASE, actor_id)
                elif reserved_delta < 0:
                    self.adjust(result.product_id, -reserved_delta, InventoryOperation.RESERVE, actor_id)
                if quantity_delta > 0:
                    self.adjust(result.product_id, -quantity_delta, InventoryOperation.ADJUST, actor_id)
            except DomainException:
                logger.exception(
                    "Could not compensate %s on product %s",
                    result.operation.value,
                    result.product_id,
                )

    # --- Record administration ------------------------------------------------

    def stock_product(
        self,
        product: Product,
        quantity: int,
        reorder_level: int = 0,
        actor_id: str | None = None,
    ) -> InventoryRecord:
        """Create the inventory record for a product stocked for the first time."""
        if quantity < 0:
            raise ValidationError("Initial quantity cannot be negative")
        if reorder_level < 0:
            raise ValidationError("Reorder level cannot be negative")

        record = InventoryRecord(
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            reorder_level=reorder_level,
        )
        self._inventory_repo.add(record)
        logger.info("Stocked product %s with %d units", product.id, quantity)

        hooks = PostCommitHooks()
        hooks.add(
            self._audit_log.record,
            "inventory",
            product.id,
            "INSERT",
            None,
            _snapshot(record),
            actor_id,
        )
        hooks.run()
        return record

    def set_reorder_level(
        self,
        product_id: str,
        level: int,
        actor_id: str | None = None,
    ) -> InventoryRecord:
        previous: dict[str, int] = {}

        def mutate(record: InventoryRecord) -> None:
            previous["reorder_level"] = record.reorder_level
            record.set_reorder_level(level)

        record = self._update_record(product_id, mutate)
        hooks = PostCommitHooks()
        hooks.add(
            self._audit_log.record,
            "inventory",
            product_id,
            "UPDATE",
            previous,
            {"reorder_level": record.reorder_level},
            actor_id,
        )
        hooks.run()
        return record

    # --- Internal helpers -----------------------------------------------------

    def _update_record(
        self,
        product_id: str,
        mutate: Callable[[InventoryRecord], None],
    ) -> InventoryRecord:
        for attempt in range(1, self._max_attempts + 1):
            record = self._inventory_repo.get_by_product_id(product_id)
            if record is None:
                raise EntityNotFoundError(
                    f"Inventory record not found for product '{product_id}'"
                )
            expected_version = record.version
            mutate(record)
            try:
                self._inventory_repo.save(record, expected_version=expected_version)
            except ConcurrencyConflictError:
                logger.debug(
                    "Version conflict on product %s (attempt %d/%d)",
                    product_id,
                    attempt,
                    self._max_attempts,
                )
                continue
            return record

        logger.warning(
            "Giving up on product %s after %d conflicting attempts",
            product_id,
            self._max_attempts,
        )
        raise ConcurrencyConflictError(
            f"Inventory for product '{product_id}' is changing too quickly, try again"
        )

    def _queue_side_effects(
        self,
        record: InventoryRecord,
        result: AdjustmentResult,
        hooks: PostCommitHooks,
        actor_id: str | None,
    ) -> None:
        hooks.add(
            self._audit_log.record,
            "inventory",
            result.product_id,
            "UPDATE",
            {
                "quantity": result.previous_quantity,
                "reserved_quantity": result.previous_reserved,
            },
            {
                "operation": result.operation.value,
                "quantity_change": result.quantity_change,
                "quantity": result.new_quantity,
                "reserved_quantity": result.new_reserved,
            },
            actor_id,
        )

        reorder_level = record.reorder_level
        if result.previous_available > reorder_level >= result.available_quantity:
            hooks.add(
                self._notifier.notify,
                None,
                NotificationKind.LOW_STOCK,
                "Low Stock Alert",
                f'Product "{record.product_name}" is running low on stock. '
                f"Available: {result.available_quantity}, Reorder level: {reorder_level}",
                {
                    "product_id": record.product_id,
                    "product_name": record.product_name,
                    "available_quantity": result.available_quantity,
                    "reorder_level": reorder_level,
                },
            )

        if result.previous_quantity > 0 and result.new_quantity == 0:
            hooks.add(
                self._notifier.notify,
                None,
                NotificationKind.OUT_OF_STOCK,
                "Out of Stock Alert",
                f'Product "{record.product_name}" is now out of stock.',
                {"product_id": record.product_id, "product_name": record.product_name},
            )

        if (
            result.operation is InventoryOperation.RESTOCK
            and result.previous_quantity <= reorder_level
        ):
            hooks.add(
                self._notifier.notify,
                None,
                NotificationKind.RESTOCKED,
                "Product Restocked",
                f'Product "{record.product_name}" has been restocked. '
                f"New quantity: {result.new_quantity}",
                {
                    "product_id": record.product_id,
                    "product_name": record.product_name,
                    "quantity": result.new_quantity,
                },
            )


def _coerce_operation(operation: InventoryOperation | str) -> InventoryOperation:
    if isinstance(operation, InventoryOperation):
        return operation
    try:
        return InventoryOperation(operation)
    except ValueError as exc:
        raise ValidationError(f"Invalid inventory operation: {operation!r}") from exc


def _snapshot(record: InventoryRecord) -> dict[str, int]:
    return {
        "quantity": record.quantity,
        "reserved_quantity": record.reserved_quantity,
        "reorder_level": record.reorder_level,
    }
