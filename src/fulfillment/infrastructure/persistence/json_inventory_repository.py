"""JSON-file-backed implementation of InventoryRepository.

``save`` is a compare-and-set on the record's ``version`` field, checked
and written while holding the file lock.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fulfillment.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    ValidationError,
)
from fulfillment.domain.model.inventory import InventoryRecord
from fulfillment.domain.repository.inventory_repository import InventoryRepository
from fulfillment.infrastructure.persistence.json_files import (
    ensure_file,
    load_raw,
    lock_for,
    persist_raw,
)


class JsonInventoryRepository(InventoryRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)
        ensure_file(file_path)

    # --- InventoryRepository interface ----------------------------------------

    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        for raw in load_raw(self._file_path):
            if raw["product_id"] == product_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[InventoryRecord]:
        return [self._to_domain(raw) for raw in load_raw(self._file_path)]

    def add(self, record: InventoryRecord) -> None:
        with self._lock:
            records = load_raw(self._file_path)
            if any(raw["product_id"] == record.product_id for raw in records):
                raise ValidationError(
                    f"Inventory record for product '{record.product_id}' already exists"
                )
            record.version = 1
            records.append(self._to_raw(record))
            persist_raw(self._file_path, records)

    def save(self, record: InventoryRecord, expected_version: int) -> None:
        with self._lock:
            records = load_raw(self._file_path)
            for i, raw in enumerate(records):
                if raw["product_id"] != record.product_id:
                    continue
                if raw.get("version", 0) != expected_version:
                    raise ConcurrencyConflictError(
                        f"Inventory for product '{record.product_id}' was modified "
                        f"concurrently (expected version {expected_version}, "
                        f"found {raw.get('version', 0)})"
                    )
                record.version = expected_version + 1
                records[i] = self._to_raw(record)
                persist_raw(self._file_path, records)
                return
        raise EntityNotFoundError(
            f"No inventory record for product '{record.product_id}'"
        )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(record: InventoryRecord) -> dict:
        return {
            "product_id": record.product_id,
            "product_name": record.product_name,
            "quantity": record.quantity,
            "reserved_quantity": record.reserved_quantity,
            "reorder_level": record.reorder_level,
            "last_updated": record.last_updated.isoformat(),
            "version": record.version,
        }

    @staticmethod
    def _to_domain(raw: dict) -> InventoryRecord:
        return InventoryRecord(
            product_id=raw["product_id"],
            product_name=raw["product_name"],
            quantity=raw["quantity"],
            reserved_quantity=raw.get("reserved_quantity", 0),
            reorder_level=raw.get("reorder_level", 0),
            last_updated=datetime.fromisoformat(raw["last_updated"]),
            version=raw.get("version", 0),
        )
