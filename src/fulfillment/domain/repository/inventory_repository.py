"""Abstract repository for InventoryRecord aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from fulfillment.domain.model.inventory import InventoryRecord


class InventoryRepository(ABC):

    @abstractmethod
    def get_by_product_id(self, product_id: str) -> InventoryRecord | None:
        """Return a detached copy of the record for a product, or None.

        Mutating the returned object has no effect until it is saved.
        """

    @abstractmethod
    def list_all(self) -> list[InventoryRecord]:
        """Return every inventory record."""

    @abstractmethod
    def add(self, record: InventoryRecord) -> None:
        """Persist a record for a product that has none yet.

        Raises ValidationError if the product already has a record.
        """

    @abstractmethod
    def save(self, record: InventoryRecord, expected_version: int) -> None:
        """Compare-and-set write of an existing record.

        Writes only if the stored version still equals ``expected_version``,
        then bumps ``record.version``.  Raises ConcurrencyConflictError when
        another writer got there first, and EntityNotFoundError when the
        record does not exist.
        """
