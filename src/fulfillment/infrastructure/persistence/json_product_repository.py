"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from fulfillment.domain.model.product import Product
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.repository.product_repository import ProductRepository
from fulfillment.infrastructure.persistence.json_files import (
    ensure_file,
    load_raw,
    lock_for,
    persist_raw,
)


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)
        ensure_file(file_path)

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        return self._load().get(product_id)

    def get_by_name(self, name: str) -> Product | None:
        for product in self._load().values():
            if product.name.lower() == name.strip().lower():
                return product
        return None

    def get_by_sku(self, sku: str) -> Product | None:
        for product in self._load().values():
            if product.sku is not None and product.sku == sku:
                return product
        return None

    def list_all(self) -> list[Product]:
        return list(self._load().values())

    def save(self, product: Product) -> None:
        with self._lock:
            products = self._load()
            products[product.id] = product
            persist_raw(self._file_path, [self._to_raw(p) for p in products.values()])

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, Product]:
        return {raw["id"]: self._to_domain(raw) for raw in load_raw(self._file_path)}

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "price": str(product.price.amount),
            "cost_price": str(product.cost_price.amount),
            "currency": product.price.currency,
            "is_active": product.is_active,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        currency = raw.get("currency", "USD")
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=Money(Decimal(raw["price"]), currency),
            cost_price=Money(Decimal(raw.get("cost_price", "0")), currency),
            sku=raw.get("sku"),
            is_active=raw.get("is_active", True),
        )
