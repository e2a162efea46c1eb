"""Application service: Add Product use case."""

from __future__ import annotations

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository, currency: str = "USD") -> None:
        self._product_repo = product_repo
        self._currency = currency

    def handle(
        self,
        name: str,
        price: str,
        cost_price: str = "0",
        sku: str | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")

        if self._product_repo.get_by_name(name) is not None:
            raise ValidationError(f"Product '{name}' already exists")

        if sku is not None and self._product_repo.get_by_sku(sku) is not None:
            raise ValidationError(f"SKU '{sku}' is already in use")

        unit_price = Money.of(price, self._currency)
        if unit_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")

        # Auto-assign ID based on existing products
        all_products = self._product_repo.list_all()
        if all_products:
            next_id = str(max(int(p.id) for p in all_products) + 1)
        else:
            next_id = "1"

        product = Product(
            id=next_id,
            name=name.strip(),
            price=unit_price,
            cost_price=Money.of(cost_price, self._currency),
            sku=sku,
        )
        self._product_repo.save(product)
        return product
