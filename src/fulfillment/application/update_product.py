"""Application service: Update Product use case."""

from __future__ import annotations

from fulfillment.domain.exceptions import EntityNotFoundError
from fulfillment.domain.model.product import Product
from fulfillment.domain.model.value_objects import Money
from fulfillment.domain.repository.product_repository import ProductRepository


class UpdateProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        product_id: str,
        new_price: str | None = None,
        active: bool | None = None,
    ) -> Product:
        """Update a product's price and/or active flag.

        This does NOT affect any existing orders — they captured a
        price snapshot at creation time.
        """
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

        if new_price is not None:
            product.update_price(Money.of(new_price, product.price.currency))
        if active is True:
            product.activate()
        elif active is False:
            product.deactivate()

        self._product_repo.save(product)
        return product
