"""Product aggregate.

Products live independently of orders. They have their own lifecycle:
prices change, products are added to and retired from the catalog.
The fulfillment core only ever reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fulfillment.domain.exceptions import ValidationError
from fulfillment.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    ``is_active`` is a soft-delete flag: inactive products keep their
    inventory record but cannot be ordered.
    """

    id: str
    name: str
    price: Money
    cost_price: Money = field(default_factory=Money.zero)
    sku: str | None = None
    is_active: bool = True

    def update_price(self, new_price: Money) -> None:
        """Change the product price.

        This does NOT affect any existing orders because orders
        capture a price snapshot at creation time.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.price = new_price

    def deactivate(self) -> None:
        self.is_active = False

    def activate(self) -> None:
        self.is_active = True
