"""Product aggregate.

Products live independently of orders. Prices change over time; order
items capture a snapshot of the price when the item set is written.
"""

from __future__ import annotations

from dataclasses import dataclass

from crm.domain.exceptions import ValidationError
from crm.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog."""

    id: str
    name: str
    price: Money
    unit: str = "pcs"

    def update_price(self, new_price: Money) -> None:
        """Change the product price.

        Existing orders keep the price they captured.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.price = new_price
