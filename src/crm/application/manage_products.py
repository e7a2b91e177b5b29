"""Application services for the product catalog."""

from __future__ import annotations

import logging

from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.product import Product
from crm.domain.model.value_objects import Money
from crm.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class AddProductHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, name: str, price: str, unit: str = "pcs") -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        amount = Money.of(price)
        if amount.amount <= 0:
            raise ValidationError("Product price must be greater than zero")

        with self._uow_factory() as uow:
            if uow.products.get_by_name(name.strip()) is not None:
                raise ValidationError(f"Product '{name.strip()}' already exists")

            # Sequential ids, as strings
            all_products = uow.products.list_all()
            next_id = str(max((int(p.id) for p in all_products), default=0) + 1)

            product = Product(id=next_id, name=name.strip(), price=amount, unit=unit)
            uow.products.save(product)
            uow.commit()

        logger.info("Product #%s '%s' added at %s", product.id, product.name, product.price)
        return product


class UpdateProductHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, product_id: str, new_price: str) -> Product:
        """Change a product's price; existing orders keep their snapshot."""
        with self._uow_factory() as uow:
            product = uow.products.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product not found: '{product_id}'")
            product.update_price(Money.of(new_price))
            uow.products.save(product)
            uow.commit()
        return product


class ListProductsHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[Product]:
        with self._uow_factory() as uow:
            return sorted(uow.products.list_all(), key=lambda p: int(p.id))
