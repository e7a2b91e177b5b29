"""JSON-document implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal

from crm.domain.model.product import Product
from crm.domain.model.value_objects import Money
from crm.domain.repository.product_repository import ProductRepository
from crm.infrastructure.persistence.json_store import JsonCollection


class JsonProductRepository(JsonCollection, ProductRepository):

    def __init__(self, document: dict) -> None:
        super().__init__(document, "products")

    def get_by_id(self, product_id: str) -> Product | None:
        raw = self._find("id", product_id)
        return self._to_domain(raw) if raw is not None else None

    def get_by_name(self, name: str) -> Product | None:
        for raw in self._records:
            if raw["name"].lower() == name.lower():
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._records]

    def save(self, product: Product) -> None:
        self._upsert(
            "id",
            {
                "id": product.id,
                "name": product.name,
                "price": str(product.price.amount),
                "currency": product.price.currency,
                "unit": product.unit,
            },
        )

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            price=Money(Decimal(raw["price"]), raw.get("currency", "RUB")),
            unit=raw.get("unit", "pcs"),
        )
