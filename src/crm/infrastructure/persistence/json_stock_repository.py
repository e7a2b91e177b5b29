"""JSON-document implementations of the stock repositories."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from crm.domain.exceptions import ConcurrentModification
from crm.domain.model.stock import StockLevel, StockTransaction, TransactionType
from crm.domain.repository.stock_repository import (
    StockLevelRepository,
    TransactionRepository,
)
from crm.infrastructure.persistence.json_store import JsonCollection


class JsonStockLevelRepository(JsonCollection, StockLevelRepository):

    def __init__(self, document: dict) -> None:
        super().__init__(document, "stock_levels")

    def get_by_product_id(self, product_id: str) -> StockLevel | None:
        raw = self._find("product_id", product_id)
        return self._to_domain(raw) if raw is not None else None

    def list_all(self) -> list[StockLevel]:
        return [self._to_domain(raw) for raw in self._records]

    def save(self, level: StockLevel) -> None:
        stored = self._find("product_id", level.product_id)
        stored_version = stored["version"] if stored is not None else 0
        if stored_version != level.version:
            raise ConcurrentModification(
                f"Stock for product '{level.product_id}' changed concurrently; retry"
            )
        level.version += 1
        self._upsert(
            "product_id",
            {
                "product_id": level.product_id,
                "product_name": level.product_name,
                "quantity": level.quantity,
                "version": level.version,
            },
        )

    @staticmethod
    def _to_domain(raw: dict) -> StockLevel:
        return StockLevel(
            product_id=raw["product_id"],
            product_name=raw["product_name"],
            quantity=raw["quantity"],
            version=raw.get("version", 0),
        )


class JsonTransactionRepository(JsonCollection, TransactionRepository):

    def __init__(self, document: dict) -> None:
        super().__init__(document, "transactions")

    def append(self, transaction: StockTransaction) -> StockTransaction:
        stored = replace(transaction, id=self._next_id())
        self._records.append(
            {
                "id": stored.id,
                "product_id": stored.product_id,
                "quantity": stored.quantity,
                "type": stored.type.value,
                "actor_id": stored.actor_id,
                "created_at": stored.created_at.isoformat(),
                "reason": stored.reason,
                "client_id": stored.client_id,
            }
        )
        return stored

    def list_for_product(self, product_id: str) -> list[StockTransaction]:
        return [
            StockTransaction(
                id=raw["id"],
                product_id=raw["product_id"],
                quantity=raw["quantity"],
                type=TransactionType(raw["type"]),
                actor_id=raw["actor_id"],
                created_at=datetime.fromisoformat(raw["created_at"]),
                reason=raw.get("reason"),
                client_id=raw.get("client_id"),
            )
            for raw in self._records
            if raw["product_id"] == product_id
        ]
