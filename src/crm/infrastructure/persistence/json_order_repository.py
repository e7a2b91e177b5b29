"""JSON-document implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from crm.domain.exceptions import ConcurrentModification
from crm.domain.model.order import (
    Order,
    OrderItem,
    OrderPriority,
    OrderStatus,
    StatusChange,
)
from crm.domain.model.value_objects import Money, Quantity
from crm.domain.repository.order_repository import OrderRepository
from crm.infrastructure.persistence.json_store import JsonCollection


class JsonOrderRepository(JsonCollection, OrderRepository):

    def __init__(self, document: dict) -> None:
        super().__init__(document, "orders")

    # --- OrderRepository interface --------------------------------------------

    def next_number(self) -> str:
        counters = self._document["counters"]
        counters["order_numbers"] = counters.get("order_numbers", 0) + 1
        return f"ORD-{counters['order_numbers']:06d}"

    def get_by_id(self, order_id: int) -> Order | None:
        raw = self._find("id", order_id)
        return self._to_domain(raw) if raw is not None else None

    def list_all(self) -> list[Order]:
        return [self._to_domain(raw) for raw in self._records]

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self._next_id()
        else:
            stored = self._find("id", order.id)
            if stored is not None and stored["version"] != order.version:
                raise ConcurrentModification(
                    f"Order #{order.id} was modified concurrently; reload and retry"
                )
        order.version += 1
        self._upsert("id", self._to_raw(order))

    def delete(self, order_id: int) -> None:
        self._remove("id", order_id)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "number": order.number,
            "client_id": order.client_id,
            "client_name": order.client_name,
            "owner_id": order.owner_id,
            "status": order.status.value,
            "priority": order.priority.value,
            "notes": order.notes,
            "total_amount": str(order.total_amount.amount),
            "currency": order.total_amount.currency,
            "calculation_id": order.calculation_id,
            "contract_id": order.contract_id,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "version": order.version,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "currency": item.unit_price.currency,
                }
                for item in order.items
            ],
            "status_history": [
                {
                    "from": change.from_status.value,
                    "to": change.to_status.value,
                    "actor_id": change.actor_id,
                    "changed_at": change.changed_at.isoformat(),
                    "reason": change.reason,
                    "manual": change.manual,
                }
                for change in order.status_history
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw.get("currency", "RUB")
        items = [
            OrderItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", currency)),
            )
            for i in raw["items"]
        ]
        history = [
            StatusChange(
                from_status=OrderStatus(h["from"]),
                to_status=OrderStatus(h["to"]),
                actor_id=h["actor_id"],
                changed_at=datetime.fromisoformat(h["changed_at"]),
                reason=h.get("reason"),
                manual=h.get("manual", False),
            )
            for h in raw.get("status_history", [])
        ]
        return Order(
            id=raw["id"],
            number=raw["number"],
            client_id=raw["client_id"],
            client_name=raw.get("client_name", ""),
            owner_id=raw["owner_id"],
            items=items,
            total_amount=Money(Decimal(raw["total_amount"]), currency),
            status=OrderStatus(raw["status"]),
            priority=OrderPriority(raw.get("priority", "NORMAL")),
            notes=raw.get("notes", ""),
            calculation_id=raw.get("calculation_id"),
            contract_id=raw.get("contract_id"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            version=raw["version"],
            status_history=history,
        )
