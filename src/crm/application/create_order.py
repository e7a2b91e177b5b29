"""Application service: Create Order use case.

Resolves product names to catalog products, snapshots their prices into
order items and stores the new order in CREATED status.
"""

from __future__ import annotations

import logging

from crm.application.clock import Clock, utcnow
from crm.application.dto import OrderDTO, OrderItemSpec
from crm.application.mappers import order_to_dto
from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.order import Order, OrderItem, OrderPriority
from crm.domain.model.value_objects import Quantity
from crm.domain.repository.product_repository import ProductRepository
from crm.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


def build_items(product_repo: ProductRepository, item_specs: list[OrderItemSpec]) -> list[OrderItem]:
    """Resolve each spec to a product and snapshot its current price."""
    items: list[OrderItem] = []
    for spec in item_specs:
        product = product_repo.get_by_name(spec.product_name)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{spec.product_name}'")
        items.append(
            OrderItem(
                product_id=product.id,
                product_name=product.name,
                quantity=Quantity(spec.quantity),
                unit_price=product.price,  # <-- price snapshot
            )
        )
    return items


def parse_priority(value: str) -> OrderPriority:
    try:
        return OrderPriority(value.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown priority '{value}'") from exc


class CreateOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        client_id: str,
        client_name: str,
        owner_id: str,
        item_specs: list[OrderItemSpec],
        priority: str = "NORMAL",
        notes: str = "",
    ) -> OrderDTO:
        with self._uow_factory() as uow:
            order = Order.create(
                number=uow.orders.next_number(),
                client_id=client_id,
                client_name=client_name,
                owner_id=owner_id,
                items=build_items(uow.products, item_specs),
                priority=parse_priority(priority),
                notes=notes,
                now=self._clock(),
            )
            uow.orders.save(order)
            uow.commit()

        logger.info("Order %s created for client %s by %s", order.number, client_id, owner_id)
        return order_to_dto(order)


class UpdateOrderItemsHandler:
    """Replace an order's items as a whole set (no partial patches)."""

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, order_id: int, item_specs: list[OrderItemSpec]) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            order.replace_items(build_items(uow.products, item_specs), now=self._clock())
            uow.orders.save(order)
            uow.commit()
        return order_to_dto(order)


class ShowOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order_to_dto(order)
