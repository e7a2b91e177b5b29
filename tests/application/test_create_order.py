"""Integration tests for the order creation and item update use cases.

Uses in-memory fake repositories, no file I/O.
"""

from datetime import datetime, timezone

import pytest

from crm.application.create_order import (
    CreateOrderHandler,
    ShowOrderHandler,
    UpdateOrderItemsHandler,
)
from crm.application.dto import OrderItemSpec
from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.order import OrderStatus
from crm.domain.model.product import Product
from crm.domain.model.value_objects import Money
from tests.fakes import FakeClock, FakeUnitOfWork

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup() -> tuple[CreateOrderHandler, FakeUnitOfWork, FakeClock]:
    """Build handler with a fake unit of work pre-loaded with products."""
    uow = FakeUnitOfWork(
        products=[
            Product(id="1", name="Widget", price=Money.of("15.00")),
            Product(id="2", name="Gadget", price=Money.of("25.00")),
        ]
    )
    clock = FakeClock(NOW)
    return CreateOrderHandler(uow, clock), uow, clock


def _create(handler: CreateOrderHandler, *specs: OrderItemSpec):
    return handler.handle("c-1", "Acme", "manager-1", list(specs) or [OrderItemSpec("Widget", 1)])


class TestCreateOrderHappyPath:

    def test_creates_order_with_correct_total(self):
        handler, _, _ = _setup()
        dto = _create(handler, OrderItemSpec("Widget", 3), OrderItemSpec("Gadget", 5))
        assert dto.total == "170.00 RUB"
        assert dto.status == "CREATED"
        assert dto.client_name == "Acme"
        assert dto.number == "ORD-000001"
        assert len(dto.items) == 2

    def test_persists_order_and_commits(self):
        handler, uow, _ = _setup()
        dto = _create(handler)
        saved = uow.orders.get_by_id(dto.id)
        assert saved.status == OrderStatus.CREATED
        assert saved.owner_id == "manager-1"
        assert uow.commits == 1

    def test_sequential_numbers(self):
        handler, _, _ = _setup()
        first = _create(handler)
        second = _create(handler)
        assert (first.number, second.number) == ("ORD-000001", "ORD-000002")

    def test_priority_is_parsed(self):
        handler, _, _ = _setup()
        dto = handler.handle("c-1", "Acme", "m", [OrderItemSpec("Widget", 1)], priority="high")
        assert dto.priority == "HIGH"


class TestCreateOrderPriceLock:

    def test_price_snapshot_at_creation(self):
        handler, uow, _ = _setup()
        dto = _create(handler)

        widget = uow.products.get_by_name("Widget")
        widget.update_price(Money.of("99.99"))
        uow.products.save(widget)

        saved = uow.orders.get_by_id(dto.id)
        assert str(saved.total_amount) == "15.00 RUB"


class TestCreateOrderValidation:

    def test_unknown_product_rejected(self):
        handler, uow, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="Product not found"):
            _create(handler, OrderItemSpec("NonExistent", 1))
        assert uow.orders.list_all() == []

    def test_negative_quantity_rejected(self):
        handler, _, _ = _setup()
        with pytest.raises(ValidationError, match="must be positive"):
            _create(handler, OrderItemSpec("Widget", -1))

    def test_unknown_priority_rejected(self):
        handler, _, _ = _setup()
        with pytest.raises(ValidationError, match="Unknown priority"):
            handler.handle("c-1", "Acme", "m", [OrderItemSpec("Widget", 1)], priority="ASAP")


class TestUpdateItems:

    def test_replaces_whole_item_set(self):
        handler, uow, clock = _setup()
        dto = _create(handler, OrderItemSpec("Widget", 1))
        clock.advance(hours=1)

        updated = UpdateOrderItemsHandler(uow, clock).handle(dto.id, [OrderItemSpec("Gadget", 2)])

        assert [i.product_name for i in updated.items] == ["Gadget"]
        assert updated.total == "50.00 RUB"

    def test_shipped_order_items_are_frozen(self):
        handler, uow, clock = _setup()
        dto = _create(handler)
        order = uow.orders.get_by_id(dto.id)
        order.status = OrderStatus.SHIPPED
        uow.orders.save(order)

        with pytest.raises(ValidationError, match="can no longer change"):
            UpdateOrderItemsHandler(uow, clock).handle(dto.id, [OrderItemSpec("Gadget", 2)])

    def test_show_unknown_order(self):
        _, uow, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="Order #42"):
            ShowOrderHandler(uow).handle(42)
