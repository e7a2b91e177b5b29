"""Integration tests for the stock and product catalog use cases."""

from datetime import datetime, timezone

import pytest

from crm.application.manage_products import (
    AddProductHandler,
    ListProductsHandler,
    UpdateProductHandler,
)
from crm.application.manage_stock import (
    AdjustStockHandler,
    SetStockHandler,
    ShowStockHandler,
    StockHistoryHandler,
)
from crm.domain.exceptions import EntityNotFoundError, InsufficientStock, ValidationError
from crm.domain.model.stock import TransactionType
from tests.fakes import FakeClock, FakeUnitOfWork

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup():
    uow = FakeUnitOfWork()
    clock = FakeClock(NOW)
    AddProductHandler(uow).handle("Widget", "15.00")
    AddProductHandler(uow).handle("Gadget", "25.00", unit="kg")
    return uow, clock


class TestProducts:

    def test_ids_are_sequential(self):
        uow, _ = _setup()
        assert [p.id for p in ListProductsHandler(uow).handle()] == ["1", "2"]

    def test_duplicate_name_rejected(self):
        uow, _ = _setup()
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(uow).handle("widget", "1.00")

    def test_zero_price_rejected(self):
        uow, _ = _setup()
        with pytest.raises(ValidationError, match="greater than zero"):
            AddProductHandler(uow).handle("Freebie", "0")

    def test_update_price(self):
        uow, _ = _setup()
        product = UpdateProductHandler(uow).handle("2", "30.50")
        assert str(product.price) == "30.50 RUB"
        assert uow.products.get_by_id("2").unit == "kg"

    def test_update_unknown_product(self):
        uow, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            UpdateProductHandler(uow).handle("9", "1.00")


class TestAdjustStock:

    def test_receive_creates_level(self):
        uow, clock = _setup()
        dto = AdjustStockHandler(uow, clock).handle("Widget", 10, TransactionType.INCOMING, "u1")
        assert dto.quantity == 10
        assert dto.type == "INCOMING"
        assert uow.stock_levels.get_by_product_id("1").quantity == 10

    def test_issue_down_to_zero_then_shortage(self):
        uow, clock = _setup()
        handler = AdjustStockHandler(uow, clock)
        handler.handle("Widget", 10, TransactionType.INCOMING, "u1")
        handler.handle("Widget", 10, TransactionType.OUTGOING, "u1")

        with pytest.raises(InsufficientStock, match="have 0 available"):
            handler.handle("Widget", 1, TransactionType.OUTGOING, "u1")
        assert uow.stock_levels.get_by_product_id("1").quantity == 0

    def test_shipment_type_not_allowed_directly(self):
        uow, clock = _setup()
        with pytest.raises(ValidationError, match="received or issued"):
            AdjustStockHandler(uow, clock).handle("Widget", 1, TransactionType.SHIPMENT, "u1")

    def test_non_positive_quantity_rejected(self):
        uow, clock = _setup()
        with pytest.raises(ValidationError, match="must be positive"):
            AdjustStockHandler(uow, clock).handle("Widget", 0, TransactionType.INCOMING, "u1")

    def test_unknown_product(self):
        uow, clock = _setup()
        with pytest.raises(EntityNotFoundError, match="Product not found"):
            AdjustStockHandler(uow, clock).handle("Nope", 1, TransactionType.INCOMING, "u1")


class TestSetAndShowStock:

    def test_set_records_difference_and_history_is_newest_first(self):
        uow, clock = _setup()
        AdjustStockHandler(uow, clock).handle("Gadget", 5, TransactionType.INCOMING, "u1")
        clock.advance(hours=1)
        SetStockHandler(uow, clock).handle("Gadget", 8, "u2", reason="Count")

        history = StockHistoryHandler(uow).handle("Gadget")
        assert [(h.type, h.quantity) for h in history] == [("INVENTORY", 3), ("INCOMING", 5)]
        assert history[0].reason == "Count"

    def test_show_lists_levels_by_name(self):
        uow, clock = _setup()
        handler = AdjustStockHandler(uow, clock)
        handler.handle("Widget", 2, TransactionType.INCOMING, "u1")
        handler.handle("Gadget", 3, TransactionType.INCOMING, "u1")

        lines = ShowStockHandler(uow).handle()
        assert [(line.product_name, line.quantity) for line in lines] == [("Gadget", 3), ("Widget", 2)]
