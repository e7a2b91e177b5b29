"""Unit tests for the StockLedger domain service."""

import pytest

from crm.domain.exceptions import EntityNotFoundError, InsufficientStock, ValidationError
from crm.domain.model.stock import StockLevel, TransactionType
from crm.domain.service.stock_ledger import StockLedger
from tests.fakes import FakeStockLevelRepository, FakeTransactionRepository


def _setup(*levels: StockLevel):
    stock_repo = FakeStockLevelRepository(list(levels))
    transaction_repo = FakeTransactionRepository()
    return StockLedger(stock_repo, transaction_repo), stock_repo, transaction_repo


class TestApplyDelta:

    def test_issue_then_shortage(self):
        ledger, stock_repo, _ = _setup(StockLevel("1", "Widget", quantity=10))

        ledger.apply_delta("1", -10, TransactionType.OUTGOING, "u1")
        assert stock_repo.get_by_product_id("1").quantity == 0

        with pytest.raises(InsufficientStock) as excinfo:
            ledger.apply_delta("1", -1, TransactionType.OUTGOING, "u1")
        assert excinfo.value.available == 0
        assert excinfo.value.requested == 1

    def test_records_audit_transaction(self):
        ledger, _, transaction_repo = _setup(StockLevel("1", "Widget", quantity=5))
        ledger.apply_delta("1", 3, TransactionType.INCOMING, "u1", reason="delivery", client_id="c-9")
        [entry] = transaction_repo.entries
        assert entry.quantity == 3
        assert entry.type == TransactionType.INCOMING
        assert entry.reason == "delivery"
        assert entry.id == 1

    def test_incoming_creates_missing_level(self):
        ledger, stock_repo, _ = _setup()
        ledger.apply_delta("2", 7, TransactionType.INCOMING, "u1", product_name="Gadget")
        level = stock_repo.get_by_product_id("2")
        assert level.quantity == 7
        assert level.product_name == "Gadget"

    def test_outgoing_for_unknown_product_rejected(self):
        ledger, _, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            ledger.apply_delta("2", -1, TransactionType.OUTGOING, "u1", product_name="Gadget")

    def test_inventory_type_must_use_set_quantity(self):
        ledger, _, _ = _setup(StockLevel("1", "Widget", quantity=5))
        with pytest.raises(ValidationError, match="set_quantity"):
            ledger.apply_delta("1", 1, TransactionType.INVENTORY, "u1")

    def test_zero_delta_rejected(self):
        ledger, _, _ = _setup(StockLevel("1", "Widget", quantity=5))
        with pytest.raises(ValidationError, match="must not be zero"):
            ledger.apply_delta("1", 0, TransactionType.INCOMING, "u1")


class TestSetQuantity:

    def test_records_signed_difference(self):
        ledger, stock_repo, transaction_repo = _setup(StockLevel("1", "Widget", quantity=10))
        ledger.set_quantity("1", 4, "u1")
        assert stock_repo.get_by_product_id("1").quantity == 4
        [entry] = transaction_repo.entries
        assert entry.quantity == -6
        assert entry.type == TransactionType.INVENTORY
        assert entry.reason == "Manual quantity adjustment"

    def test_negative_rejected(self):
        ledger, _, _ = _setup(StockLevel("1", "Widget", quantity=10))
        with pytest.raises(ValidationError, match="cannot be negative"):
            ledger.set_quantity("1", -1, "u1")


class TestApplyBatch:

    def test_shortage_on_one_product_changes_nothing(self):
        ledger, stock_repo, transaction_repo = _setup(
            StockLevel("1", "Widget", quantity=5),
            StockLevel("2", "Gadget", quantity=1),
        )
        with pytest.raises(InsufficientStock, match="Gadget"):
            ledger.apply_batch([("1", -5), ("2", -2)], TransactionType.SHIPMENT, "u1")

        assert stock_repo.get_by_product_id("1").quantity == 5
        assert stock_repo.get_by_product_id("2").quantity == 1
        assert transaction_repo.entries == []

    def test_validates_cumulative_delta_per_product(self):
        ledger, _, _ = _setup(StockLevel("1", "Widget", quantity=5))
        with pytest.raises(InsufficientStock):
            ledger.apply_batch([("1", -3), ("1", -3)], TransactionType.SHIPMENT, "u1")

    def test_applies_every_delta(self):
        ledger, stock_repo, transaction_repo = _setup(
            StockLevel("1", "Widget", quantity=5),
            StockLevel("2", "Gadget", quantity=4),
        )
        ledger.apply_batch([("1", -2), ("2", -4)], TransactionType.SHIPMENT, "u1", client_id="c-1")
        assert stock_repo.get_by_product_id("1").quantity == 3
        assert stock_repo.get_by_product_id("2").quantity == 0
        assert [t.client_id for t in transaction_repo.entries] == ["c-1", "c-1"]
