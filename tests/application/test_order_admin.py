"""Integration tests for order deletion and manual status overrides."""

from datetime import datetime, timezone

import pytest

from crm.application.create_order import CreateOrderHandler
from crm.application.dto import OrderItemSpec
from crm.application.order_admin import (
    DeleteOrderHandler,
    DeleteOutcome,
    OverrideStatusHandler,
)
from crm.application.proposal_workflow import (
    CreateCalculationHandler,
    RespondToProposalHandler,
    SendProposalHandler,
)
from crm.application.request_transition import RequestTransitionHandler
from crm.domain.exceptions import InvalidTransition, ValidationError
from crm.domain.model.calculation import CalculationStatus
from crm.domain.model.order import OrderStatus
from crm.domain.model.product import Product
from crm.domain.model.reminder import ReminderStatus
from crm.domain.model.stock import StockLevel
from crm.domain.model.value_objects import Money
from tests.fakes import FakeClock, FakeUnitOfWork

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup():
    uow = FakeUnitOfWork(
        products=[Product(id="1", name="Widget", price=Money.of("15.00"))],
        levels=[StockLevel("1", "Widget", quantity=10)],
    )
    clock = FakeClock(NOW)
    transitions = RequestTransitionHandler(uow, clock)
    order_id = CreateOrderHandler(uow, clock).handle(
        "c-1", "Acme", "manager-1", [OrderItemSpec("Widget", 3)]
    ).id
    return uow, clock, transitions, order_id


def _send(transitions, order_id):
    CreateCalculationHandler(transitions).handle(order_id, {}, "manager-1")
    SendProposalHandler(transitions).handle(order_id, "manager-1")


class TestDeleteOrder:

    def test_unshipped_order_is_removed_and_reminders_retired(self):
        uow, clock, transitions, order_id = _setup()
        _send(transitions, order_id)
        calculation_id = uow.orders.get_by_id(order_id).calculation_id

        outcome = DeleteOrderHandler(uow, clock).handle(order_id, "manager-1")

        assert outcome is DeleteOutcome.DELETED
        assert uow.orders.get_by_id(order_id) is None
        [reminder] = uow.reminders.all()
        assert reminder.status == ReminderStatus.CANCELLED
        assert uow.calculations.get_by_id(calculation_id).order_id is None

    def test_shipped_order_is_cancelled_instead(self):
        uow, clock, transitions, order_id = _setup()
        _send(transitions, order_id)
        RespondToProposalHandler(transitions).handle(order_id, "ACCEPTED", "manager-1")
        for status in ("FOR_SHIPMENT_UNPAID", "PICKING", "SHIPPED"):
            transitions.handle(order_id, status, "manager-1")

        outcome = DeleteOrderHandler(uow, clock).handle(order_id, "admin")

        assert outcome is DeleteOutcome.CANCELLED
        order = uow.orders.get_by_id(order_id)
        assert order.status == OrderStatus.CANCELLED
        assert order.status_history[-1].manual is True
        assert uow.stock_levels.get_by_product_id("1").quantity == 7

    def test_deleting_cancelled_order_changes_nothing(self):
        uow, clock, _, order_id = _setup()
        order = uow.orders.get_by_id(order_id)
        order.status = OrderStatus.CANCELLED
        uow.orders.save(order)

        assert DeleteOrderHandler(uow, clock).handle(order_id, "admin") is DeleteOutcome.UNCHANGED


class TestOverrideStatus:

    def test_reopens_rejected_proposal(self):
        uow, clock, transitions, order_id = _setup()
        _send(transitions, order_id)
        RespondToProposalHandler(transitions).handle(order_id, "REJECTED", "manager-1")

        dto = OverrideStatusHandler(uow, clock).handle(
            order_id, "CALCULATION", "admin", "Client asked for a discount"
        )

        assert dto.status == "CALCULATION"
        order = uow.orders.get_by_id(order_id)
        change = order.status_history[-1]
        assert change.manual is True
        assert change.reason == "Client asked for a discount"
        assert uow.calculations.get_by_id(order.calculation_id).status == CalculationStatus.DRAFT

        # The normal path can send the revised proposal again.
        SendProposalHandler(transitions).handle(order_id, "manager-1")
        assert len([r for r in uow.reminders.all() if r.status == ReminderStatus.PENDING]) == 1

    def test_reason_required(self):
        uow, clock, _, order_id = _setup()
        with pytest.raises(ValidationError, match="reason is required"):
            OverrideStatusHandler(uow, clock).handle(order_id, "CALCULATION", "admin", " ")

    def test_only_listed_overrides_allowed(self):
        uow, clock, _, order_id = _setup()
        with pytest.raises(InvalidTransition):
            OverrideStatusHandler(uow, clock).handle(order_id, "SHIPPED", "admin", "rush")
