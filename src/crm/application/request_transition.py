"""Application service: Request Transition use case.

Loads the order inside a unit of work, asks the workflow for a decision,
runs the side effects the decision names and commits everything together.
A shipment's stock decrements, audit records and the SHIPPED status are
therefore written in one step, or not at all.
"""

from __future__ import annotations

import logging
from datetime import datetime
from crm.application.clock import Clock, utcnow
from crm.application.dto import OrderDTO, TransitionOptionsDTO
from crm.application.mappers import order_to_dto
from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.calculation import Calculation
from crm.domain.model.order import Order, OrderStatus
from crm.domain.model.reminder import DEFAULT_FREQUENCY_DAYS, DEFAULT_MAX_REMINDERS
from crm.domain.model.stock import TransactionType
from crm.domain.model.value_objects import RelatedRef
from crm.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from crm.domain.service.notification_emitter import NotificationEmitter
from crm.domain.service.order_workflow import (
    GuardFacts,
    SideEffect,
    plan_transition,
    transition_requirements,
    valid_transitions,
)
from crm.domain.service.reminder_scheduler import ReminderScheduler
from crm.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.strip().upper())
    except ValueError as exc:
        raise ValidationError(
            f"Unknown status '{value}'. Expected one of: "
            + ", ".join(s.value for s in OrderStatus)
        ) from exc


def load_order(uow: UnitOfWork, order_id: int) -> Order:
    order = uow.orders.get_by_id(order_id)
    if order is None:
        raise EntityNotFoundError(f"Order #{order_id} not found")
    return order


class OrderTransitioner:
    """Executes one approved transition on repositories of an open unit of work."""

    def __init__(
        self,
        uow: UnitOfWork,
        follow_up_days: int = DEFAULT_FREQUENCY_DAYS,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
    ) -> None:
        self._uow = uow
        self._follow_up_days = follow_up_days
        self._max_reminders = max_reminders
        self._scheduler = ReminderScheduler(
            uow.reminders, uow.calculations, NotificationEmitter(uow.notifications)
        )

    def transition(
        self,
        order: Order,
        target: OrderStatus,
        actor_id: str,
        now: datetime,
    ) -> None:
        effects = plan_transition(
            order.status, target, GuardFacts(has_calculation=order.has_calculation)
        )
        previous = order.status

        for effect in effects:
            if effect is SideEffect.SHIP_STOCK:
                self._ship(order, actor_id, now)
            elif effect is SideEffect.ARM_FOLLOW_UP:
                self._scheduler.arm_follow_up(
                    self._calculation(order),
                    actor_id,
                    now=now,
                    frequency_days=self._follow_up_days,
                    max_reminders=self._max_reminders,
                )
            elif effect is SideEffect.RETIRE_REMINDERS:
                if order.calculation_id is not None:
                    self._scheduler.retire_all(RelatedRef.calculation(order.calculation_id))
            elif effect is SideEffect.RESOLVE_PROPOSAL:
                if order.calculation_id is not None:
                    calculation = self._calculation(order)
                    calculation.resolve(accepted=target is OrderStatus.PROPOSAL_ACCEPTED)
                    self._uow.calculations.save(calculation)
            elif effect is SideEffect.NOTIFY_OWNER:
                self._notify_resolution(order, target, now)

        order.record_transition(target, actor_id, now=now)
        self._uow.orders.save(order)
        logger.info(
            "Order %s: %s -> %s by %s", order.number, previous.value, target.value, actor_id
        )

    # --- Side effects ---------------------------------------------------------

    def _ship(self, order: Order, actor_id: str, now: datetime) -> None:
        ledger = StockLedger(self._uow.stock_levels, self._uow.transactions)
        ledger.apply_batch(
            [(item.product_id, -item.quantity.value) for item in order.items],
            TransactionType.SHIPMENT,
            actor_id,
            reason=f"Shipment for order {order.number}",
            client_id=order.client_id,
            now=now,
        )

    def _notify_resolution(self, order: Order, target: OrderStatus, now: datetime) -> None:
        verdict = "accepted" if target is OrderStatus.PROPOSAL_ACCEPTED else "rejected"
        NotificationEmitter(self._uow.notifications).emit_system(
            owner_id=order.owner_id,
            title=f"Proposal for order {order.number} {verdict}",
            content=(
                f"The proposal for order {order.number} "
                f"(client: {order.client_name or order.client_id}) was {verdict} by the client."
            ),
            related=RelatedRef.order(order.id),  # type: ignore[arg-type]
            now=now,
        )

    def _calculation(self, order: Order) -> Calculation:
        if order.calculation_id is None:
            raise ValidationError(f"Order {order.number} has no calculation")
        calculation = self._uow.calculations.get_by_id(order.calculation_id)
        if calculation is None:
            raise EntityNotFoundError(
                f"Calculation #{order.calculation_id} for order {order.number} not found"
            )
        return calculation


class RequestTransitionHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: Clock = utcnow,
        follow_up_days: int = DEFAULT_FREQUENCY_DAYS,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._follow_up_days = follow_up_days
        self._max_reminders = max_reminders

    def handle(self, order_id: int, target_status: str, actor_id: str) -> OrderDTO:
        target = parse_status(target_status)
        with self._uow_factory() as uow:
            order = load_order(uow, order_id)
            self.transitioner(uow).transition(order, target, actor_id, self._clock())
            uow.commit()
            return order_to_dto(order)

    @property
    def uow_factory(self) -> UnitOfWorkFactory:
        return self._uow_factory

    def clock(self) -> datetime:
        return self._clock()

    def transitioner(self, uow: UnitOfWork) -> OrderTransitioner:
        return OrderTransitioner(uow, self._follow_up_days, self._max_reminders)


class ValidTransitionsHandler:
    """Query: legal next statuses of an order and their preconditions."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int) -> TransitionOptionsDTO:
        with self._uow_factory() as uow:
            order = load_order(uow, order_id)
        return TransitionOptionsDTO(
            order_id=order_id,
            current_status=order.status.value,
            valid_transitions=[s.value for s in valid_transitions(order.status)],
            requirements=transition_requirements(order.status),
            has_calculation=order.has_calculation,
        )
