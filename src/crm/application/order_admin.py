"""Application services outside the standard transition table.

Deletion follows a policy: orders whose stock has not been committed are
removed, shipped orders are cancelled instead.  Manual overrides are a
separate, audited path with their own table of allowed moves.
"""

from __future__ import annotations

import logging
from enum import Enum

from crm.application.clock import Clock, utcnow
from crm.application.dto import OrderDTO
from crm.application.mappers import order_to_dto
from crm.application.request_transition import load_order, parse_status
from crm.domain.exceptions import ValidationError
from crm.domain.model.order import OrderStatus
from crm.domain.model.value_objects import RelatedRef
from crm.domain.repository.unit_of_work import UnitOfWorkFactory
from crm.domain.service.notification_emitter import NotificationEmitter
from crm.domain.service.order_workflow import plan_override
from crm.domain.service.reminder_scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


class DeleteOutcome(Enum):
    DELETED = "deleted"
    CANCELLED = "cancelled"
    UNCHANGED = "unchanged"


class DeleteOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, order_id: int, actor_id: str) -> DeleteOutcome:
        with self._uow_factory() as uow:
            order = load_order(uow, order_id)

            if order.status is OrderStatus.CANCELLED:
                return DeleteOutcome.UNCHANGED

            if order.is_stock_committed:
                order.record_transition(
                    OrderStatus.CANCELLED,
                    actor_id,
                    now=self._clock(),
                    reason="Deletion requested after shipment; order cancelled instead",
                    manual=True,
                )
                uow.orders.save(order)
                uow.commit()
                logger.warning(
                    "Order %s has shipped; deletion by %s converted to cancellation",
                    order.number,
                    actor_id,
                )
                return DeleteOutcome.CANCELLED

            if order.calculation_id is not None:
                scheduler = ReminderScheduler(
                    uow.reminders, uow.calculations, NotificationEmitter(uow.notifications)
                )
                scheduler.retire_all(RelatedRef.calculation(order.calculation_id))
                calculation = uow.calculations.get_by_id(order.calculation_id)
                if calculation is not None:
                    calculation.order_id = None
                    uow.calculations.save(calculation)

            uow.orders.delete(order_id)
            uow.commit()
            logger.info("Order %s deleted by %s", order.number, actor_id)
            return DeleteOutcome.DELETED


class OverrideStatusHandler:
    """Administrative status change outside the standard graph.

    Currently the only allowed override re-opens a rejected proposal
    (PROPOSAL_REJECTED -> CALCULATION); the calculation returns to DRAFT so
    it can be revised and sent again through the normal path.
    """

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, order_id: int, target_status: str, actor_id: str, reason: str) -> OrderDTO:
        if not reason or not reason.strip():
            raise ValidationError("A reason is required for a manual status override")
        target = parse_status(target_status)

        with self._uow_factory() as uow:
            order = load_order(uow, order_id)
            plan_override(order.status, target)

            if order.calculation_id is not None:
                calculation = uow.calculations.get_by_id(order.calculation_id)
                if calculation is not None:
                    calculation.reopen()
                    uow.calculations.save(calculation)

            previous = order.status
            order.record_transition(
                target, actor_id, now=self._clock(), reason=reason.strip(), manual=True
            )
            uow.orders.save(order)
            uow.commit()

        logger.warning(
            "Order %s manually moved %s -> %s by %s: %s",
            order.number,
            previous.value,
            target.value,
            actor_id,
            reason.strip(),
        )
        return order_to_dto(order)
