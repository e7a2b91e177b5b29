"""Domain -> DTO mapping shared by the handlers."""

from __future__ import annotations

from crm.application.dto import (
    CalculationDTO,
    NotificationDTO,
    OrderDTO,
    OrderItemDTO,
    ReminderDTO,
)
from crm.domain.model.calculation import Calculation
from crm.domain.model.notification import Notification
from crm.domain.model.order import Order
from crm.domain.model.reminder import Reminder


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        number=order.number,
        client_name=order.client_name or order.client_id,
        owner_id=order.owner_id,
        status=order.status.value,
        priority=order.priority.value,
        items=[
            OrderItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        total=str(order.total_amount),
        calculation_id=order.calculation_id,
        notes=order.notes,
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


def calculation_to_dto(calculation: Calculation) -> CalculationDTO:
    return CalculationDTO(
        id=calculation.id,  # type: ignore[arg-type]
        name=calculation.name,
        status=calculation.status.value,
        order_id=calculation.order_id,
        reminder_active=calculation.reminder_active,
        next_reminder_date=(
            calculation.next_reminder_date.isoformat()
            if calculation.next_reminder_date
            else None
        ),
        metrics={k: str(v) for k, v in vars(calculation.metrics).items()},
    )


def reminder_to_dto(reminder: Reminder) -> ReminderDTO:
    return ReminderDTO(
        id=reminder.id,  # type: ignore[arg-type]
        title=reminder.title,
        kind=reminder.kind.value,
        status=reminder.status.value,
        related=str(reminder.related),
        scheduled_date=reminder.scheduled_date.strftime("%Y-%m-%d %H:%M UTC"),
        sent_count=reminder.sent_count,
        max_reminders=reminder.max_reminders,
    )


def notification_to_dto(notification: Notification) -> NotificationDTO:
    return NotificationDTO(
        id=notification.id,  # type: ignore[arg-type]
        type=notification.type.value,
        title=notification.title,
        content=notification.content,
        is_read=notification.is_read,
        is_urgent=notification.is_urgent,
        related=str(notification.related) if notification.related else None,
        created_at=notification.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        metadata=dict(notification.metadata),
    )
