"""Domain service: Notification Emitter.

Turns a firing reminder into a stored, urgent notification.  The emitter
only ever creates notifications; it never edits earlier ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from crm.domain.model.notification import Notification, NotificationType
from crm.domain.model.reminder import Reminder
from crm.domain.model.value_objects import RelatedRef
from crm.domain.repository.notification_repository import NotificationRepository

URGENT_MARKER = "URGENT"


@dataclass(frozen=True)
class ReminderContext:
    """Names captured at firing time so readers need no extra lookups."""

    client_name: str | None = None
    calculation_name: str | None = None


class NotificationEmitter:

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def emit(
        self,
        reminder: Reminder,
        occurrence_index: int,
        context: ReminderContext | None = None,
        now: datetime | None = None,
    ) -> Notification:
        """Store the notification for the *occurrence_index*-th firing (0-based)."""
        context = context or ReminderContext()
        occurrence = occurrence_index + 1

        title = reminder.title
        if occurrence_index > 0:
            title = f"{URGENT_MARKER} ({occurrence}x): {title}"

        content = reminder.description or reminder.title
        if context.client_name:
            content += f"\n\nClient: {context.client_name}"
        content += f"\n\nReminder {occurrence} of {reminder.max_reminders}."

        notification = Notification(
            id=None,
            owner_id=reminder.owner_id,
            type=NotificationType.REMINDER,
            title=title,
            content=content,
            related=reminder.related,
            is_urgent=True,
            metadata={
                "reminder_id": reminder.id,
                "sent_count": occurrence,
                "reminder_kind": reminder.kind.value,
                "calculation_name": context.calculation_name,
                "client_name": context.client_name,
            },
            created_at=now or datetime.now(timezone.utc),
        )
        self._notification_repo.save(notification)
        return notification

    def emit_system(
        self,
        owner_id: str,
        title: str,
        content: str,
        related: RelatedRef | None = None,
        now: datetime | None = None,
    ) -> Notification:
        notification = Notification(
            id=None,
            owner_id=owner_id,
            type=NotificationType.SYSTEM,
            title=title,
            content=content,
            related=related,
            created_at=now or datetime.now(timezone.utc),
        )
        self._notification_repo.save(notification)
        return notification
