"""Application services: a user's notification inbox.

Listing hides expired notifications; ``purge`` removes them for good,
together with old read messages and old reminder notifications.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from crm.application.clock import Clock, utcnow
from crm.application.dto import (
    NotificationDTO,
    NotificationStatsDTO,
    Page,
    PurgeResultDTO,
    paginate,
)
from crm.application.mappers import notification_to_dto
from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.notification import Notification, NotificationType
from crm.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)

READ_RETENTION = timedelta(days=30)
REMINDER_RETENTION = timedelta(days=60)


def _parse_type(value: str) -> NotificationType:
    try:
        return NotificationType(value.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown notification type '{value}'") from exc


def _owned(uow: UnitOfWork, notification_id: int, owner_id: str) -> Notification:
    notification = uow.notifications.get_by_id(notification_id)
    if notification is None or notification.owner_id != owner_id:
        raise EntityNotFoundError(f"Notification #{notification_id} not found")
    return notification


class NotificationInbox:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def list(
        self,
        owner_id: str,
        unread_only: bool = False,
        urgent_only: bool = False,
        notification_type: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[NotificationDTO]:
        """Newest first, expired ones excluded."""
        if limit <= 0:
            raise ValidationError("limit must be positive")
        wanted = _parse_type(notification_type) if notification_type else None
        now = self._clock()

        with self._uow_factory() as uow:
            found = [
                n
                for n in uow.notifications.list_for_owner(owner_id)
                if not n.is_expired(now)
                and not (unread_only and n.is_read)
                and not (urgent_only and not n.is_urgent)
                and (wanted is None or n.type is wanted)
            ]
        items, total = paginate(found, page, limit)
        return Page(
            items=[notification_to_dto(n) for n in items],
            page=max(page, 1),
            limit=limit,
            total=total,
        )

    def mark_read(self, notification_id: int, owner_id: str) -> NotificationDTO:
        with self._uow_factory() as uow:
            notification = _owned(uow, notification_id, owner_id)
            if notification.mark_read(self._clock()):
                uow.notifications.save(notification)
                uow.commit()
        return notification_to_dto(notification)

    def mark_all_read(self, owner_id: str) -> int:
        now = self._clock()
        with self._uow_factory() as uow:
            changed = 0
            for notification in uow.notifications.list_for_owner(owner_id):
                if notification.mark_read(now):
                    uow.notifications.save(notification)
                    changed += 1
            uow.commit()
        return changed

    def delete(self, notification_id: int, owner_id: str) -> None:
        with self._uow_factory() as uow:
            _owned(uow, notification_id, owner_id)
            uow.notifications.delete(notification_id)
            uow.commit()

    def clear(self, owner_id: str, notification_type: str | None = None) -> int:
        """Delete all of the owner's notifications, or only those of one type."""
        wanted = _parse_type(notification_type) if notification_type else None
        with self._uow_factory() as uow:
            doomed = [
                n.id
                for n in uow.notifications.list_for_owner(owner_id)
                if wanted is None or n.type is wanted
            ]
            for notification_id in doomed:
                uow.notifications.delete(notification_id)
            uow.commit()
        logger.info(
            "Cleared %d notification(s) for %s (type %s)",
            len(doomed),
            owner_id,
            wanted.value if wanted else "any",
        )
        return len(doomed)

    def stats(self, owner_id: str) -> NotificationStatsDTO:
        now = self._clock()
        with self._uow_factory() as uow:
            live = [
                n for n in uow.notifications.list_for_owner(owner_id) if not n.is_expired(now)
            ]
        by_type = {t.value: 0 for t in NotificationType}
        for n in live:
            by_type[n.type.value] += 1
        return NotificationStatsDTO(
            total=len(live),
            unread=sum(1 for n in live if not n.is_read),
            urgent=sum(1 for n in live if n.is_urgent and not n.is_read),
            by_type=by_type,
        )

    def purge(self) -> PurgeResultDTO:
        """Delete expired notifications and those past their retention."""
        now = self._clock()
        expired = read = reminders = 0
        with self._uow_factory() as uow:
            for n in uow.notifications.list_all():
                if n.is_expired(now):
                    expired += 1
                elif n.type is NotificationType.REMINDER:
                    if n.created_at >= now - REMINDER_RETENTION:
                        continue
                    reminders += 1
                elif n.is_read and n.created_at < now - READ_RETENTION:
                    read += 1
                else:
                    continue
                uow.notifications.delete(n.id)  # type: ignore[arg-type]
            uow.commit()

        result = PurgeResultDTO(expired=expired, read=read, reminders=reminders)
        logger.info(
            "Notification purge: %d expired, %d read, %d reminder(s) removed",
            expired,
            read,
            reminders,
        )
        return result
