"""Application services: a manager's own reminders."""

from __future__ import annotations

from datetime import datetime, timedelta

from crm.application.clock import Clock, utcnow
from crm.application.dto import Page, ReminderDTO, ReminderStatsDTO, paginate
from crm.application.mappers import reminder_to_dto
from crm.domain.exceptions import ValidationError
from crm.domain.model.reminder import (
    DEFAULT_FREQUENCY_DAYS,
    DEFAULT_MAX_REMINDERS,
    ReminderKind,
    ReminderStatus,
)
from crm.domain.model.value_objects import RelatedRef
from crm.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from crm.domain.service.notification_emitter import NotificationEmitter
from crm.domain.service.reminder_scheduler import ReminderScheduler


UPCOMING_WINDOW = timedelta(days=7)
UPCOMING_LIMIT = 5


def _scheduler(uow: UnitOfWork) -> ReminderScheduler:
    return ReminderScheduler(
        uow.reminders, uow.calculations, NotificationEmitter(uow.notifications)
    )


def parse_kind(value: str) -> ReminderKind:
    try:
        return ReminderKind(value.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown reminder kind '{value}'") from exc


class ListRemindersHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        owner_id: str,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[ReminderDTO]:
        if limit <= 0:
            raise ValidationError("limit must be positive")
        wanted = None
        if status:
            try:
                wanted = ReminderStatus(status.strip().upper())
            except ValueError as exc:
                raise ValidationError(f"Unknown reminder status '{status}'") from exc

        with self._uow_factory() as uow:
            reminders = uow.reminders.list_for_owner(owner_id, wanted)
        items, total = paginate(reminders, page, limit)
        return Page(
            items=[reminder_to_dto(r) for r in items],
            page=max(page, 1),
            limit=limit,
            total=total,
        )


class CancelReminderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, reminder_id: int, user_id: str) -> ReminderDTO:
        with self._uow_factory() as uow:
            reminder = _scheduler(uow).cancel(reminder_id, user_id)
            uow.commit()
        return reminder_to_dto(reminder)


class CompleteReminderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, reminder_id: int, user_id: str) -> ReminderDTO:
        with self._uow_factory() as uow:
            reminder = _scheduler(uow).complete(reminder_id, user_id)
            uow.commit()
        return reminder_to_dto(reminder)


class CreateReminderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        owner_id: str,
        related_type: str,
        related_id: str,
        kind: str,
        title: str,
        description: str = "",
        scheduled_date: datetime | None = None,
        frequency_days: int = DEFAULT_FREQUENCY_DAYS,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
    ) -> ReminderDTO:
        related = RelatedRef.parse(related_type.strip().upper(), related_id.strip())
        with self._uow_factory() as uow:
            reminder = _scheduler(uow).create(
                owner_id=owner_id,
                related=related,
                kind=parse_kind(kind),
                title=title,
                now=self._clock(),
                description=description,
                scheduled_date=scheduled_date,
                frequency_days=frequency_days,
                max_reminders=max_reminders,
            )
            uow.commit()
        return reminder_to_dto(reminder)


class UpdateReminderHandler:
    """Reschedule or edit one of the user's pending reminders."""

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        reminder_id: int,
        user_id: str,
        scheduled_date: datetime | None = None,
        title: str | None = None,
        description: str | None = None,
        frequency_days: int | None = None,
        max_reminders: int | None = None,
    ) -> ReminderDTO:
        if all(
            value is None
            for value in (scheduled_date, title, description, frequency_days, max_reminders)
        ):
            raise ValidationError("Nothing to update")
        with self._uow_factory() as uow:
            reminder = _scheduler(uow).update(
                reminder_id,
                user_id,
                self._clock(),
                scheduled_date=scheduled_date,
                title=title,
                description=description,
                frequency_days=frequency_days,
                max_reminders=max_reminders,
            )
            uow.commit()
        return reminder_to_dto(reminder)


class ReminderStatsHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, owner_id: str) -> ReminderStatsDTO:
        """Counts for the user's reminders plus the next few due this week."""
        now = self._clock()
        with self._uow_factory() as uow:
            reminders = uow.reminders.list_for_owner(owner_id)

        pending = [r for r in reminders if r.status == ReminderStatus.PENDING]
        by_kind = {kind.value: 0 for kind in ReminderKind}
        for r in pending:
            by_kind[r.kind.value] += 1
        upcoming = [r for r in pending if now <= r.scheduled_date <= now + UPCOMING_WINDOW]
        return ReminderStatsDTO(
            total=len(reminders),
            pending=len(pending),
            overdue=sum(1 for r in pending if r.scheduled_date < now),
            by_kind=by_kind,
            upcoming=[reminder_to_dto(r) for r in upcoming[:UPCOMING_LIMIT]],
        )
