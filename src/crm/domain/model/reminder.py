"""Reminder aggregate: a recurring follow-up task for a manager.

Status changes happen only through the reminder scheduler.  COMPLETED and
CANCELLED are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from crm.domain.exceptions import ValidationError
from crm.domain.model.value_objects import RelatedRef

DEFAULT_FREQUENCY_DAYS = 3
DEFAULT_MAX_REMINDERS = 10


class ReminderStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


TERMINAL_REMINDER_STATUSES = frozenset({ReminderStatus.CANCELLED, ReminderStatus.COMPLETED})


class ReminderKind(Enum):
    FOLLOW_UP = "FOLLOW_UP"
    CALL_CLIENT = "CALL_CLIENT"
    SEND_DOCUMENTS = "SEND_DOCUMENTS"
    CUSTOM = "CUSTOM"


@dataclass
class Reminder:
    id: int | None
    owner_id: str
    related: RelatedRef
    kind: ReminderKind
    title: str
    scheduled_date: datetime
    description: str = ""
    frequency_days: int = DEFAULT_FREQUENCY_DAYS
    max_reminders: int = DEFAULT_MAX_REMINDERS
    sent_count: int = 0
    status: ReminderStatus = ReminderStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def create(
        owner_id: str,
        related: RelatedRef,
        kind: ReminderKind,
        title: str,
        now: datetime,
        description: str = "",
        frequency_days: int = DEFAULT_FREQUENCY_DAYS,
        max_reminders: int = DEFAULT_MAX_REMINDERS,
        scheduled_date: datetime | None = None,
    ) -> Reminder:
        if not owner_id:
            raise ValidationError("Reminder owner is required")
        if not title or not title.strip():
            raise ValidationError("Reminder title is required")
        if frequency_days <= 0:
            raise ValidationError("Reminder frequency must be at least one day")
        if max_reminders <= 0:
            raise ValidationError("max_reminders must be positive")
        return Reminder(
            id=None,
            owner_id=owner_id,
            related=related,
            kind=kind,
            title=title.strip(),
            description=description,
            scheduled_date=scheduled_date or now + timedelta(days=frequency_days),
            frequency_days=frequency_days,
            max_reminders=max_reminders,
            created_at=now,
        )

    # --- Queries --------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_REMINDER_STATUSES

    @property
    def cap_reached(self) -> bool:
        return self.sent_count >= self.max_reminders

    def is_due(self, now: datetime) -> bool:
        return self.status == ReminderStatus.PENDING and self.scheduled_date <= now

    def next_date(self, now: datetime) -> datetime:
        return now + timedelta(days=self.frequency_days)

    # --- Transitions ----------------------------------------------------------

    def record_firing(self) -> int:
        """Count one delivery and return the 0-based occurrence index."""
        if self.status != ReminderStatus.PENDING:
            raise ValidationError(f"Reminder #{self.id} is not pending")
        if self.cap_reached:
            raise ValidationError(f"Reminder #{self.id} already reached its limit")
        occurrence = self.sent_count
        self.sent_count += 1
        self.status = ReminderStatus.SENT
        return occurrence

    def rearm(self, when: datetime) -> None:
        if self.status != ReminderStatus.SENT:
            raise ValidationError(f"Reminder #{self.id} has not been sent")
        self.status = ReminderStatus.PENDING
        self.scheduled_date = when

    def complete(self) -> None:
        if self.status == ReminderStatus.COMPLETED:
            raise ValidationError(f"Reminder #{self.id} is already completed")
        if self.status == ReminderStatus.CANCELLED:
            raise ValidationError(f"Reminder #{self.id} is cancelled")
        self.status = ReminderStatus.COMPLETED

    def cancel(self) -> None:
        if self.status == ReminderStatus.CANCELLED:
            raise ValidationError(f"Reminder #{self.id} is already cancelled")
        if self.status == ReminderStatus.COMPLETED:
            raise ValidationError(f"Reminder #{self.id} is already completed")
        self.status = ReminderStatus.CANCELLED

    def update(
        self,
        now: datetime,
        scheduled_date: datetime | None = None,
        title: str | None = None,
        description: str | None = None,
        frequency_days: int | None = None,
        max_reminders: int | None = None,
    ) -> None:
        """Change a reminder that has not fired for the last time yet."""
        if self.status != ReminderStatus.PENDING:
            raise ValidationError(
                f"Reminder #{self.id} is {self.status.value}; only pending reminders can be changed"
            )
        if scheduled_date is not None and scheduled_date < now:
            raise ValidationError("Scheduled date cannot be in the past")
        if title is not None and not title.strip():
            raise ValidationError("Reminder title is required")
        if frequency_days is not None and frequency_days <= 0:
            raise ValidationError("Reminder frequency must be at least one day")
        if max_reminders is not None and max_reminders <= self.sent_count:
            raise ValidationError(
                f"max_reminders must exceed the {self.sent_count} already sent"
            )

        if scheduled_date is not None:
            self.scheduled_date = scheduled_date
        if title is not None:
            self.title = title.strip()
        if description is not None:
            self.description = description
        if frequency_days is not None:
            self.frequency_days = frequency_days
        if max_reminders is not None:
            self.max_reminders = max_reminders
