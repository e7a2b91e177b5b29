"""Abstract repository for Reminder aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from crm.domain.model.reminder import Reminder, ReminderStatus
from crm.domain.model.value_objects import RelatedRef


class ReminderRepository(ABC):

    @abstractmethod
    def get_by_id(self, reminder_id: int) -> Reminder | None:
        """Return a reminder by its ID, or None if not found."""

    @abstractmethod
    def find_due(self, now: datetime) -> list[Reminder]:
        """PENDING reminders with ``scheduled_date <= now``, oldest first."""

    @abstractmethod
    def find_pending_for(self, related: RelatedRef) -> list[Reminder]:
        """PENDING reminders pointing at *related*."""

    @abstractmethod
    def list_for_owner(
        self, owner_id: str, status: ReminderStatus | None = None
    ) -> list[Reminder]:
        """A user's reminders ordered by scheduled date."""

    @abstractmethod
    def save(self, reminder: Reminder) -> None:
        """Persist a new or updated reminder, assigning an ID if needed."""
