"""JSON-document implementation of ReminderRepository."""

from __future__ import annotations

from datetime import datetime

from crm.domain.model.reminder import Reminder, ReminderKind, ReminderStatus
from crm.domain.model.value_objects import RelatedRef
from crm.domain.repository.reminder_repository import ReminderRepository
from crm.infrastructure.persistence.json_store import JsonCollection


class JsonReminderRepository(JsonCollection, ReminderRepository):

    def __init__(self, document: dict) -> None:
        super().__init__(document, "reminders")

    def get_by_id(self, reminder_id: int) -> Reminder | None:
        raw = self._find("id", reminder_id)
        return self._to_domain(raw) if raw is not None else None

    def find_due(self, now: datetime) -> list[Reminder]:
        due = [
            reminder
            for reminder in map(self._to_domain, self._records)
            if reminder.is_due(now)
        ]
        return sorted(due, key=lambda r: (r.scheduled_date, r.id))

    def find_pending_for(self, related: RelatedRef) -> list[Reminder]:
        return [
            self._to_domain(raw)
            for raw in self._records
            if raw["status"] == ReminderStatus.PENDING.value
            and raw["related_type"] == related.kind.value
            and raw["related_id"] == related.id
        ]

    def list_for_owner(
        self, owner_id: str, status: ReminderStatus | None = None
    ) -> list[Reminder]:
        reminders = [
            self._to_domain(raw)
            for raw in self._records
            if raw["owner_id"] == owner_id
            and (status is None or raw["status"] == status.value)
        ]
        return sorted(reminders, key=lambda r: (r.scheduled_date, r.id))

    def save(self, reminder: Reminder) -> None:
        if reminder.id is None:
            reminder.id = self._next_id()
        self._upsert("id", self._to_raw(reminder))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(reminder: Reminder) -> dict:
        return {
            "id": reminder.id,
            "owner_id": reminder.owner_id,
            "related_type": reminder.related.kind.value,
            "related_id": reminder.related.id,
            "kind": reminder.kind.value,
            "title": reminder.title,
            "description": reminder.description,
            "scheduled_date": reminder.scheduled_date.isoformat(),
            "frequency_days": reminder.frequency_days,
            "max_reminders": reminder.max_reminders,
            "sent_count": reminder.sent_count,
            "status": reminder.status.value,
            "created_at": reminder.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Reminder:
        return Reminder(
            id=raw["id"],
            owner_id=raw["owner_id"],
            related=RelatedRef.parse(raw["related_type"], raw["related_id"]),
            kind=ReminderKind(raw["kind"]),
            title=raw["title"],
            description=raw.get("description", ""),
            scheduled_date=datetime.fromisoformat(raw["scheduled_date"]),
            frequency_days=raw["frequency_days"],
            max_reminders=raw["max_reminders"],
            sent_count=raw["sent_count"],
            status=ReminderStatus(raw["status"]),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
