"""JSON-document implementation of NotificationRepository."""

from __future__ import annotations

from datetime import datetime

from crm.domain.model.notification import Notification, NotificationType
from crm.domain.model.value_objects import RelatedRef
from crm.domain.repository.notification_repository import NotificationRepository
from crm.infrastructure.persistence.json_store import JsonCollection


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class JsonNotificationRepository(JsonCollection, NotificationRepository):

    def __init__(self, document: dict) -> None:
        super().__init__(document, "notifications")

    def get_by_id(self, notification_id: int) -> Notification | None:
        raw = self._find("id", notification_id)
        return self._to_domain(raw) if raw is not None else None

    def list_for_owner(self, owner_id: str) -> list[Notification]:
        found = [self._to_domain(raw) for raw in self._records if raw["owner_id"] == owner_id]
        return sorted(found, key=lambda n: (n.created_at, n.id), reverse=True)

    def list_all(self) -> list[Notification]:
        return [self._to_domain(raw) for raw in self._records]

    def save(self, notification: Notification) -> None:
        if notification.id is None:
            notification.id = self._next_id()
        self._upsert("id", self._to_raw(notification))

    def delete(self, notification_id: int) -> None:
        self._remove("id", notification_id)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(notification: Notification) -> dict:
        related = notification.related
        return {
            "id": notification.id,
            "owner_id": notification.owner_id,
            "type": notification.type.value,
            "title": notification.title,
            "content": notification.content,
            "related_type": related.kind.value if related else None,
            "related_id": related.id if related else None,
            "is_read": notification.is_read,
            "is_urgent": notification.is_urgent,
            "metadata": notification.metadata,
            "expires_at": notification.expires_at.isoformat() if notification.expires_at else None,
            "created_at": notification.created_at.isoformat(),
            "read_at": notification.read_at.isoformat() if notification.read_at else None,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Notification:
        related = None
        if raw.get("related_type"):
            related = RelatedRef.parse(raw["related_type"], raw["related_id"])
        return Notification(
            id=raw["id"],
            owner_id=raw["owner_id"],
            type=NotificationType(raw["type"]),
            title=raw["title"],
            content=raw["content"],
            related=related,
            is_read=raw.get("is_read", False),
            is_urgent=raw.get("is_urgent", False),
            metadata=raw.get("metadata") or {},
            expires_at=_dt(raw.get("expires_at")),
            created_at=datetime.fromisoformat(raw["created_at"]),
            read_at=_dt(raw.get("read_at")),
        )
