"""Notification: a stored, user-facing message.

Notifications are created append-only; after creation the only changes are
marking them read and deleting them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from crm.domain.model.value_objects import RelatedRef


class NotificationType(Enum):
    MESSAGE = "MESSAGE"
    REMINDER = "REMINDER"
    ALERT = "ALERT"
    SYSTEM = "SYSTEM"


@dataclass
class Notification:
    id: int | None
    owner_id: str
    type: NotificationType
    title: str
    content: str
    related: RelatedRef | None = None
    is_read: bool = False
    is_urgent: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    expires_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read_at: datetime | None = None

    def mark_read(self, now: datetime) -> bool:
        """Mark as read; returns False when it already was."""
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = now
        return True

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now
