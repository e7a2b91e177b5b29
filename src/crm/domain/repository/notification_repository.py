"""Abstract repository for Notification."""

from __future__ import annotations

from abc import ABC, abstractmethod

from crm.domain.model.notification import Notification


class NotificationRepository(ABC):

    @abstractmethod
    def get_by_id(self, notification_id: int) -> Notification | None:
        """Return a notification by its ID, or None if not found."""

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> list[Notification]:
        """A user's notifications, newest first."""

    @abstractmethod
    def list_all(self) -> list[Notification]:
        """Every notification."""

    @abstractmethod
    def save(self, notification: Notification) -> None:
        """Persist a new or updated notification, assigning an ID if needed."""

    @abstractmethod
    def delete(self, notification_id: int) -> None:
        """Remove a notification."""
