"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from crm.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def next_number(self) -> str:
        """Generate the next human-readable order number."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every order, oldest first."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        Compare-and-swap on ``order.version``: raises ConcurrentModification
        when the stored version differs from the one the order was loaded
        with.  Increments ``order.version`` on success.
        """

    @abstractmethod
    def delete(self, order_id: int) -> None:
        """Remove an order permanently."""
