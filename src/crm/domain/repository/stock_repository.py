"""Abstract repositories for stock levels and the stock audit trail."""

from __future__ import annotations

from abc import ABC, abstractmethod

from crm.domain.model.stock import StockLevel, StockTransaction


class StockLevelRepository(ABC):

    @abstractmethod
    def get_by_product_id(self, product_id: str) -> StockLevel | None:
        """Return the stock level for a product, or None."""

    @abstractmethod
    def list_all(self) -> list[StockLevel]:
        """Return every stock level."""

    @abstractmethod
    def save(self, level: StockLevel) -> None:
        """Compare-and-swap write of a stock level.

        Raises ConcurrentModification when the stored version differs from
        ``level.version``; increments ``level.version`` on success.  Only
        the stock ledger calls this.
        """


class TransactionRepository(ABC):

    @abstractmethod
    def append(self, transaction: StockTransaction) -> StockTransaction:
        """Store a new audit record and return it with its ID assigned."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[StockTransaction]:
        """Return a product's audit records, oldest first."""
