"""Unit of Work: one transaction scope over every repository.

Handlers open a unit of work, mutate aggregates through its repositories
and call ``commit()``.  Leaving the ``with`` block without committing, or
because of an exception, discards every change made inside it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from crm.domain.repository.calculation_repository import CalculationRepository
from crm.domain.repository.notification_repository import NotificationRepository
from crm.domain.repository.order_repository import OrderRepository
from crm.domain.repository.product_repository import ProductRepository
from crm.domain.repository.reminder_repository import ReminderRepository
from crm.domain.repository.stock_repository import (
    StockLevelRepository,
    TransactionRepository,
)


class UnitOfWork(ABC):

    orders: OrderRepository
    products: ProductRepository
    calculations: CalculationRepository
    stock_levels: StockLevelRepository
    transactions: TransactionRepository
    reminders: ReminderRepository
    notifications: NotificationRepository

    def __enter__(self) -> UnitOfWork:
        self._committed = False
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._committed:
            self.rollback()

    def commit(self) -> None:
        self._commit()
        self._committed = True

    @abstractmethod
    def _commit(self) -> None:
        """Make every change in this scope durable at once."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every uncommitted change."""


UnitOfWorkFactory = Callable[[], UnitOfWork]
