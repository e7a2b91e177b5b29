"""JSON-file-backed implementation of UnitOfWork.

Entering the unit of work takes the store lock (shared with other threads
and other processes) and loads a private copy of the document; repositories
read and write that copy.  The lock is held until exit, so no other writer
can replace the file between the load and the commit.  ``commit`` replaces
the file in one step, ``rollback`` throws the copy away.
"""

from __future__ import annotations

from crm.domain.repository.unit_of_work import UnitOfWork
from crm.infrastructure.persistence.json_calculation_repository import (
    JsonCalculationRepository,
)
from crm.infrastructure.persistence.json_notification_repository import (
    JsonNotificationRepository,
)
from crm.infrastructure.persistence.json_order_repository import JsonOrderRepository
from crm.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from crm.infrastructure.persistence.json_reminder_repository import (
    JsonReminderRepository,
)
from crm.infrastructure.persistence.json_stock_repository import (
    JsonStockLevelRepository,
    JsonTransactionRepository,
)
from crm.infrastructure.persistence.json_store import JsonStore


class JsonUnitOfWork(UnitOfWork):

    def __init__(self, store: JsonStore) -> None:
        self._store = store
        self._document: dict | None = None

    def __enter__(self) -> JsonUnitOfWork:
        self._store.lock.acquire(self._store.lock_timeout)
        try:
            self._bind(self._store.load())
        except BaseException:
            self._store.lock.release()
            raise
        return super().__enter__()

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            super().__exit__(exc_type, exc, tb)
        finally:
            self._document = None
            self._store.lock.release()

    def _commit(self) -> None:
        if self._document is None:
            raise RuntimeError("Unit of work is not active")
        self._store.persist(self._document)
        # Continue on a fresh copy so a later rollback cannot undo this commit.
        self._bind(self._store.load())

    def rollback(self) -> None:
        self._document = None

    def _bind(self, document: dict) -> None:
        self._document = document
        self.orders = JsonOrderRepository(document)
        self.products = JsonProductRepository(document)
        self.calculations = JsonCalculationRepository(document)
        self.stock_levels = JsonStockLevelRepository(document)
        self.transactions = JsonTransactionRepository(document)
        self.reminders = JsonReminderRepository(document)
        self.notifications = JsonNotificationRepository(document)
