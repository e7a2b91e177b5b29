"""Domain service: Stock Ledger.

The ledger is the only code that writes stock quantities.  Every write is
paired with an appended StockTransaction; both go through the same unit of
work, so they commit together or not at all.

Batch operations use a two-phase approach (validate-then-mutate) so a
shortage on one product never leaves another product partially
decremented.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.stock import StockLevel, StockTransaction, TransactionType
from crm.domain.repository.stock_repository import (
    StockLevelRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)


class StockLedger:

    def __init__(
        self,
        stock_repo: StockLevelRepository,
        transaction_repo: TransactionRepository,
    ) -> None:
        self._stock_repo = stock_repo
        self._transaction_repo = transaction_repo

    def available(self, product_id: str) -> int:
        level = self._stock_repo.get_by_product_id(product_id)
        return level.quantity if level is not None else 0

    def apply_delta(
        self,
        product_id: str,
        signed_quantity: int,
        transaction_type: TransactionType,
        actor_id: str,
        reason: str | None = None,
        client_id: str | None = None,
        now: datetime | None = None,
        product_name: str | None = None,
    ) -> StockTransaction:
        """Change a product's quantity by *signed_quantity*.

        Raises InsufficientStock if the result would be negative.  Incoming
        stock for a product without a level creates the level, named by
        *product_name*.
        """
        if transaction_type is TransactionType.INVENTORY:
            raise ValidationError("Use set_quantity() for inventory corrections")
        if signed_quantity == 0:
            raise ValidationError("Stock delta must not be zero")

        level = self._stock_repo.get_by_product_id(product_id)
        if level is None:
            if signed_quantity < 0 or product_name is None:
                raise EntityNotFoundError(f"No stock record for product '{product_id}'")
            level = StockLevel(product_id=product_id, product_name=product_name)

        level.check_delta(signed_quantity)
        return self._write(
            level, signed_quantity, transaction_type, actor_id, reason, client_id, now
        )

    def set_quantity(
        self,
        product_id: str,
        quantity: int,
        actor_id: str,
        reason: str | None = None,
        now: datetime | None = None,
        product_name: str | None = None,
    ) -> StockTransaction:
        """Inventory correction: set an absolute quantity.

        The audit record stores the signed difference to the prior quantity.
        """
        if quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")

        level = self._stock_repo.get_by_product_id(product_id)
        if level is None:
            if product_name is None:
                raise EntityNotFoundError(f"No stock record for product '{product_id}'")
            level = StockLevel(product_id=product_id, product_name=product_name)

        difference = quantity - level.quantity
        return self._write(
            level,
            difference,
            TransactionType.INVENTORY,
            actor_id,
            reason or "Manual quantity adjustment",
            None,
            now,
        )

    def apply_batch(
        self,
        deltas: list[tuple[str, int]],
        transaction_type: TransactionType,
        actor_id: str,
        reason: str | None = None,
        client_id: str | None = None,
        now: datetime | None = None,
    ) -> list[StockTransaction]:
        """Apply several deltas all-or-nothing.

        Phase 1 loads every level and validates the cumulative delta per
        product; nothing is written until every product has passed.
        """
        totals: dict[str, int] = {}
        for product_id, delta in deltas:
            totals[product_id] = totals.get(product_id, 0) + delta

        # Phase 1: load and validate
        levels: dict[str, StockLevel] = {}
        for product_id, total in totals.items():
            level = self._stock_repo.get_by_product_id(product_id)
            if level is None:
                raise EntityNotFoundError(f"No stock record for product '{product_id}'")
            level.check_delta(total)
            levels[product_id] = level

        # Phase 2: mutate and record
        return [
            self._write(
                levels[product_id], delta, transaction_type, actor_id, reason, client_id, now
            )
            for product_id, delta in deltas
        ]

    # --- Internal helpers -----------------------------------------------------

    def _write(
        self,
        level: StockLevel,
        delta: int,
        transaction_type: TransactionType,
        actor_id: str,
        reason: str | None,
        client_id: str | None,
        now: datetime | None,
    ) -> StockTransaction:
        before = level.quantity
        level.apply(delta)
        self._stock_repo.save(level)
        transaction = self._transaction_repo.append(
            StockTransaction(
                id=None,
                product_id=level.product_id,
                quantity=delta,
                type=transaction_type,
                actor_id=actor_id,
                created_at=now or datetime.now(timezone.utc),
                reason=reason,
                client_id=client_id,
            )
        )
        logger.info(
            "Stock %s for %s: %d -> %d (%s by %s)",
            transaction_type.value,
            level.product_id,
            before,
            level.quantity,
            reason or "no reason",
            actor_id,
        )
        return transaction
