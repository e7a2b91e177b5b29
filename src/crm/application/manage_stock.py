"""Application services: receiving, issuing and correcting stock.

Products are addressed by name, as on the command line.  All writes go
through the StockLedger so every quantity change leaves an audit record.
"""

from __future__ import annotations

from crm.application.clock import Clock, utcnow
from crm.application.dto import StockLineDTO, TransactionDTO
from crm.domain.exceptions import EntityNotFoundError, ValidationError
from crm.domain.model.product import Product
from crm.domain.model.stock import StockTransaction, TransactionType
from crm.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from crm.domain.service.stock_ledger import StockLedger


def _product(uow: UnitOfWork, product_name: str) -> Product:
    product = uow.products.get_by_name(product_name)
    if product is None:
        raise EntityNotFoundError(f"Product not found: '{product_name}'")
    return product


def _to_dto(transaction: StockTransaction) -> TransactionDTO:
    return TransactionDTO(
        id=transaction.id,  # type: ignore[arg-type]
        product_id=transaction.product_id,
        quantity=transaction.quantity,
        type=transaction.type.value,
        actor_id=transaction.actor_id,
        created_at=transaction.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        reason=transaction.reason,
    )


class AdjustStockHandler:
    """Receive (INCOMING) or issue (OUTGOING) a quantity of one product."""

    DIRECTIONS = {
        TransactionType.INCOMING: 1,
        TransactionType.OUTGOING: -1,
    }

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        product_name: str,
        quantity: int,
        transaction_type: TransactionType,
        actor_id: str,
        reason: str | None = None,
        client_id: str | None = None,
    ) -> TransactionDTO:
        sign = self.DIRECTIONS.get(transaction_type)
        if sign is None:
            raise ValidationError(
                f"Stock can only be received or issued, not {transaction_type.value}"
            )
        if quantity <= 0:
            raise ValidationError("Quantity must be positive")

        with self._uow_factory() as uow:
            product = _product(uow, product_name)
            transaction = StockLedger(uow.stock_levels, uow.transactions).apply_delta(
                product.id,
                sign * quantity,
                transaction_type,
                actor_id,
                reason=reason,
                client_id=client_id,
                now=self._clock(),
                product_name=product.name,
            )
            uow.commit()
        return _to_dto(transaction)


class SetStockHandler:
    """Inventory correction to an absolute quantity."""

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utcnow) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        product_name: str,
        quantity: int,
        actor_id: str,
        reason: str | None = None,
    ) -> TransactionDTO:
        with self._uow_factory() as uow:
            product = _product(uow, product_name)
            transaction = StockLedger(uow.stock_levels, uow.transactions).set_quantity(
                product.id,
                quantity,
                actor_id,
                reason=reason,
                now=self._clock(),
                product_name=product.name,
            )
            uow.commit()
        return _to_dto(transaction)


class ShowStockHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self) -> list[StockLineDTO]:
        with self._uow_factory() as uow:
            levels = uow.stock_levels.list_all()
        return [
            StockLineDTO(
                product_id=level.product_id,
                product_name=level.product_name,
                quantity=level.quantity,
            )
            for level in sorted(levels, key=lambda lvl: lvl.product_name.lower())
        ]


class StockHistoryHandler:
    """Audit trail of one product, newest first."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, product_name: str, limit: int | None = None) -> list[TransactionDTO]:
        with self._uow_factory() as uow:
            product = _product(uow, product_name)
            transactions = uow.transactions.list_for_product(product.id)
        transactions.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        if limit is not None:
            transactions = transactions[:limit]
        return [_to_dto(t) for t in transactions]
