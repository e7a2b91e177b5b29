"""StockLevel aggregate and the stock audit trail.

Each product has one StockLevel holding the on-hand quantity.  Every change
to that quantity is paired with an immutable StockTransaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from crm.domain.exceptions import InsufficientStock, ValidationError


class TransactionType(Enum):
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"
    INVENTORY = "INVENTORY"
    SHIPMENT = "SHIPMENT"


@dataclass
class StockLevel:
    """Aggregate root for on-hand quantity.

    Invariants:
    - ``quantity`` is never negative
    - ``version`` increases by one on every persisted change
    """

    product_id: str
    product_name: str
    quantity: int = 0
    version: int = 0

    def check_delta(self, delta: int) -> int:
        """Return the quantity after *delta*, or raise InsufficientStock."""
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise ValidationError("Stock delta must be an integer")
        new_quantity = self.quantity + delta
        if new_quantity < 0:
            raise InsufficientStock(
                product_id=self.product_id,
                product_name=self.product_name,
                available=self.quantity,
                requested=-delta,
            )
        return new_quantity

    def apply(self, delta: int) -> None:
        self.quantity = self.check_delta(delta)


@dataclass(frozen=True)
class StockTransaction:
    """Immutable audit record of one stock mutation."""

    id: int | None
    product_id: str
    quantity: int  # signed delta
    type: TransactionType
    actor_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: str | None = None
    client_id: str | None = None
