"""Order aggregate.

The Order is an aggregate root that owns its line items and its status
history.  Status changes are decided by ``crm.domain.service.order_workflow``;
the aggregate only records them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from crm.domain.exceptions import ValidationError
from crm.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    CREATED = "CREATED"
    CALCULATION = "CALCULATION"
    PROPOSAL_SENT = "PROPOSAL_SENT"
    PROPOSAL_ACCEPTED = "PROPOSAL_ACCEPTED"
    PROPOSAL_REJECTED = "PROPOSAL_REJECTED"
    PAID = "PAID"
    FOR_SHIPMENT_UNPAID = "FOR_SHIPMENT_UNPAID"
    PICKING = "PICKING"
    SHIPPED = "SHIPPED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class OrderPriority(Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


# Statuses in which stock has already been decremented for the order.
STOCK_COMMITTED_STATUSES = frozenset({OrderStatus.SHIPPED, OrderStatus.CLOSED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OrderItem:
    """Captures the price snapshot of a product when the item set was written."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class StatusChange:
    """One entry of an order's status audit trail."""

    from_status: OrderStatus
    to_status: OrderStatus
    actor_id: str
    changed_at: datetime
    reason: str | None = None
    manual: bool = False


@dataclass
class Order:
    """Aggregate root for client orders.

    Use ``Order.create()`` for new orders.  The ``__init__`` stays simple so
    repositories can reconstitute persisted orders without re-validating.
    """

    id: int | None
    number: str
    client_id: str
    client_name: str
    owner_id: str
    items: list[OrderItem]
    total_amount: Money = field(default_factory=Money.zero)
    status: OrderStatus = OrderStatus.CREATED
    priority: OrderPriority = OrderPriority.NORMAL
    notes: str = ""
    calculation_id: int | None = None
    contract_id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    version: int = 0
    status_history: list[StatusChange] = field(default_factory=list)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        number: str,
        client_id: str,
        client_name: str,
        owner_id: str,
        items: list[OrderItem],
        priority: OrderPriority = OrderPriority.NORMAL,
        notes: str = "",
        now: datetime | None = None,
    ) -> Order:
        """Create a new order in CREATED status."""
        if not client_id or not str(client_id).strip():
            raise ValidationError("Client is required")
        if not owner_id or not str(owner_id).strip():
            raise ValidationError("Order owner is required")

        now = now or _utcnow()
        order = Order(
            id=None,
            number=number,
            client_id=str(client_id).strip(),
            client_name=(client_name or "").strip(),
            owner_id=str(owner_id).strip(),
            items=[],
            priority=priority,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        order.replace_items(items, now=now)
        return order

    # --- Item management ------------------------------------------------------

    def replace_items(self, items: list[OrderItem], now: datetime | None = None) -> None:
        """Replace the whole item set and recompute ``total_amount``."""
        if self.is_stock_committed or self.status == OrderStatus.CANCELLED:
            raise ValidationError(
                f"Order {self.number} is {self.status.value}; items can no longer change"
            )
        if not items:
            raise ValidationError("Order must contain at least one item")

        seen: set[str] = set()
        for item in items:
            if item.product_id in seen:
                raise ValidationError(
                    f"Product '{item.product_name}' appears more than once"
                )
            seen.add(item.product_id)

        self.items = list(items)
        total = Money.zero()
        for item in self.items:
            total = total + item.line_total
        self.total_amount = total
        self.updated_at = now or _utcnow()

    # --- Status recording -----------------------------------------------------

    def record_transition(
        self,
        new_status: OrderStatus,
        actor_id: str,
        now: datetime | None = None,
        reason: str | None = None,
        manual: bool = False,
    ) -> StatusChange:
        """Apply a status change already approved by the workflow."""
        now = now or _utcnow()
        change = StatusChange(
            from_status=self.status,
            to_status=new_status,
            actor_id=actor_id,
            changed_at=now,
            reason=reason,
            manual=manual,
        )
        self.status_history.append(change)
        self.status = new_status
        self.updated_at = now
        return change

    def append_note(self, text: str, label: str | None = None) -> None:
        text = (text or "").strip()
        if not text:
            return
        entry = f"[{label}]: {text}" if label else text
        self.notes = f"{self.notes}\n\n{entry}" if self.notes else entry

    # --- Computed properties --------------------------------------------------

    @property
    def has_calculation(self) -> bool:
        return self.calculation_id is not None

    @property
    def is_stock_committed(self) -> bool:
        """True once shipment has decremented stock for this order."""
        return self.status in STOCK_COMMITTED_STATUSES
