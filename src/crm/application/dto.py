"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the client asked for (product name + quantity)."""

    product_name: str
    quantity: int


@dataclass(frozen=True)
class OrderItemDTO:
    product_id: str
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "15.00 RUB"
    line_total: str


@dataclass(frozen=True)
class OrderDTO:
    id: int
    number: str
    client_name: str
    owner_id: str
    status: str
    priority: str
    items: list[OrderItemDTO]
    total: str
    calculation_id: int | None
    notes: str
    created_at: str


@dataclass(frozen=True)
class TransitionOptionsDTO:
    """Output of the valid-transitions query."""

    order_id: int
    current_status: str
    valid_transitions: list[str]
    requirements: list[dict]
    has_calculation: bool


@dataclass(frozen=True)
class CalculationDTO:
    id: int
    name: str
    status: str
    order_id: int | None
    reminder_active: bool
    next_reminder_date: str | None
    metrics: dict[str, str]


@dataclass(frozen=True)
class StockLineDTO:
    product_id: str
    product_name: str
    quantity: int


@dataclass(frozen=True)
class TransactionDTO:
    id: int
    product_id: str
    quantity: int
    type: str
    actor_id: str
    created_at: str
    reason: str | None


@dataclass(frozen=True)
class ReminderDTO:
    id: int
    title: str
    kind: str
    status: str
    related: str
    scheduled_date: str
    sent_count: int
    max_reminders: int


@dataclass(frozen=True)
class ReminderStatsDTO:
    total: int
    pending: int
    overdue: int
    by_kind: dict[str, int]
    upcoming: list[ReminderDTO]


@dataclass(frozen=True)
class NotificationDTO:
    id: int
    type: str
    title: str
    content: str
    is_read: bool
    is_urgent: bool
    related: str | None
    created_at: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationStatsDTO:
    total: int
    unread: int
    urgent: int
    by_type: dict[str, int]


@dataclass(frozen=True)
class PurgeResultDTO:
    expired: int
    read: int
    reminders: int

    @property
    def total(self) -> int:
        return self.expired + self.read + self.reminders


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def paginate(items: list, page: int, limit: int) -> tuple[list, int]:
    """Slice *items* for a 1-based *page*; returns the slice and the total."""
    page = max(page, 1)
    start = (page - 1) * limit
    return items[start : start + limit], len(items)
