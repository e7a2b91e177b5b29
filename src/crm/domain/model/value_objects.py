"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from crm.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Money:
    """Non-negative monetary amount.

    Uses Decimal to avoid floating-point rounding errors that would be
    unacceptable in financial calculations.
    """

    amount: Decimal
    currency: str = "RUB"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def zero() -> Money:
        return Money(Decimal("0.00"))

    @staticmethod
    def of(amount: str | float | int | Decimal) -> Money:
        """Convenient factory that coerces to Decimal safely."""
        try:
            return Money(Decimal(str(amount)))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


class RelatedType(Enum):
    """Kinds of entity a reminder or notification may point at."""

    CALCULATION = "CALCULATION"
    ORDER = "ORDER"
    CONTRACT = "CONTRACT"
    CLIENT = "CLIENT"


@dataclass(frozen=True)
class RelatedRef:
    """Typed reference to another aggregate.

    Replaces a free-form ``(related_id, related_type)`` string pair: the
    kind must belong to ``RelatedType`` and the id must be present.
    """

    kind: RelatedType
    id: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, RelatedType):
            raise ValidationError(f"Unknown related type: {self.kind!r}")
        if not self.id or not str(self.id).strip():
            raise ValidationError("Related id is required")

    @staticmethod
    def calculation(calculation_id: int | str) -> RelatedRef:
        return RelatedRef(RelatedType.CALCULATION, str(calculation_id))

    @staticmethod
    def order(order_id: int | str) -> RelatedRef:
        return RelatedRef(RelatedType.ORDER, str(order_id))

    @staticmethod
    def parse(kind: str, related_id: str) -> RelatedRef:
        """Build a reference from stored strings, validating the kind."""
        try:
            related_type = RelatedType(kind)
        except ValueError as exc:
            raise ValidationError(f"Unknown related type: {kind!r}") from exc
        return RelatedRef(related_type, related_id)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"
