"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransition(ValidationError):
    """The requested status change is not an edge of the workflow graph.

    Carries the current status and the legal next statuses so a client can
    resynchronise without guessing.
    """

    def __init__(self, current: str, requested: str, allowed: list[str]) -> None:
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        allowed_text = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"Cannot change status from {current} to {requested} "
            f"(allowed: {allowed_text})"
        )


class PreconditionNotMet(ValidationError):
    """The edge exists but its guard is false."""

    def __init__(self, precondition: str, message: str) -> None:
        self.precondition = precondition
        super().__init__(message)


class InsufficientStock(ValidationError):
    """A stock delta would drive a product's quantity negative."""

    def __init__(self, product_id: str, product_name: str, available: int, requested: int) -> None:
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name} "
            f"(need {requested}, have {available} available)"
        )


class ConcurrentModification(DomainException):
    """A stale write lost a race; re-read the entity and retry."""
