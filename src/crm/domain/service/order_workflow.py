"""Order workflow: the legal status graph and its guards.

Everything in this module is a pure function of its arguments.  Callers
gather the guard facts, ask ``plan_transition`` for a decision and then
execute the returned side effects themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from crm.domain.exceptions import InvalidTransition, PreconditionNotMet
from crm.domain.model.order import OrderStatus


class Precondition(Enum):
    HAS_CALCULATION = "HAS_CALCULATION"
    STOCK_AVAILABLE = "STOCK_AVAILABLE"


class SideEffect(Enum):
    ARM_FOLLOW_UP = "ARM_FOLLOW_UP"
    RETIRE_REMINDERS = "RETIRE_REMINDERS"
    RESOLVE_PROPOSAL = "RESOLVE_PROPOSAL"
    NOTIFY_OWNER = "NOTIFY_OWNER"
    SHIP_STOCK = "SHIP_STOCK"


@dataclass(frozen=True)
class GuardFacts:
    """Facts about an order that edge preconditions are evaluated against.

    Stock availability is not a fact here: the ledger re-validates it while
    applying the shipment and fails the whole transition on shortage.
    """

    has_calculation: bool = False


@dataclass(frozen=True)
class Edge:
    target: OrderStatus
    precondition: Precondition | None = None
    side_effects: tuple[SideEffect, ...] = ()


_RESOLVE = (
    SideEffect.RETIRE_REMINDERS,
    SideEffect.RESOLVE_PROPOSAL,
    SideEffect.NOTIFY_OWNER,
)

TRANSITIONS: dict[OrderStatus, tuple[Edge, ...]] = {
    OrderStatus.CREATED: (Edge(OrderStatus.CALCULATION),),
    OrderStatus.CALCULATION: (
        Edge(
            OrderStatus.PROPOSAL_SENT,
            precondition=Precondition.HAS_CALCULATION,
            side_effects=(SideEffect.ARM_FOLLOW_UP,),
        ),
    ),
    OrderStatus.PROPOSAL_SENT: (
        Edge(OrderStatus.PROPOSAL_ACCEPTED, side_effects=_RESOLVE),
        Edge(OrderStatus.PROPOSAL_REJECTED, side_effects=_RESOLVE),
    ),
    OrderStatus.PROPOSAL_ACCEPTED: (
        Edge(OrderStatus.PAID),
        Edge(OrderStatus.FOR_SHIPMENT_UNPAID),
    ),
    OrderStatus.PROPOSAL_REJECTED: (),
    OrderStatus.PAID: (Edge(OrderStatus.PICKING),),
    OrderStatus.FOR_SHIPMENT_UNPAID: (Edge(OrderStatus.PICKING),),
    OrderStatus.PICKING: (
        Edge(
            OrderStatus.SHIPPED,
            precondition=Precondition.STOCK_AVAILABLE,
            side_effects=(SideEffect.SHIP_STOCK,),
        ),
    ),
    OrderStatus.SHIPPED: (Edge(OrderStatus.CLOSED),),
    OrderStatus.CLOSED: (),
    OrderStatus.CANCELLED: (),
}

# Administrative overrides live outside the standard graph and are always
# recorded as manual changes with a reason.
MANUAL_OVERRIDES: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PROPOSAL_REJECTED: (OrderStatus.CALCULATION,),
}

REQUIREMENT_DESCRIPTIONS: dict[Precondition, str] = {
    Precondition.HAS_CALCULATION: "Order must have a calculation to send a proposal",
    Precondition.STOCK_AVAILABLE: "Every item must be in stock at shipment time",
}


def valid_transitions(current: OrderStatus) -> list[OrderStatus]:
    """Statuses reachable from *current* in one standard step."""
    return [edge.target for edge in TRANSITIONS[current]]


def transition_requirements(current: OrderStatus) -> list[dict]:
    """Describe each outgoing edge and its precondition, for clients."""
    return [
        {
            "status": edge.target.value,
            "precondition": edge.precondition.value if edge.precondition else None,
            "description": (
                REQUIREMENT_DESCRIPTIONS[edge.precondition]
                if edge.precondition
                else "No specific requirements"
            ),
        }
        for edge in TRANSITIONS[current]
    ]


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def plan_transition(
    current: OrderStatus,
    target: OrderStatus,
    facts: GuardFacts,
) -> tuple[SideEffect, ...]:
    """Decide whether *current* -> *target* is allowed.

    Returns the side effects to execute on commit.  Raises
    InvalidTransition when the edge does not exist and PreconditionNotMet
    when its guard is false.
    """
    for edge in TRANSITIONS[current]:
        if edge.target != target:
            continue
        if edge.precondition is Precondition.HAS_CALCULATION and not facts.has_calculation:
            raise PreconditionNotMet(
                Precondition.HAS_CALCULATION.value,
                REQUIREMENT_DESCRIPTIONS[Precondition.HAS_CALCULATION],
            )
        return edge.side_effects

    raise InvalidTransition(
        current=current.value,
        requested=target.value,
        allowed=[s.value for s in valid_transitions(current)],
    )


def plan_override(current: OrderStatus, target: OrderStatus) -> None:
    """Validate an administrative status override."""
    allowed = MANUAL_OVERRIDES.get(current, ())
    if target not in allowed:
        raise InvalidTransition(
            current=current.value,
            requested=target.value,
            allowed=[s.value for s in allowed],
        )
