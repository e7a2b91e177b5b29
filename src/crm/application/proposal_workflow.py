"""Application services for the proposal part of the order workflow.

``create-calculation``, ``send-proposal`` and ``proposal-response`` are
thin wrappers around the standard transitions; they add the data each step
needs (the calculation itself, the client's response notes).
"""

from __future__ import annotations

from crm.application.dto import CalculationDTO, OrderDTO
from crm.application.mappers import calculation_to_dto, order_to_dto
from crm.application.request_transition import RequestTransitionHandler, load_order
from crm.domain.exceptions import ValidationError
from crm.domain.model.calculation import Calculation, CostBreakdown
from crm.domain.model.order import OrderStatus


class CreateCalculationHandler:
    """Attach a new calculation to a CREATED order and move it to CALCULATION."""

    def __init__(self, transitions: RequestTransitionHandler) -> None:
        self._transitions = transitions

    def handle(
        self,
        order_id: int,
        costs: dict,
        actor_id: str,
        name: str | None = None,
    ) -> tuple[OrderDTO, CalculationDTO]:
        breakdown = CostBreakdown.from_mapping(costs)

        with self._transitions.uow_factory() as uow:
            order = load_order(uow, order_id)
            if order.has_calculation:
                raise ValidationError(f"Order {order.number} already has a calculation")
            if order.status not in (OrderStatus.CREATED, OrderStatus.CALCULATION):
                raise ValidationError(
                    f"Calculation can only be created for orders in CREATED status "
                    f"(order {order.number} is {order.status.value})"
                )

            now = self._transitions.clock()
            calculation = Calculation(
                id=None,
                name=name or ", ".join(item.product_name for item in order.items),
                client_id=order.client_id,
                client_name=order.client_name,
                owner_id=actor_id,
                costs=breakdown,
                order_id=order.id,
                created_at=now,
            )
            uow.calculations.save(calculation)
            order.calculation_id = calculation.id

            if order.status is OrderStatus.CREATED:
                self._transitions.transitioner(uow).transition(
                    order, OrderStatus.CALCULATION, actor_id, now
                )
            else:
                uow.orders.save(order)
            uow.commit()
            return order_to_dto(order), calculation_to_dto(calculation)


class SendProposalHandler:
    """CALCULATION -> PROPOSAL_SENT; arms the first follow-up reminder."""

    def __init__(self, transitions: RequestTransitionHandler) -> None:
        self._transitions = transitions

    def handle(self, order_id: int, actor_id: str) -> OrderDTO:
        return self._transitions.handle(order_id, OrderStatus.PROPOSAL_SENT.value, actor_id)


class RespondToProposalHandler:
    """PROPOSAL_SENT -> PROPOSAL_ACCEPTED | PROPOSAL_REJECTED."""

    RESPONSES = {
        "ACCEPTED": OrderStatus.PROPOSAL_ACCEPTED,
        "REJECTED": OrderStatus.PROPOSAL_REJECTED,
    }

    def __init__(self, transitions: RequestTransitionHandler) -> None:
        self._transitions = transitions

    def handle(
        self,
        order_id: int,
        response: str,
        actor_id: str,
        notes: str | None = None,
    ) -> OrderDTO:
        target = self.RESPONSES.get(response.strip().upper())
        if target is None:
            raise ValidationError("Response must be ACCEPTED or REJECTED")

        with self._transitions.uow_factory() as uow:
            order = load_order(uow, order_id)
            if notes:
                order.append_note(notes, label="Proposal response")
            self._transitions.transitioner(uow).transition(
                order, target, actor_id, self._transitions.clock()
            )
            uow.commit()
            return order_to_dto(order)
