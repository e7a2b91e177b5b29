"""Unit tests for the pure order workflow functions."""

import pytest

from crm.domain.exceptions import InvalidTransition, PreconditionNotMet
from crm.domain.model.order import OrderStatus
from crm.domain.service.order_workflow import (
    MANUAL_OVERRIDES,
    TRANSITIONS,
    GuardFacts,
    SideEffect,
    is_terminal,
    plan_override,
    plan_transition,
    transition_requirements,
    valid_transitions,
)

WITH_CALC = GuardFacts(has_calculation=True)
NO_CALC = GuardFacts(has_calculation=False)


class TestGraph:

    def test_every_status_has_an_entry(self):
        assert set(TRANSITIONS) == set(OrderStatus)

    def test_created_only_goes_to_calculation(self):
        assert valid_transitions(OrderStatus.CREATED) == [OrderStatus.CALCULATION]

    def test_accepted_branches_to_paid_or_unpaid_shipment(self):
        assert valid_transitions(OrderStatus.PROPOSAL_ACCEPTED) == [
            OrderStatus.PAID,
            OrderStatus.FOR_SHIPMENT_UNPAID,
        ]

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.CLOSED, OrderStatus.PROPOSAL_REJECTED, OrderStatus.CANCELLED],
    )
    def test_terminal_statuses(self, status):
        assert is_terminal(status)
        assert valid_transitions(status) == []

    def test_requirements_describe_preconditions(self):
        [requirement] = transition_requirements(OrderStatus.CALCULATION)
        assert requirement["status"] == "PROPOSAL_SENT"
        assert requirement["precondition"] == "HAS_CALCULATION"
        assert "calculation" in requirement["description"]

    @pytest.mark.parametrize("start", list(OrderStatus))
    def test_no_path_leads_back_to_created(self, start):
        seen = {start}
        frontier = [start]
        while frontier:
            status = frontier.pop()
            targets = [edge.target for edge in TRANSITIONS[status]]
            targets += MANUAL_OVERRIDES.get(status, ())
            assert OrderStatus.CREATED not in targets
            for target in targets:
                if target not in seen:
                    seen.add(target)
                    frontier.append(target)

    def test_every_status_is_reachable_from_created_except_cancelled(self):
        seen = {OrderStatus.CREATED}
        frontier = [OrderStatus.CREATED]
        while frontier:
            for edge in TRANSITIONS[frontier.pop()]:
                if edge.target not in seen:
                    seen.add(edge.target)
                    frontier.append(edge.target)
        assert set(OrderStatus) - seen == {OrderStatus.CANCELLED}


class TestPlanTransition:

    def test_skipping_a_step_is_rejected_with_allowed_list(self):
        with pytest.raises(InvalidTransition) as excinfo:
            plan_transition(OrderStatus.CREATED, OrderStatus.PROPOSAL_SENT, WITH_CALC)
        assert excinfo.value.current == "CREATED"
        assert excinfo.value.allowed == ["CALCULATION"]

    def test_send_proposal_requires_calculation(self):
        with pytest.raises(PreconditionNotMet) as excinfo:
            plan_transition(OrderStatus.CALCULATION, OrderStatus.PROPOSAL_SENT, NO_CALC)
        assert excinfo.value.precondition == "HAS_CALCULATION"

    def test_send_proposal_arms_follow_up(self):
        effects = plan_transition(OrderStatus.CALCULATION, OrderStatus.PROPOSAL_SENT, WITH_CALC)
        assert effects == (SideEffect.ARM_FOLLOW_UP,)

    @pytest.mark.parametrize("target", [OrderStatus.PROPOSAL_ACCEPTED, OrderStatus.PROPOSAL_REJECTED])
    def test_resolution_retires_reminders(self, target):
        effects = plan_transition(OrderStatus.PROPOSAL_SENT, target, WITH_CALC)
        assert SideEffect.RETIRE_REMINDERS in effects
        assert SideEffect.NOTIFY_OWNER in effects

    def test_shipping_decrements_stock(self):
        effects = plan_transition(OrderStatus.PICKING, OrderStatus.SHIPPED, NO_CALC)
        assert effects == (SideEffect.SHIP_STOCK,)

    def test_shipped_cannot_ship_again(self):
        with pytest.raises(InvalidTransition, match="allowed: CLOSED"):
            plan_transition(OrderStatus.SHIPPED, OrderStatus.SHIPPED, NO_CALC)

    def test_closed_reports_no_allowed_statuses(self):
        with pytest.raises(InvalidTransition, match="allowed: none"):
            plan_transition(OrderStatus.CLOSED, OrderStatus.CREATED, NO_CALC)

    def test_cancelled_is_not_reachable_through_the_graph(self):
        with pytest.raises(InvalidTransition):
            plan_transition(OrderStatus.CREATED, OrderStatus.CANCELLED, NO_CALC)


class TestPlanOverride:

    def test_rejected_can_be_reopened(self):
        plan_override(OrderStatus.PROPOSAL_REJECTED, OrderStatus.CALCULATION)

    def test_other_overrides_rejected(self):
        with pytest.raises(InvalidTransition):
            plan_override(OrderStatus.SHIPPED, OrderStatus.PICKING)
