"""CLI commands for the Order aggregate and its workflow."""

from __future__ import annotations

import click

from crm.application.create_order import (
    CreateOrderHandler,
    ShowOrderHandler,
    UpdateOrderItemsHandler,
)
from crm.application.dto import OrderDTO, OrderItemSpec
from crm.application.order_admin import DeleteOrderHandler, OverrideStatusHandler
from crm.application.proposal_workflow import (
    CreateCalculationHandler,
    RespondToProposalHandler,
    SendProposalHandler,
)
from crm.application.request_transition import ValidTransitionsHandler
from crm.domain.exceptions import DomainException
from crm.infrastructure.bootstrap import request_transition_handler, unit_of_work_factory
from crm.infrastructure.cli.context import CliContext, pass_context


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'Widget:3,Gadget:5' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductName:Quantity'."
            )
        name, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{name}'."
            )
        specs.append(OrderItemSpec(product_name=name.strip(), quantity=qty))
    return specs


def _parse_costs(raw: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated 'field=value' options into a dict."""
    costs: dict[str, str] = {}
    for pair in raw:
        if "=" not in pair:
            raise click.BadParameter(f"Invalid cost '{pair}'. Expected 'field=value'.")
        key, value = pair.split("=", 1)
        costs[key.strip()] = value.strip()
    return costs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.number} (#{dto.id})  status={dto.status}  priority={dto.priority}")
    click.echo(f"Client:   {dto.client_name}")
    click.echo(f"Owner:    {dto.owner_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.calculation_id is not None:
        click.echo(f"Calculation: #{dto.calculation_id}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14}")
    click.echo(f"  {'-'*55}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>14} {item.line_total:>14}"
        )
    click.echo(f"  {'-'*55}")
    click.echo(f"  {'Order Total':<27} {dto.total:>28}")
    if dto.notes:
        click.echo()
        click.echo(dto.notes)


@click.command("create")
@click.option("--client-id", required=True, help="Client identifier.")
@click.option("--client-name", default="", help="Client display name.")
@click.option("--items", required=True, help="Items as 'Product:Qty,Product:Qty'.")
@click.option("--priority", default="NORMAL", show_default=True,
              type=click.Choice(["LOW", "NORMAL", "HIGH", "URGENT"], case_sensitive=False))
@click.option("--notes", default="", help="Free-form notes.")
@pass_context
def order_create(
    ctx: CliContext, client_id: str, client_name: str, items: str, priority: str, notes: str
) -> None:
    """Create a new order."""
    specs = _parse_items(items)
    handler = CreateOrderHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(
            client_id=client_id,
            client_name=client_name,
            owner_id=ctx.user,
            item_specs=specs,
            priority=priority,
            notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.number} created  (id={dto.id}, status={dto.status})")
    click.echo(f"Total: {dto.total}")


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
@pass_context
def order_show(ctx: CliContext, order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("items")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--items", required=True, help="New item set as 'Product:Qty,Product:Qty'.")
@pass_context
def order_items(ctx: CliContext, order_id: int, items: str) -> None:
    """Replace the items of an order (prices are re-captured)."""
    specs = _parse_items(items)
    handler = UpdateOrderItemsHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(order_id, specs)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("transition")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--status", required=True, help="Target status.")
@pass_context
def order_transition(ctx: CliContext, order_id: int, status: str) -> None:
    """Move an order to the next status."""
    handler = request_transition_handler(ctx.settings)

    try:
        dto = handler.handle(order_id, status, ctx.user)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.number} is now {dto.status}.")


@click.command("valid-transitions")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@pass_context
def order_valid_transitions(ctx: CliContext, order_id: int) -> None:
    """List the statuses an order can move to next."""
    handler = ValidTransitionsHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Current status: {dto.current_status}")
    if not dto.requirements:
        click.echo("No further transitions.")
        return
    for requirement in dto.requirements:
        click.echo(f"  -> {requirement['status']:<22} {requirement['description']}")


@click.command("create-calculation")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--name", default=None, help="Calculation name (default: product names).")
@click.option("--cost", "costs", multiple=True,
              help="Cost field as 'field=value', e.g. gas_cost=1200. Repeatable.")
@pass_context
def order_create_calculation(
    ctx: CliContext, order_id: int, name: str | None, costs: tuple[str, ...]
) -> None:
    """Attach a calculation to an order (CREATED -> CALCULATION)."""
    handler = CreateCalculationHandler(request_transition_handler(ctx.settings))

    try:
        order_dto, calculation = handler.handle(
            order_id, _parse_costs(costs), ctx.user, name=name
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Calculation #{calculation.id} '{calculation.name}' created; "
        f"order {order_dto.number} is {order_dto.status}."
    )
    for key, value in calculation.metrics.items():
        click.echo(f"  {key:<24} {value:>14}")


@click.command("send-proposal")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@pass_context
def order_send_proposal(ctx: CliContext, order_id: int) -> None:
    """Send the proposal to the client and start follow-up reminders."""
    handler = SendProposalHandler(request_transition_handler(ctx.settings))

    try:
        dto = handler.handle(order_id, ctx.user)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Proposal for order {dto.number} sent; follow-up reminder armed.")


@click.command("respond")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--response", required=True,
              type=click.Choice(["ACCEPTED", "REJECTED"], case_sensitive=False))
@click.option("--notes", default=None, help="Notes from the client.")
@pass_context
def order_respond(ctx: CliContext, order_id: int, response: str, notes: str | None) -> None:
    """Record the client's response to a proposal."""
    handler = RespondToProposalHandler(request_transition_handler(ctx.settings))

    try:
        dto = handler.handle(order_id, response, ctx.user, notes=notes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.number} is now {dto.status}.")


@click.command("override")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--status", required=True, help="Target status.")
@click.option("--reason", required=True, help="Why the override is needed.")
@pass_context
def order_override(ctx: CliContext, order_id: int, status: str, reason: str) -> None:
    """Manually change an order's status outside the normal workflow."""
    handler = OverrideStatusHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(order_id, status, ctx.user, reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.number} manually moved to {dto.status}.")


@click.command("delete")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@pass_context
def order_delete(ctx: CliContext, order_id: int) -> None:
    """Delete an order; shipped orders are cancelled instead."""
    handler = DeleteOrderHandler(unit_of_work_factory(ctx.settings))

    try:
        outcome = handler.handle(order_id, ctx.user)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} {outcome.value}.")
