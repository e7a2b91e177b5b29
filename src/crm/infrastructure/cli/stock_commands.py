"""CLI commands for stock levels and their audit trail."""

from __future__ import annotations

import click

from crm.application.dto import TransactionDTO
from crm.application.manage_stock import (
    AdjustStockHandler,
    SetStockHandler,
    ShowStockHandler,
    StockHistoryHandler,
)
from crm.domain.exceptions import DomainException
from crm.domain.model.stock import TransactionType
from crm.infrastructure.bootstrap import unit_of_work_factory
from crm.infrastructure.cli.context import CliContext, pass_context


def _echo_transaction(dto: TransactionDTO, product: str) -> None:
    click.echo(f"{dto.type} {dto.quantity:+d} for '{product}' recorded (transaction #{dto.id})")


@click.command("receive")
@click.option("--product", required=True, help="Product name.")
@click.option("--quantity", required=True, type=int, help="Quantity received.")
@click.option("--reason", default=None, help="Delivery note or supplier.")
@pass_context
def stock_receive(ctx: CliContext, product: str, quantity: int, reason: str | None) -> None:
    """Record incoming stock."""
    handler = AdjustStockHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(product, quantity, TransactionType.INCOMING, ctx.user, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _echo_transaction(dto, product)


@click.command("issue")
@click.option("--product", required=True, help="Product name.")
@click.option("--quantity", required=True, type=int, help="Quantity issued.")
@click.option("--reason", default=None, help="Why the stock leaves.")
@click.option("--client-id", default=None, help="Receiving client, if any.")
@pass_context
def stock_issue(
    ctx: CliContext, product: str, quantity: int, reason: str | None, client_id: str | None
) -> None:
    """Record outgoing stock outside an order shipment."""
    handler = AdjustStockHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(
            product,
            quantity,
            TransactionType.OUTGOING,
            ctx.user,
            reason=reason,
            client_id=client_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _echo_transaction(dto, product)


@click.command("set")
@click.option("--product", required=True, help="Product name.")
@click.option("--quantity", required=True, type=int, help="Counted quantity in stock.")
@click.option("--reason", default=None, help="Reason for the correction.")
@pass_context
def stock_set(ctx: CliContext, product: str, quantity: int, reason: str | None) -> None:
    """Set the stock level after an inventory count."""
    handler = SetStockHandler(unit_of_work_factory(ctx.settings))

    try:
        handler.handle(product, quantity, ctx.user, reason=reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Stock for '{product}' set to {quantity}")


@click.command("show")
@pass_context
def stock_show(ctx: CliContext) -> None:
    """Show current stock levels."""
    lines = ShowStockHandler(unit_of_work_factory(ctx.settings)).handle()

    if not lines:
        click.echo("No stock records found.")
        return

    click.echo(f"{'Product':<20} {'Quantity':>10}")
    click.echo("-" * 31)
    for line in lines:
        click.echo(f"{line.product_name:<20} {line.quantity:>10}")


@click.command("history")
@click.option("--product", required=True, help="Product name.")
@click.option("--limit", default=20, show_default=True, type=int)
@pass_context
def stock_history(ctx: CliContext, product: str, limit: int) -> None:
    """Show the audit trail of a product."""
    handler = StockHistoryHandler(unit_of_work_factory(ctx.settings))

    try:
        entries = handler.handle(product, limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not entries:
        click.echo(f"No stock movements for '{product}'.")
        return

    click.echo(f"{'When':<22} {'Type':<10} {'Qty':>6}  {'By':<12} Reason")
    click.echo("-" * 70)
    for e in entries:
        click.echo(f"{e.created_at:<22} {e.type:<10} {e.quantity:>+6}  {e.actor_id:<12} {e.reason or ''}")
