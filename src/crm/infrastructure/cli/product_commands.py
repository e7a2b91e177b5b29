"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from crm.application.manage_products import (
    AddProductHandler,
    ListProductsHandler,
    UpdateProductHandler,
)
from crm.domain.exceptions import DomainException
from crm.infrastructure.bootstrap import unit_of_work_factory
from crm.infrastructure.cli.context import CliContext, pass_context


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 15.00).")
@click.option("--unit", default="pcs", show_default=True, help="Unit of measure.")
@pass_context
def product_add(ctx: CliContext, name: str, price: str, unit: str) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(unit_of_work_factory(ctx.settings))

    try:
        product = handler.handle(name=name, price=price, unit=unit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' added at {product.price}")


@click.command("list")
@pass_context
def product_list(ctx: CliContext) -> None:
    """List all products in the catalog."""
    products = ListProductsHandler(unit_of_work_factory(ctx.settings)).handle()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>14} {'Unit':>6}")
    click.echo("-" * 49)
    for p in products:
        click.echo(f"{p.id:<6} {p.name:<20} {str(p.price):>14} {p.unit:>6}")


@click.command("update")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--price", required=True, help="New price (e.g. 29.99).")
@pass_context
def product_update(ctx: CliContext, product_id: str, price: str) -> None:
    """Update a product's price."""
    handler = UpdateProductHandler(unit_of_work_factory(ctx.settings))

    try:
        product = handler.handle(product_id=product_id, new_price=price)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} price updated to {product.price}")
