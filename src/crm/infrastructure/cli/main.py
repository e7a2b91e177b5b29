from dataclasses import replace
from pathlib import Path

import click

from crm.domain.exceptions import DomainException
from crm.infrastructure.cli.context import CliContext
from crm.infrastructure.cli.notification_commands import (
    notification_clear,
    notification_list,
    notification_purge,
    notification_read,
    notification_read_all,
    notification_stats,
)
from crm.infrastructure.cli.order_commands import (
    order_create,
    order_create_calculation,
    order_delete,
    order_items,
    order_override,
    order_respond,
    order_send_proposal,
    order_show,
    order_transition,
    order_valid_transitions,
)
from crm.infrastructure.cli.product_commands import product_add, product_list, product_update
from crm.infrastructure.cli.reminder_commands import (
    reminder_add,
    reminder_cancel,
    reminder_complete,
    reminder_list,
    reminder_reschedule,
    reminder_stats,
)
from crm.infrastructure.cli.stock_commands import (
    stock_history,
    stock_issue,
    stock_receive,
    stock_set,
    stock_show,
)
from crm.infrastructure.cli.sweep_commands import sweep_run, sweep_serve
from crm.infrastructure.config import Settings
from crm.infrastructure.logging_config import configure_logging


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory holding crm.json (default: $CRM_DATA_DIR).")
@click.option("--log-level", default=None, help="Logging level (default: $CRM_LOG_LEVEL).")
@click.option("--user", envvar="CRM_USER", default="system", show_default=True,
              help="Acting user id.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, log_level: str | None, user: str) -> None:
    """CRM: orders, proposals, stock and follow-up reminders"""
    try:
        settings = Settings.from_env()
    except DomainException as exc:
        raise click.ClickException(f"Invalid configuration: {exc}")
    if data_dir is not None:
        settings = replace(settings, data_dir=data_dir)
    if log_level is not None:
        settings = replace(settings, log_level=log_level.upper())

    try:
        configure_logging(settings.log_level)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--log-level")
    ctx.obj = CliContext(settings=settings, user=user)


@cli.group()
def order() -> None:
    """Manage orders and their workflow."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def stock() -> None:
    """Manage stock levels."""


@cli.group()
def reminder() -> None:
    """Manage your follow-up reminders."""


@cli.group()
def notification() -> None:
    """Read your notifications."""


@cli.group()
def sweep() -> None:
    """Run the reminder sweep."""


# Register subcommands
order.add_command(order_create)
order.add_command(order_create_calculation)
order.add_command(order_delete)
order.add_command(order_items)
order.add_command(order_override)
order.add_command(order_respond)
order.add_command(order_send_proposal)
order.add_command(order_show)
order.add_command(order_transition)
order.add_command(order_valid_transitions)
product.add_command(product_add)
product.add_command(product_list)
product.add_command(product_update)
stock.add_command(stock_history)
stock.add_command(stock_issue)
stock.add_command(stock_receive)
stock.add_command(stock_set)
stock.add_command(stock_show)
reminder.add_command(reminder_add)
reminder.add_command(reminder_cancel)
reminder.add_command(reminder_complete)
reminder.add_command(reminder_list)
reminder.add_command(reminder_reschedule)
reminder.add_command(reminder_stats)
notification.add_command(notification_clear)
notification.add_command(notification_list)
notification.add_command(notification_purge)
notification.add_command(notification_read)
notification.add_command(notification_read_all)
notification.add_command(notification_stats)
sweep.add_command(sweep_run)
sweep.add_command(sweep_serve)
