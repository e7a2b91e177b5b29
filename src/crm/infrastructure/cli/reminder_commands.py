"""CLI commands for the current user's reminders."""

from __future__ import annotations

from datetime import datetime

import click

from crm.application.manage_reminders import (
    CancelReminderHandler,
    CompleteReminderHandler,
    CreateReminderHandler,
    ListRemindersHandler,
    ReminderStatsHandler,
    UpdateReminderHandler,
)
from crm.domain.exceptions import DomainException
from crm.infrastructure.bootstrap import unit_of_work_factory
from crm.infrastructure.cli.context import CliContext, pass_context


@click.command("list")
@click.option("--status", default=None,
              type=click.Choice(["PENDING", "SENT", "CANCELLED", "COMPLETED"], case_sensitive=False))
@click.option("--page", default=1, show_default=True, type=int)
@click.option("--limit", default=20, show_default=True, type=int)
@pass_context
def reminder_list(ctx: CliContext, status: str | None, page: int, limit: int) -> None:
    """List your reminders by scheduled date."""
    handler = ListRemindersHandler(unit_of_work_factory(ctx.settings))

    try:
        result = handler.handle(ctx.user, status=status, page=page, limit=limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.items:
        click.echo("No reminders found.")
        return

    click.echo(f"{'ID':<5} {'Status':<10} {'Scheduled':<22} {'Sent':>6}  Title")
    click.echo("-" * 70)
    for r in result.items:
        click.echo(
            f"{r.id:<5} {r.status:<10} {r.scheduled_date:<22} "
            f"{r.sent_count:>2}/{r.max_reminders:<3}  {r.title}"
        )
    click.echo(f"Page {result.page} of {result.total_pages} ({result.total} total)")


@click.command("cancel")
@click.option("--id", "reminder_id", required=True, type=int, help="Reminder ID.")
@pass_context
def reminder_cancel(ctx: CliContext, reminder_id: int) -> None:
    """Cancel one of your reminders."""
    handler = CancelReminderHandler(unit_of_work_factory(ctx.settings))

    try:
        handler.handle(reminder_id, ctx.user)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reminder #{reminder_id} cancelled.")


@click.command("complete")
@click.option("--id", "reminder_id", required=True, type=int, help="Reminder ID.")
@pass_context
def reminder_complete(ctx: CliContext, reminder_id: int) -> None:
    """Mark one of your reminders as done."""
    handler = CompleteReminderHandler(unit_of_work_factory(ctx.settings))

    try:
        handler.handle(reminder_id, ctx.user)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reminder #{reminder_id} completed.")


DATE_FORMATS = ["%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M", "%Y-%m-%d"]


def _aware(value: datetime | None) -> datetime | None:
    return value.astimezone() if value is not None else None


@click.command("add")
@click.option("--related-type", required=True,
              type=click.Choice(["CALCULATION", "ORDER", "CONTRACT", "CLIENT"], case_sensitive=False))
@click.option("--related-id", required=True, help="ID of the related record.")
@click.option("--kind", default="CUSTOM", show_default=True,
              type=click.Choice(["FOLLOW_UP", "CALL_CLIENT", "SEND_DOCUMENTS", "CUSTOM"],
                                case_sensitive=False))
@click.option("--title", required=True)
@click.option("--description", default="")
@click.option("--at", "scheduled_date", default=None, type=click.DateTime(DATE_FORMATS),
              help="First firing, local time (default: one frequency from now).")
@click.option("--every", "frequency_days", default=3, show_default=True, type=int,
              help="Days between firings.")
@click.option("--max", "max_reminders", default=10, show_default=True, type=int,
              help="Stop after this many firings.")
@pass_context
def reminder_add(
    ctx: CliContext,
    related_type: str,
    related_id: str,
    kind: str,
    title: str,
    description: str,
    scheduled_date: datetime | None,
    frequency_days: int,
    max_reminders: int,
) -> None:
    """Create a reminder for yourself."""
    handler = CreateReminderHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(
            ctx.user,
            related_type,
            related_id,
            kind,
            title,
            description=description,
            scheduled_date=_aware(scheduled_date),
            frequency_days=frequency_days,
            max_reminders=max_reminders,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reminder #{dto.id} created; first at {dto.scheduled_date}.")


@click.command("reschedule")
@click.option("--id", "reminder_id", required=True, type=int, help="Reminder ID.")
@click.option("--at", "scheduled_date", default=None, type=click.DateTime(DATE_FORMATS),
              help="New firing time, local time.")
@click.option("--title", default=None)
@click.option("--description", default=None)
@click.option("--every", "frequency_days", default=None, type=int, help="Days between firings.")
@click.option("--max", "max_reminders", default=None, type=int, help="Total firings allowed.")
@pass_context
def reminder_reschedule(
    ctx: CliContext,
    reminder_id: int,
    scheduled_date: datetime | None,
    title: str | None,
    description: str | None,
    frequency_days: int | None,
    max_reminders: int | None,
) -> None:
    """Move or edit one of your pending reminders."""
    handler = UpdateReminderHandler(unit_of_work_factory(ctx.settings))

    try:
        dto = handler.handle(
            reminder_id,
            ctx.user,
            scheduled_date=_aware(scheduled_date),
            title=title,
            description=description,
            frequency_days=frequency_days,
            max_reminders=max_reminders,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reminder #{dto.id} next at {dto.scheduled_date}.")


@click.command("stats")
@pass_context
def reminder_stats(ctx: CliContext) -> None:
    """Summarise your reminders."""
    stats = ReminderStatsHandler(unit_of_work_factory(ctx.settings)).handle(ctx.user)

    click.echo(f"Total:   {stats.total}")
    click.echo(f"Pending: {stats.pending}")
    click.echo(f"Overdue: {stats.overdue}")
    for kind, count in stats.by_kind.items():
        click.echo(f"  {kind:<15} {count:>5}")
    if stats.upcoming:
        click.echo("Next 7 days:")
        for r in stats.upcoming:
            click.echo(f"  #{r.id:<5} {r.scheduled_date}  {r.title}")
