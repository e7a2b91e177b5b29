"""CLI commands for the current user's notifications."""

from __future__ import annotations

import click

from crm.domain.exceptions import DomainException
from crm.infrastructure.bootstrap import notification_inbox
from crm.infrastructure.cli.context import CliContext, pass_context


@click.command("list")
@click.option("--unread", "unread_only", is_flag=True, default=False, help="Only unread.")
@click.option("--urgent", "urgent_only", is_flag=True, default=False, help="Only urgent.")
@click.option("--type", "notification_type", default=None,
              type=click.Choice(["MESSAGE", "REMINDER", "ALERT", "SYSTEM"], case_sensitive=False))
@click.option("--page", default=1, show_default=True, type=int)
@click.option("--limit", default=20, show_default=True, type=int)
@pass_context
def notification_list(
    ctx: CliContext,
    unread_only: bool,
    urgent_only: bool,
    notification_type: str | None,
    page: int,
    limit: int,
) -> None:
    """List your notifications, newest first."""
    try:
        result = notification_inbox(ctx.settings).list(
            ctx.user,
            unread_only=unread_only,
            urgent_only=urgent_only,
            notification_type=notification_type,
            page=page,
            limit=limit,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.items:
        click.echo("No notifications.")
        return

    for n in result.items:
        marker = "*" if not n.is_read else " "
        urgent = "!" if n.is_urgent else " "
        click.echo(f"{marker}{urgent} #{n.id:<5} {n.created_at}  [{n.type}] {n.title}")
    click.echo(f"Page {result.page} of {result.total_pages} ({result.total} total)")


@click.command("read")
@click.option("--id", "notification_id", required=True, type=int, help="Notification ID.")
@pass_context
def notification_read(ctx: CliContext, notification_id: int) -> None:
    """Show a notification and mark it read."""
    try:
        n = notification_inbox(ctx.settings).mark_read(notification_id, ctx.user)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(n.title)
    click.echo()
    click.echo(n.content)


@click.command("read-all")
@pass_context
def notification_read_all(ctx: CliContext) -> None:
    """Mark all your notifications read."""
    count = notification_inbox(ctx.settings).mark_all_read(ctx.user)
    click.echo(f"{count} notification(s) marked read.")


@click.command("stats")
@pass_context
def notification_stats(ctx: CliContext) -> None:
    """Show notification counts."""
    stats = notification_inbox(ctx.settings).stats(ctx.user)
    click.echo(f"Total:  {stats.total}")
    click.echo(f"Unread: {stats.unread}")
    click.echo(f"Urgent: {stats.urgent}")
    for kind, count in stats.by_type.items():
        click.echo(f"  {kind:<10} {count:>5}")


@click.command("purge")
@pass_context
def notification_purge(ctx: CliContext) -> None:
    """Delete expired and old notifications of all users."""
    result = notification_inbox(ctx.settings).purge()
    click.echo(
        f"Removed {result.total} notification(s): {result.expired} expired, "
        f"{result.read} old read, {result.reminders} old reminders."
    )


@click.command("clear")
@click.option("--type", "notification_type", default=None,
              type=click.Choice(["MESSAGE", "REMINDER", "ALERT", "SYSTEM"], case_sensitive=False),
              help="Only clear notifications of this type.")
@click.confirmation_option(prompt="Delete these notifications for good?")
@pass_context
def notification_clear(ctx: CliContext, notification_type: str | None) -> None:
    """Delete all of your notifications, or all of one type."""
    try:
        cleared = notification_inbox(ctx.settings).clear(ctx.user, notification_type)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    kind = f"{notification_type.lower()} " if notification_type else ""
    click.echo(f"{cleared} {kind}notification(s) cleared.")
