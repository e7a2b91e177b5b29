"""CLI commands for the reminder sweep."""

from __future__ import annotations

import signal
from datetime import datetime

import click

from crm.infrastructure.bootstrap import daily_scheduler, sweep_driver
from crm.infrastructure.cli.context import CliContext, pass_context


@click.command("run")
@click.option("--at", "at", default=None, type=click.DateTime(["%Y-%m-%dT%H:%M", "%Y-%m-%d"]),
              help="Treat this local time as 'now' (default: current time).")
@pass_context
def sweep_run(ctx: CliContext, at: datetime | None) -> None:
    """Fire every due reminder once."""
    now = at.astimezone() if at is not None else None
    result = sweep_driver(ctx.settings).run_sweep(now)

    click.echo(
        f"Sweep: {result.total} due, {result.processed} processed, "
        f"{result.cancelled} cancelled, {result.failed} failed"
    )
    for failure in result.failures:
        click.echo(f"  reminder #{failure.reminder_id}: {failure.error}", err=True)
    if result.failed:
        click.get_current_context().exit(1)


@click.command("serve")
@pass_context
def sweep_serve(ctx: CliContext) -> None:
    """Run the sweep and the notification purge on their daily schedule."""
    scheduler = daily_scheduler(ctx.settings)

    def _shutdown(signum, frame) -> None:
        scheduler.stop(wait=False)

    signal.signal(signal.SIGTERM, _shutdown)
    times = ", ".join(t.strftime("%H:%M") for t in ctx.settings.sweep_times)
    click.echo(
        f"Sweeping at {times}; purging at {ctx.settings.purge_time.strftime('%H:%M')}. "
        f"Ctrl+C to stop."
    )
    scheduler.start()
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
    click.echo("Scheduler stopped.")
