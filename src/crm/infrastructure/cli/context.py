"""Shared state handed from the root command group to subcommands."""

from __future__ import annotations

from dataclasses import dataclass

import click

from crm.infrastructure.config import Settings


@dataclass(frozen=True)
class CliContext:
    settings: Settings
    user: str


pass_context = click.make_pass_decorator(CliContext)
