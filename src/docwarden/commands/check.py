"""Command: compile document definitions and report problems."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from docwarden.commands._base import DocwardenCommand, definitions_option

if TYPE_CHECKING:
    from docwarden.commands._context import AppContext


@click.command(
    cls=DocwardenCommand,
    examples="""\
  docwarden check
  docwarden check -d sync_definitions.py
  docwarden --json check -d myproject.definitions""",
)
@definitions_option
@click.pass_obj
def check(app: AppContext, definitions_source: str | None) -> None:
    """Compile the document definitions and list every problem found."""
    app.emit(app.definitions_service(definitions_source).check())
