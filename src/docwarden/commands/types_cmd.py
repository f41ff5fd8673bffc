"""Command: list the document types in a definition set."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from docwarden.commands._base import DocwardenCommand, definitions_option
from docwarden.commands._context import fatal_errors

if TYPE_CHECKING:
    from docwarden.commands._context import AppContext


@click.command(
    "types",
    cls=DocwardenCommand,
    examples="""\
  docwarden types
  docwarden --json types -d sync_definitions.py""",
)
@definitions_option
@click.pass_obj
def types_cmd(app: AppContext, definitions_source: str | None) -> None:
    """List document types in the order their type filters are consulted."""
    with fatal_errors():
        result = app.definitions_service(definitions_source).list_types()
    app.emit(result)
