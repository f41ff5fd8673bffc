"""Subcommand modules for docwarden.

Provides register_commands(), which imports command modules on demand so
that ``docwarden --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register every standalone command on the root CLI group."""
    from docwarden.commands.check import check
    from docwarden.commands.types_cmd import types_cmd
    from docwarden.commands.write import write

    cli.add_command(check)
    cli.add_command(types_cmd)
    cli.add_command(write)
