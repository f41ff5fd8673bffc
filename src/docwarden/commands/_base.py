"""Click base classes and shared options.

Every command accepts ``--examples``, which prints usage examples and exits
so that ``--help`` stays short. Options used by more than one command, or
that describe the simulated principal, live here too.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

F = TypeVar("F", bound=Callable[..., Any])


def _examples_option(examples: str) -> click.Option:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value:
            click.echo(f"Examples for '{ctx.command_path}':\n\n{examples}")
            ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show_examples,
        help="Show usage examples.",
    )


class DocwardenCommand(click.Command):
    """A command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


class DocwardenGroup(click.Group):
    """A group with ``--examples`` whose subcommands are :class:`DocwardenCommand`."""

    command_class = DocwardenCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


definitions_option = click.option(
    "-d",
    "--definitions",
    "definitions_source",
    default=None,
    help="Definitions module (.py file or dotted name); overrides [definitions] path.",
)


def principal_options(func: F) -> F:
    """Options describing the simulated user; unset ones fall back to [host]."""
    for decorator in reversed(
        (
            click.option("--user", default=None, help="Name of the acting user."),
            click.option("--role", "roles", multiple=True, help="Role of the acting user (repeatable)."),
            click.option(
                "--channel",
                "channels",
                multiple=True,
                help="Channel the acting user can access (repeatable).",
            ),
            click.option("--admin", is_flag=True, help="Act through the administrative interface."),
        )
    ):
        func = decorator(func)
    return func
