"""The ``docwarden`` command group: global flags, settings and subcommands."""

from __future__ import annotations

from typing import Any

import click

from docwarden import __version__
from docwarden.commands import register_commands
from docwarden.commands._base import DocwardenGroup
from docwarden.commands._context import AppContext, fatal_errors
from docwarden.config.settings import DocwardenSettings

GROUP_EXAMPLES = """\
  docwarden check
  docwarden types
  docwarden write doc.json --user alice --channel edit
  docwarden --no-plugins --json write doc.json --admin"""


@click.group(cls=DocwardenGroup, invoke_without_command=True, examples=GROUP_EXAMPLES)
@click.version_option(version=__version__, prog_name="docwarden")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--no-plugins", is_flag=True, help="Skip plugin discovery for this run.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    no_plugins: bool,
) -> None:
    """docwarden: validate and authorize document writes against type definitions."""
    overrides: dict[str, Any] = {"plugins": {"enabled": False}} if no_plugins else {}
    with fatal_errors():
        settings = DocwardenSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
            **overrides,
        )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
