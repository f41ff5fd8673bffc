"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Loads plugins lazily and centralizes result emission
(stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import click

from docwarden.domain.errors import DocwardenError
from docwarden.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from docwarden.config.settings import DocwardenSettings
    from docwarden.plugins.manager import PluginManager
    from docwarden.services.project import DefinitionsService
    from docwarden.services.result import ServiceResult


@contextmanager
def fatal_errors() -> Iterator[None]:
    """Turn configuration and input-file errors into a ClickException."""
    try:
        yield
    except DocwardenError as exc:
        raise click.ClickException(str(exc)) from exc


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Plugins are discovered on first use so ``--help`` and ``--version``
    never import third-party code.
    """

    def __init__(self, settings: DocwardenSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None

        from docwarden.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, quiet=settings.quiet, log_json=settings.log_json)

    @property
    def plugins(self) -> PluginManager | None:
        """The loaded plugin manager, or None when plugins are disabled."""
        if not self.settings.plugins.enabled:
            return None
        if self._plugins is None:
            from docwarden.plugins.manager import PluginManager

            self._plugins = PluginManager()
            self._plugins.discover_and_load(local_dir=self.settings.plugins_dir)
        return self._plugins

    def definitions_service(self, source: str | None = None) -> DefinitionsService:
        """A service over *source*, or over the configured definitions."""
        from docwarden.services.project import DefinitionsService

        return DefinitionsService(
            source or self.settings.definitions_source,
            self.settings.definitions.attribute,
            plugins=self.plugins,
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout, returns normally. Warnings go to stderr.
        * Failure: writes to stdout in JSON mode and to stderr otherwise,
          then exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=not settings.json_output)
            raise SystemExit(1)
