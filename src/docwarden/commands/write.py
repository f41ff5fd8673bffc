"""Command: run one document write through the full pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from docwarden.commands._base import DocwardenCommand, definitions_option, principal_options
from docwarden.commands._context import fatal_errors

if TYPE_CHECKING:
    from docwarden.commands._context import AppContext


@click.command(
    cls=DocwardenCommand,
    examples="""\
  docwarden write notification.json --user alice --channel notifications
  docwarden write v2.yaml --old v1.yaml --role editor
  docwarden write v1.json --old v1.json --delete --admin
  docwarden --json write doc.json -d sync_definitions.py --admin""",
)
@click.argument("doc_path", metavar="DOC", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--old",
    "old_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Current revision of the document (JSON or YAML).",
)
@click.option("--delete", is_flag=True, help="Treat DOC as a deletion (sets _deleted).")
@principal_options
@definitions_option
@click.pass_obj
def write(
    app: AppContext,
    doc_path: Path,
    old_path: Path | None,
    delete: bool,
    user: str | None,
    roles: tuple[str, ...],
    channels: tuple[str, ...],
    admin: bool,
    definitions_source: str | None,
) -> None:
    """Validate and authorize writing DOC against a simulated host.

    Principals default to the [host] section of docwarden.toml.
    """
    from docwarden.infrastructure.documents import read_document
    from docwarden.services.host import UserContext

    host_config = app.settings.host
    acting_user = UserContext(
        name=user or host_config.name,
        roles=tuple(roles or host_config.roles),
        channels=tuple(channels or host_config.channels),
        admin=admin or host_config.admin,
    )

    with fatal_errors():
        doc = read_document(doc_path) or {}
        old_doc = read_document(old_path) if old_path is not None else None
        if delete:
            doc = {**doc, "_deleted": True}
        result = app.definitions_service(definitions_source).write(doc, old_doc, acting_user)
    app.emit(result)
