"""Rich/JSON output helpers.

The CLI renders a ServiceResult for humans (Rich text and tables) or for
machines (--json). Human output never wraps so that every violation stays
on one line.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from rich.markup import escape
from rich.table import Table

from docwarden.output.console import BufferedConsole

if TYPE_CHECKING:
    from rich.console import Console

    from docwarden.services.result import ServiceResult


class OutputSettings(BaseModel):
    """How a result should be rendered."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def _compact(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"))
    return str(value)


def _print_data(console: Console, data: dict[str, Any]) -> None:
    for key, value in data.items():
        console.print(f"  [dw.key]{escape(key)}:[/dw.key] {escape(_compact(value))}", soft_wrap=True)


def _print_types(console: Console, data: dict[str, Any]) -> None:
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("type", style="dw.type")
    table.add_column("filter")
    table.add_column("attachments")
    table.add_column("properties")
    for entry in data.get("types", []):
        properties = entry["properties"]
        table.add_row(
            escape(entry["name"]),
            entry["type_filter"],
            "yes" if entry["attachments"] else "no",
            escape(properties if isinstance(properties, str) else ", ".join(properties)),
        )
    console.print(table)


def _print_write(console: Console, data: dict[str, Any], *, verbose: bool) -> None:
    outcome = data.get("outcome", {})
    for key in ("doc_type", "operation", "channels", "expiry", "access_assignments"):
        value = outcome.get(key)
        if value not in (None, []):
            console.print(f"  [dw.key]{key}:[/dw.key] {escape(_compact(value))}", soft_wrap=True)
    if verbose and "host" in data:
        console.print(f"  [dw.key]host:[/dw.key] {escape(_compact(data['host']))}", soft_wrap=True)


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        settings: Output mode; human-readable and non-quiet by default.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)

    console = BufferedConsole()
    if result.ok:
        console.print(f"[dw.ok]OK[/dw.ok]: [dw.op]{result.op}[/dw.op]")
        if not settings.quiet and result.data:
            if result.op == "types":
                _print_types(console, result.data)
            elif result.op == "write":
                _print_write(console, result.data, verbose=settings.verbose)
            else:
                _print_data(console, result.data)
    else:
        message = result.error.message if result.error else "Unknown error"
        console.print(f"[dw.error]ERROR[/dw.error]: [dw.op]{result.op}[/dw.op]: {escape(message)}", soft_wrap=True)
        if not settings.quiet and result.error is not None:
            for reason in result.error.reasons:
                console.print(f"  - [dw.violation]{escape(reason)}[/dw.violation]", soft_wrap=True)
    return console.text()
