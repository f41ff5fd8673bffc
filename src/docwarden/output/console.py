"""Rich console for docwarden output.

Output is rendered into memory and handed back as a string, so formatting
stays a pure ``format_result() -> str`` function and the CLI alone decides
between stdout and stderr. Color follows Rich's own terminal detection,
which is off for the in-memory buffer unless ``FORCE_COLOR`` is set.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DOCWARDEN_THEME = Theme(
    {
        "dw.ok": "bold green",
        "dw.error": "bold red",
        "dw.op": "bold cyan",
        "dw.key": "dim",
        "dw.type": "bold blue",
        "dw.violation": "red",
    }
)

# Wide enough that a types table never wraps a property list.
DEFAULT_WIDTH = 120


class BufferedConsole(Console):
    """A themed Console writing to an in-memory buffer."""

    def __init__(self, *, width: int = DEFAULT_WIDTH) -> None:
        super().__init__(file=StringIO(), theme=DOCWARDEN_THEME, highlight=False, width=width)

    def text(self) -> str:
        """Everything printed so far, without the trailing newline."""
        assert isinstance(self.file, StringIO)
        return self.file.getvalue().rstrip("\n")
