"""Rich console used by the human-readable formatter.

Everything renders into an in-memory buffer so ``format_result`` can
return a plain string; rich drops the color codes when stdout is not a
terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEFAULT_WIDTH = 120

HOSTKIT_THEME = Theme(
    {
        "hk.ok": "bold green",
        "hk.error": "bold red",
        "hk.warning": "bold yellow",
        "hk.op": "bold cyan",
        "hk.key": "dim",
        "hk.id": "bold blue",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    buffer = StringIO()
    return Console(
        file=buffer,
        theme=HOSTKIT_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    """Text written to a console built by :func:`create_console`."""
    buffer = console.file
    if not isinstance(buffer, StringIO):
        msg = "console does not render into a buffer"
        raise TypeError(msg)
    return buffer.getvalue()
