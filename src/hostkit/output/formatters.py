"""Rich/JSON output helpers.

The CLI renders ServiceResult for humans (Rich output) or machines
(--json). The formatter layer adapts ServiceResult to the requested mode.
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from hostkit.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from hostkit.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """How a result should be rendered."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return _render_quiet(result)

    console = create_console()
    if result.ok:
        _render_ok(result, console)
    else:
        _render_error(result, console, verbose=settings.verbose)
    return get_output(console).rstrip("\n")


def _render_quiet(result: ServiceResult) -> str:
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} - {msg}"
    if "hex" in result.data:
        return str(result.data["hex"])
    return f"OK: {result.op}"


def _scalar(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return _json.dumps(value, separators=(",", ":"))
    return str(value)


def _render_ok(result: ServiceResult, console: Console) -> None:
    console.print(Text("OK", style="hk.ok"), Text(f"  {result.op}", style="hk.op"))
    items = result.data.get("items")
    if isinstance(items, list) and items and isinstance(items[0], dict):
        table = Table(show_header=True, header_style="bold")
        columns = list(items[0].keys())
        for column in columns:
            table.add_column(column)
        for item in items:
            table.add_row(*(_scalar(item.get(c, "")) for c in columns))
        console.print(table)
        return
    for key, value in result.data.items():
        console.print(Text(f"  {key}: ", style="hk.key"), Text(_scalar(value)), sep="")


def _render_error(result: ServiceResult, console: Console, *, verbose: bool) -> None:
    message = result.error.message if result.error else "Unknown error"
    code = result.error.code if result.error else "ERROR"
    console.print(
        Text("ERROR", style="hk.error"),
        Text(f"  {result.op}", style="hk.op"),
        Text(f"  [{code}] {message}"),
    )
    if verbose and result.error and result.error.detail:
        for key, value in result.error.detail.items():
            console.print(Text(f"  {key}: ", style="hk.key"), Text(_scalar(value)), sep="")
