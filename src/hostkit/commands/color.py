"""color — resolve color names to ``#rrggbb`` or list a color table."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostkit.commands._base import HostCommand

if TYPE_CHECKING:
    from hostkit.commands._context import AppContext


@click.command(
    cls=HostCommand,
    examples="""\
  hostkit color red
  hostkit color "dark blue"
  hostkit color rebeccapurple --restricted
  hostkit color --list presets
  hostkit --json color --list host""",
)
@click.argument("name", required=False)
@click.option(
    "--restricted",
    is_flag=True,
    help="Skip the host palette (presets and general table only).",
)
@click.option(
    "--list",
    "table",
    type=click.Choice(["presets", "general", "host"]),
    default=None,
    help="List every color in a table instead of resolving a name.",
)
@click.pass_obj
def color(app: AppContext, name: str | None, restricted: bool, table: str | None) -> None:
    """Resolve a color NAME to its hex value."""
    from hostkit.domain.colors import list_colors
    from hostkit.services.result import ServiceResult

    if table is not None:
        items = [{"name": n, "hex": h} for n, h in list_colors(table).items()]
        app.emit(
            ServiceResult(
                ok=True,
                op="list_colors",
                data={"table": table, "count": len(items), "items": items},
            )
        )
        return

    if not name:
        raise click.UsageError("Provide a color NAME or --list TABLE.")

    from hostkit.services.toolbox import Toolbox

    toolbox = Toolbox(restricted_colors=app.settings.colors.restricted)
    app.emit(toolbox.describe_color(name, restricted=restricted or None))
