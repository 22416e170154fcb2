"""config — show the effective settings after TOML, env and flags merge."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostkit.commands._base import HostCommand

if TYPE_CHECKING:
    from hostkit.commands._context import AppContext


@click.command(
    "config",
    cls=HostCommand,
    examples="""\
  hostkit config
  hostkit --json config
  HOSTKIT_STORAGE__BACKEND=json hostkit config""",
)
@click.pass_obj
def config_cmd(app: AppContext) -> None:
    """Show the effective configuration."""
    from hostkit.services.result import ServiceResult

    settings = app.settings
    app.emit(
        ServiceResult(
            ok=True,
            op="show_config",
            data={
                "root": str(settings.root),
                "config_path": str(settings.config_path) if settings.config_path else None,
                "debug": settings.debug,
                "storage": settings.storage.model_dump(),
                "storage_location": str(settings.storage_location()),
                "autosave": settings.autosave.model_dump(),
                "colors": settings.colors.model_dump(),
                "locale": settings.locale.model_dump(),
                "plugins": settings.plugins.model_dump(),
                "options": settings.options.model_dump(),
            },
        )
    )
