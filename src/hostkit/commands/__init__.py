"""Subcommand modules for hostkit.

Provides register_commands() which uses deferred imports to keep
``hostkit --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    from hostkit.commands.color import color
    from hostkit.commands.config_cmd import config_cmd
    from hostkit.commands.records import records

    cli.add_command(color)
    cli.add_command(records)
    cli.add_command(config_cmd)
