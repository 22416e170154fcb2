"""Pluggy hook specifications for hostkit.

Two setup-time hooks let plugins contribute host palette colors and
commands; two notification hooks report storage activity.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pluggy

hookspec = pluggy.HookspecMarker("hostkit")


class HostkitHookSpec:
    """Hook specifications for the hostkit plugin system."""

    @hookspec
    def register_host_colors(self) -> dict[str, tuple[int, int, int]] | None:
        """Return name -> (r, g, b) entries to add to the host palette."""

    @hookspec
    def register_commands(self) -> dict[str, Callable[[Sequence[str]], object]] | None:
        """Return command name -> handler mappings for the CommandService."""

    @hookspec
    def post_save(self, saved: list[str], failed: list[str]) -> None:
        """Called after a StorageService save (including autosaves)."""

    @hookspec
    def post_load(self, restored: list[str]) -> None:
        """Called after a StorageService load succeeds."""
