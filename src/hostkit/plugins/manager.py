"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery (``.hostkit/plugins/`` by default).
Capabilities: host palette colors, commands, storage notifications.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from types import ModuleType

import pluggy

from hostkit.plugins.hookspecs import HostkitHookSpec

PROJECT_NAME = "hostkit"
ENTRY_POINT_GROUP = "hostkit.plugins"

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(HostkitHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Registers every plugin-provided host color once discovery is done.
        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        self._register_host_colors()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. the embedding plugin)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        if self._loaded:
            self._register_plugin_host_colors(plugin, resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def collect_commands(
        self,
    ) -> list[tuple[str, dict[str, Callable[[Sequence[str]], object]]]]:
        """Return ``(plugin_name, {command: handler})`` for every plugin.

        Plugins that raise or return something other than a dict are
        skipped with a warning.
        """
        collected: list[tuple[str, dict[str, Callable[[Sequence[str]], object]]]] = []
        for plugin in self._pm.get_plugins():
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            mapping = self._call_setup_hook(plugin, plugin_name, "register_commands")
            if mapping:
                collected.append((plugin_name, mapping))
        return collected

    # ------------------------------------------------------------------
    # Local directory discovery
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Register plugin classes found in ``*.py`` files under *local_dir*.

        Files starting with ``_`` are skipped. A file that fails to import,
        or a class that fails to instantiate, is logged and skipped.
        """
        if not local_dir.is_dir():
            return
        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module = self._import_local_file(py_file)
            if module is None:
                continue
            for cls in self._plugin_classes(module):
                try:
                    self.register_plugin(cls(), name=module.__name__)
                except Exception:
                    logger.warning(
                        "Could not register %s from %s", cls.__name__, py_file, exc_info=True
                    )
                    continue
                logger.debug("Loaded local plugin %s from %s", cls.__name__, py_file)

    @staticmethod
    def _import_local_file(py_file: Path) -> ModuleType | None:
        module_name = f"hostkit_local_plugin_{py_file.stem}"
        spec = importlib.util.spec_from_file_location(module_name, py_file)
        if spec is None or spec.loader is None:
            logger.warning("Could not create module spec for %s", py_file)
            return None
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
            sys.modules.pop(module_name, None)
            return None
        return module

    @classmethod
    def _plugin_classes(cls, module: ModuleType) -> Iterator[type]:
        """Classes defined in *module* (not imported into it) with hook impls."""
        for _name, obj in inspect.getmembers(module, inspect.isclass):
            if obj.__module__ == module.__name__ and cls._has_hook_impls(obj):
                yield obj

    def _normalize_plugin_instances(self) -> None:
        """Swap entry-point plugins registered as classes for instances.

        Hooks looked up on a class are unbound functions and would fail
        when called, so each such class is instantiated and re-registered
        under the same name.
        """
        for plugin in list(self._pm.get_plugins()):
            if not (inspect.isclass(plugin) and self._has_hook_impls(plugin)):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                self._pm.register(plugin(), name=name)
            except Exception:
                logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)
                continue
            logger.debug("Instantiated entry-point plugin: %s", name)

    # ------------------------------------------------------------------
    # Setup hooks
    # ------------------------------------------------------------------

    def _register_host_colors(self) -> None:
        for plugin in self._pm.get_plugins():
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            self._register_plugin_host_colors(plugin, plugin_name)

    def _register_plugin_host_colors(self, plugin: object, plugin_name: str) -> None:
        """Add the host palette entries exposed by a single plugin."""
        from hostkit.domain.colors import register_host_color

        colors = self._call_setup_hook(plugin, plugin_name, "register_host_colors")
        for color_name, rgb in (colors or {}).items():
            try:
                register_host_color(color_name, rgb)
            except (TypeError, ValueError):
                logger.warning(
                    "Skipping host color %r from plugin %s",
                    color_name,
                    plugin_name,
                    exc_info=True,
                )

    @staticmethod
    def _call_setup_hook(plugin: object, plugin_name: str, hook_name: str) -> dict | None:
        """Call one plugin's setup hook directly; failures become warnings."""
        hook = getattr(plugin, hook_name, None)
        if hook is None:
            return None
        try:
            result = hook()
        except Exception:
            logger.warning("Plugin %s failed in %s", plugin_name, hook_name, exc_info=True)
            return None
        if result is not None and not isinstance(result, dict):
            logger.warning("Plugin %s returned non-dict from %s", plugin_name, hook_name)
            return None
        return result

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Whether any public method of *cls* is marked with ``@hookimpl``."""
        marker = f"{PROJECT_NAME}_impl"
        for name in dir(cls):
            if name.startswith("_"):
                continue
            attr = getattr(cls, name, None)
            if callable(attr) and getattr(attr, marker, None) is not None:
                return True
        return False
