"""BaseService — shared foundation for hostkit services.

Services may receive the plugin manager so they can announce lifecycle
events to downstream plugins. Announcing is best-effort.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hostkit.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes that dispatch plugin hooks.

    Usage::

        class StorageService(BaseService):
            def save(self) -> ServiceResult:
                ...
                self._dispatch_event("post_save", {...}, warnings)
    """

    def __init__(self, plugin_manager: PluginManager | None = None) -> None:
        self._plugins = plugin_manager

    @property
    def plugin_manager(self) -> PluginManager | None:
        return self._plugins

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Call a plugin hook. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        hook_fn = getattr(self._plugins.hook, hook_name, None)
        if hook_fn is None:
            return
        try:
            hook_fn(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Plugin hook {hook_name} failed")
