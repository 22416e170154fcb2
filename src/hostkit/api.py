"""HostKit — the one object a plugin holds on to.

Built once at plugin startup, it exposes every hostkit subsystem as a
plain attribute: ``commands``, ``options``, ``storage``, ``toolbox``,
``locale`` and ``plugins``. It has no logic of its own beyond wiring
them together and running the start/shutdown sequence.

Usage::

    kit = HostKit.create(my_plugin, entity_factory=Faction.blank, timer=host_timer)
    kit.start()          # load plugins, restore state, schedule autosave
    ...
    kit.shutdown()       # stop autosave, final save, close storage
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from hostkit.config.settings import HostSettings
from hostkit.infrastructure.records import open_record_store
from hostkit.infrastructure.timer import ThreadTimer
from hostkit.plugins.manager import PluginManager
from hostkit.services.autosave import AutosaveScheduler
from hostkit.services.commands import CommandService
from hostkit.services.locale import LocaleService
from hostkit.services.options import OptionsService
from hostkit.services.storage import StorageService
from hostkit.services.toolbox import Toolbox

if TYPE_CHECKING:
    from collections.abc import Callable

    from hostkit.domain.persistable import Persistable
    from hostkit.infrastructure.records import RecordStore
    from hostkit.infrastructure.timer import HostTimer, ScheduledTask
    from hostkit.services.result import ServiceResult

logger = logging.getLogger(__name__)


@dataclass
class HostKit:
    """Composition of the hostkit services for one embedding plugin."""

    plugin: Any
    settings: HostSettings
    commands: CommandService
    options: OptionsService
    storage: StorageService
    toolbox: Toolbox
    locale: LocaleService
    plugins: PluginManager
    autosave_task: ScheduledTask | None = field(default=None, repr=False)

    @classmethod
    def create(
        cls,
        plugin: Any,
        *,
        entity_factory: Callable[[str], Persistable] | None = None,
        settings: HostSettings | None = None,
        timer: HostTimer | None = None,
        store: RecordStore | None = None,
        plugin_manager: PluginManager | None = None,
    ) -> HostKit:
        """Build every subsystem from *settings* (loaded from disk if omitted).

        Args:
            plugin: The embedding plugin instance, handed back via ``kit.plugin``.
            entity_factory: Blank-entity builder used when loading records.
            settings: Explicit settings; defaults to ``HostSettings.load()``.
            timer: Host timer for autosave; defaults to a :class:`ThreadTimer`.
            store: Record store; defaults to the configured backend.
            plugin_manager: Pre-built manager; a fresh one is created otherwise.
        """
        settings = settings or HostSettings.load()
        plugins = plugin_manager or PluginManager()
        storage = StorageService(
            store or open_record_store(settings),
            entity_factory,
            plugin_manager=plugins,
        )
        scheduler = AutosaveScheduler.from_config(timer or ThreadTimer(), settings.autosave)
        return cls(
            plugin=plugin,
            settings=settings,
            commands=CommandService(),
            options=OptionsService(settings.options_file()),
            storage=storage,
            toolbox=Toolbox(scheduler, restricted_colors=settings.colors.restricted),
            locale=LocaleService(
                settings.locale_directory(),
                settings.locale.language,
                settings.locale.default_language,
            ),
            plugins=plugins,
        )

    @property
    def debug(self) -> bool:
        return self.settings.debug

    def start(self) -> ServiceResult:
        """Load plugins, restore persisted state and schedule autosave.

        Returns the result of the initial ``storage.load()``. Autosave is
        only scheduled when that load succeeded, so a bad record set is
        never overwritten by the first tick.
        """
        if self.settings.plugins.enabled:
            names = self.plugins.discover_and_load(local_dir=self.settings.plugins_directory())
            logger.debug("Plugins loaded: %s", ", ".join(names) or "(none)")
            self._register_plugin_commands()

        result = self.storage.load()
        if not result.ok:
            logger.warning(
                "Initial load failed, autosave not scheduled: %s",
                result.error.message if result.error else "unknown error",
            )
            return result

        if self.settings.autosave.enabled and self.autosave_task is None:
            self.autosave_task = self.toolbox.schedule_autosave(self.storage)
        return result

    def _register_plugin_commands(self) -> None:
        for plugin_name, mapping in self.plugins.collect_commands():
            for command_name, handler in mapping.items():
                try:
                    self.commands.register(command_name, handler, source=plugin_name)
                except ValueError:
                    logger.warning(
                        "Skipping command %r from plugin %s",
                        command_name,
                        plugin_name,
                        exc_info=True,
                    )

    def shutdown(self) -> ServiceResult:
        """Stop autosave, save everything one last time and close storage."""
        if self.autosave_task is not None:
            self.autosave_task.cancel()
            self.autosave_task = None
        result = self.storage.save()
        if not result.ok:
            logger.warning(
                "Final save failed: %s",
                result.error.message if result.error else "unknown error",
            )
        self.storage.close()
        return result
