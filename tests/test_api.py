"""Tests for HostKit — wiring, start and shutdown."""

from __future__ import annotations

from pathlib import Path

import pytest

from hostkit.api import HostKit
from hostkit.config.settings import HostSettings
from hostkit.infrastructure.records import JsonRecordStore, SqlRecordStore
from hostkit.infrastructure.timer import TickTimer
from hostkit.services.result import ErrorCode
from tests.conftest import Faction, make_faction

HOUR = 3600

_PLUGIN_SRC = """\
from hostkit.plugins import hookimpl


class Greeter:
    @hookimpl
    def register_commands(self):
        return {"greet": lambda args: "hello " + " ".join(args)}

    @hookimpl
    def register_host_colors(self):
        return {"greeter_gold": (250, 200, 10)}
"""


class _Plugin:
    name = "factions"


@pytest.fixture
def timer() -> TickTimer:
    return TickTimer()


def _kit(settings: HostSettings, timer: TickTimer) -> HostKit:
    return HostKit.create(_Plugin(), entity_factory=Faction.blank, settings=settings, timer=timer)


class TestCreate:
    def test_subsystems_wired(self, settings: HostSettings, timer: TickTimer) -> None:
        kit = _kit(settings, timer)
        try:
            assert isinstance(kit.plugin, _Plugin)
            assert isinstance(kit.storage.store, SqlRecordStore)
            assert kit.options.path == settings.root / "config.yml"
            assert kit.locale.language == "en_us"
            assert kit.toolbox.scheduler is not None
            assert kit.storage.plugin_manager is kit.plugins
            assert kit.debug is False
        finally:
            kit.storage.close()

    def test_json_backend(self, data_root: Path, timer: TickTimer) -> None:
        settings = HostSettings.load(root=data_root, storage={"backend": "json"})
        kit = _kit(settings, timer)
        assert isinstance(kit.storage.store, JsonRecordStore)

    def test_explicit_store(self, settings: HostSettings, timer: TickTimer, tmp_path: Path) -> None:
        store = JsonRecordStore(tmp_path / "custom")
        kit = HostKit.create(_Plugin(), settings=settings, timer=timer, store=store)
        assert kit.storage.store is store

    def test_restricted_colors_from_settings(self, data_root: Path, timer: TickTimer) -> None:
        settings = HostSettings.load(root=data_root, colors={"restricted": True})
        kit = _kit(settings, timer)
        try:
            assert kit.toolbox.restricted_colors is True
        finally:
            kit.storage.close()


class TestLifecycle:
    def test_start_restores_and_schedules_autosave(
        self, settings: HostSettings, timer: TickTimer
    ) -> None:
        first = _kit(settings, timer)
        first.start()
        first.storage.add("red", make_faction("Red", 5, "alice"))
        assert first.shutdown().ok

        second = _kit(settings, timer)
        result = second.start()
        try:
            assert result.ok
            assert result.data["restored"] == ["red"]
            assert second.storage.get("red") == make_faction("Red", 5, "alice")
            assert second.autosave_task is not None
        finally:
            second.shutdown()

    def test_autosave_runs_hourly(self, settings: HostSettings, timer: TickTimer) -> None:
        kit = _kit(settings, timer)
        kit.start()
        red = make_faction("Red", 1)
        kit.storage.add("red", red)
        timer.advance(HOUR)
        assert kit.storage.store.read_all_records() == [("red", dict(red.snapshot()))]

        with kit.storage.mutating():
            red.power = 2
        timer.advance(HOUR - 1)
        assert kit.storage.store.read_all_records()[0][1]["power"] == "1"
        timer.advance(1)
        assert kit.storage.store.read_all_records()[0][1]["power"] == "2"
        kit.shutdown()

    def test_shutdown_cancels_autosave(self, settings: HostSettings, timer: TickTimer) -> None:
        kit = _kit(settings, timer)
        kit.start()
        task = kit.autosave_task
        kit.shutdown()
        assert task.cancelled
        assert kit.autosave_task is None
        assert timer.pending == []

    def test_autosave_disabled(self, data_root: Path, timer: TickTimer) -> None:
        settings = HostSettings.load(root=data_root, autosave={"enabled": False})
        kit = _kit(settings, timer)
        kit.start()
        assert kit.autosave_task is None
        kit.shutdown()

    def test_failed_load_skips_autosave(self, settings: HostSettings, timer: TickTimer) -> None:
        seed = _kit(settings, timer)
        seed.storage.store.write_record("broken", {"name": "only a name"})
        seed.storage.close()

        kit = _kit(settings, timer)
        result = kit.start()
        assert not result.ok
        assert result.error.code == ErrorCode.RESTORE_MISMATCH
        assert kit.autosave_task is None
        assert timer.pending == []
        kit.storage.close()

    def test_start_loads_local_plugins(self, settings: HostSettings, timer: TickTimer) -> None:
        plugin_dir = settings.plugins_directory()
        plugin_dir.mkdir(parents=True)
        (plugin_dir / "greeter.py").write_text(_PLUGIN_SRC, encoding="utf-8")

        kit = _kit(settings, timer)
        kit.start()
        try:
            dispatched = kit.commands.dispatch("greet", ["steve"])
            assert dispatched.ok
            assert dispatched.data["output"] == "hello steve"
            assert kit.commands.lookup("greet").source == "hostkit_local_plugin_greeter"
            assert kit.toolbox.resolve_color("greeter gold") == "#fac80a"
        finally:
            kit.shutdown()

    def test_plugins_disabled(self, data_root: Path, timer: TickTimer) -> None:
        settings = HostSettings.load(root=data_root, plugins={"enabled": False})
        plugin_dir = settings.plugins_directory()
        plugin_dir.mkdir(parents=True)
        (plugin_dir / "greeter.py").write_text(_PLUGIN_SRC, encoding="utf-8")

        kit = _kit(settings, timer)
        kit.start()
        assert kit.commands.names() == []
        kit.shutdown()
