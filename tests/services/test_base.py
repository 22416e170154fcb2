"""Tests for BaseService hook dispatch."""

from __future__ import annotations

from hostkit.plugins.manager import PluginManager, hookimpl
from hostkit.services.base import BaseService


class _Recorder:
    def __init__(self) -> None:
        self.restored: list[list[str]] = []

    @hookimpl
    def post_load(self, restored: list[str]) -> None:
        self.restored.append(restored)


class TestDispatchEvent:
    def test_no_plugin_manager_is_noop(self) -> None:
        warnings: list[str] = []
        BaseService()._dispatch_event("post_load", {"restored": []}, warnings)
        assert warnings == []

    def test_calls_registered_hook(self) -> None:
        pm = PluginManager()
        recorder = _Recorder()
        pm.register_plugin(recorder)
        service = BaseService(pm)
        assert service.plugin_manager is pm
        service._dispatch_event("post_load", {"restored": ["a"]}, [])
        assert recorder.restored == [["a"]]

    def test_unknown_hook_ignored(self) -> None:
        warnings: list[str] = []
        BaseService(PluginManager())._dispatch_event("no_such_hook", {}, warnings)
        assert warnings == []
