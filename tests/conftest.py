"""Shared pytest fixtures and test helpers for hostkit tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from click.testing import CliRunner

from hostkit.config.settings import HostSettings
from hostkit.domain.colors import reset_host_colors
from hostkit.domain.persistable import parse_int_field, require_fields
from hostkit.infrastructure.records import JsonRecordStore, SqlRecordStore


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _clean_process_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Reset the host palette and logger levels that tests may touch."""
    monkeypatch.delenv("HOSTKIT_CONFIG", raising=False)
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    hostkit_level = logging.getLogger("hostkit").level
    reset_host_colors()
    yield
    reset_host_colors()
    root.handlers = original_handlers
    root.setLevel(original_level)
    logging.getLogger("hostkit").setLevel(hostkit_level)


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Empty data directory used as the settings root."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def settings(data_root: Path) -> HostSettings:
    return HostSettings.load(root=data_root)


@pytest.fixture
def _isolated_root(data_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp data root so the CLI reads and writes there.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(data_root)


@pytest.fixture
def sql_store(tmp_path: Path) -> Generator[SqlRecordStore]:
    store = SqlRecordStore.open(tmp_path / "records.db")
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def json_store(tmp_path: Path) -> JsonRecordStore:
    return JsonRecordStore(tmp_path / "records")


@pytest.fixture(params=["sql", "json"])
def record_store(request: pytest.FixtureRequest, tmp_path: Path) -> Generator[object]:
    """Each record store backend in turn."""
    if request.param == "sql":
        store = SqlRecordStore.open(tmp_path / "records.db")
    else:
        store = JsonRecordStore(tmp_path / "records")
    try:
        yield store
    finally:
        store.close()


# ---------------------------------------------------------------------------
# Sample entity used across storage tests
# ---------------------------------------------------------------------------


@dataclass
class Faction:
    """A small persistable entity: name, power level and member list."""

    name: str = ""
    power: int = 0
    members: list[str] = field(default_factory=list)

    def snapshot(self) -> Mapping[str, str]:
        return {
            "name": self.name,
            "power": str(self.power),
            "members": ",".join(self.members),
        }

    def restore(self, data: Mapping[str, str]) -> None:
        require_fields(data, "name", "power", "members")
        power = parse_int_field(data, "power")
        self.name = data["name"]
        self.power = power
        self.members = [m for m in data["members"].split(",") if m]

    @classmethod
    def blank(cls, record_id: str) -> Faction:
        return cls()


class BrokenSnapshot:
    """Entity whose snapshot always raises."""

    def snapshot(self) -> Mapping[str, str]:
        msg = "snapshot exploded"
        raise RuntimeError(msg)

    def restore(self, data: Mapping[str, str]) -> None:
        pass


def make_faction(name: str, power: int = 10, *members: str) -> Faction:
    return Faction(name=name, power=power, members=list(members))
