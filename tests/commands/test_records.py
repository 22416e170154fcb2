"""Tests for the records CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from hostkit.cli import cli
from hostkit.infrastructure.records import JsonRecordStore, SqlRecordStore


def _seed_sqlite(root: Path) -> None:
    store = SqlRecordStore.open(root / ".hostkit" / "hostkit.db")
    try:
        store.write_record("red", {"name": "Red", "power": "5", "members": "alice"})
        store.write_record("blue", {"name": "Blue", "power": "2", "members": ""})
    finally:
        store.close()


@pytest.mark.usefixtures("_isolated_root")
class TestRecordsList:
    def test_empty(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "records", "list"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["data"]["count"] == 0
        assert data["data"]["backend"] == "sqlite"

    def test_lists_ids(self, cli_runner: CliRunner, data_root: Path) -> None:
        _seed_sqlite(data_root)
        result = cli_runner.invoke(cli, ["--json", "records", "list"])
        assert result.exit_code == 0
        items = json.loads(result.stdout)["data"]["items"]
        assert items == [{"id": "blue", "fields": 3}, {"id": "red", "fields": 3}]

    def test_json_backend_read_error(self, cli_runner: CliRunner, data_root: Path) -> None:
        (data_root / "hostkit.toml").write_text('[storage]\nbackend = "json"\n')
        records_dir = data_root / ".hostkit" / "records"
        records_dir.mkdir(parents=True)
        (records_dir / "bad.json").write_text("{oops", encoding="utf-8")
        result = cli_runner.invoke(cli, ["--json", "records", "list"])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "IO_FAILURE"


@pytest.mark.usefixtures("_isolated_root")
class TestRecordsShow:
    def test_show_existing(self, cli_runner: CliRunner, data_root: Path) -> None:
        _seed_sqlite(data_root)
        result = cli_runner.invoke(cli, ["--json", "records", "show", "red"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["data"]["fields"] == {"members": "alice", "name": "Red", "power": "5"}

    def test_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "records", "show", "ghost"])
        assert result.exit_code == 1
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "NOT_FOUND"
        assert payload["error"]["detail"] == {"id": "ghost"}

    def test_show_json_backend(self, cli_runner: CliRunner, data_root: Path) -> None:
        (data_root / "hostkit.toml").write_text('[storage]\nbackend = "json"\n')
        JsonRecordStore(data_root / ".hostkit" / "records").write_record(
            "faction/red", {"name": "Red"}
        )
        result = cli_runner.invoke(cli, ["-q", "records", "show", "faction/red"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "OK: show_record"
