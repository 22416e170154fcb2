"""Tests for the record table definition."""

from __future__ import annotations

from hostkit.infrastructure.database.schema import metadata, records


class TestRecordsTable:
    def test_registered_on_metadata(self) -> None:
        assert "records" in metadata.tables

    def test_composite_primary_key(self) -> None:
        assert [c.name for c in records.primary_key.columns] == ["record_id", "field"]

    def test_columns(self) -> None:
        assert set(records.c.keys()) == {"record_id", "field", "value", "saved_at"}
        assert records.c.value.nullable is False
