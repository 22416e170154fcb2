"""Durable record stores — where entity snapshots live between runs.

A record is ``(record_id, fields)`` with ``fields`` a flat ``str -> str``
mapping. Two media are provided:

- :class:`SqlRecordStore` — SQLite via SQLAlchemy Core, one transaction
  per record.
- :class:`JsonRecordStore` — one JSON file per record, written to a temp
  file and atomically swapped in.

INVARIANT: A failed write never corrupts a previously written record.
Both stores skip writes whose content is unchanged, so saving the same
state twice leaves the medium byte-identical.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.parse import quote, unquote

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from hostkit.infrastructure.database.engine import init_database
from hostkit.infrastructure.database.schema import records

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

    from hostkit.config.settings import HostSettings

logger = logging.getLogger(__name__)

Record = tuple[str, dict[str, str]]


class StorageIOError(Exception):
    """Reading or writing the durable medium failed."""

    def __init__(self, message: str, *, record_id: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id


class RecordStore(Protocol):
    """A durable medium for entity snapshots."""

    def write_record(self, record_id: str, fields: Mapping[str, str]) -> bool:
        """Persist *fields* under *record_id*. Returns False if unchanged."""
        ...

    def read_all_records(self) -> list[Record]:
        """Return every persisted record."""
        ...

    def delete_record(self, record_id: str) -> None:
        """Remove every field stored under *record_id*; a missing record is fine."""
        ...

    def close(self) -> None:
        """Release any held resources."""
        ...


def _check_fields(record_id: str, fields: Mapping[str, str]) -> dict[str, str]:
    if not record_id:
        msg = "Record id must not be empty"
        raise ValueError(msg)
    out: dict[str, str] = {}
    for key, value in fields.items():
        if not isinstance(key, str) or not isinstance(value, str):
            msg = f"Record {record_id!r} has a non-string field: {key!r}={value!r}"
            raise TypeError(msg)
        out[key] = value
    return out


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------


class SqlRecordStore:
    """Records stored as ``(record_id, field, value)`` rows."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @classmethod
    def open(cls, db_path: Path) -> SqlRecordStore:
        """Create (if needed) and open the database at *db_path*."""
        try:
            return cls(init_database(db_path))
        except (OSError, SQLAlchemyError) as exc:
            msg = f"Cannot open record database {db_path}: {exc}"
            raise StorageIOError(msg) from exc

    @property
    def engine(self) -> Engine:
        return self._engine

    def write_record(self, record_id: str, fields: Mapping[str, str]) -> bool:
        values = _check_fields(record_id, fields)
        try:
            with self._engine.begin() as conn:
                rows = conn.execute(
                    select(records.c.field, records.c.value).where(
                        records.c.record_id == record_id
                    )
                ).fetchall()
                if rows and {row.field: row.value for row in rows} == values:
                    return False
                conn.execute(delete(records).where(records.c.record_id == record_id))
                if values:
                    saved_at = datetime.now(UTC).isoformat()
                    conn.execute(
                        insert(records),
                        [
                            {
                                "record_id": record_id,
                                "field": key,
                                "value": value,
                                "saved_at": saved_at,
                            }
                            for key, value in sorted(values.items())
                        ],
                    )
        except SQLAlchemyError as exc:
            msg = f"Failed to write record {record_id!r}: {exc}"
            raise StorageIOError(msg, record_id=record_id) from exc
        return True

    def read_all_records(self) -> list[Record]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    select(records.c.record_id, records.c.field, records.c.value).order_by(
                        records.c.record_id, records.c.field
                    )
                ).fetchall()
        except SQLAlchemyError as exc:
            msg = f"Failed to read records: {exc}"
            raise StorageIOError(msg) from exc

        grouped: dict[str, dict[str, str]] = {}
        for row in rows:
            grouped.setdefault(row.record_id, {})[row.field] = row.value
        return list(grouped.items())

    def delete_record(self, record_id: str) -> None:
        """Remove a record entirely."""
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(records).where(records.c.record_id == record_id))
        except SQLAlchemyError as exc:
            msg = f"Failed to delete record {record_id!r}: {exc}"
            raise StorageIOError(msg, record_id=record_id) from exc

    def close(self) -> None:
        self._engine.dispose()


# ---------------------------------------------------------------------------
# JSON files
# ---------------------------------------------------------------------------


class JsonRecordStore:
    """Records stored as ``<directory>/<quoted id>.json``."""

    suffix = ".json"

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, record_id: str) -> Path:
        """Filesystem path for *record_id* (ids are percent-encoded)."""
        name = quote(record_id, safe="")
        if name.startswith("."):
            # Dotfiles are reserved for in-flight temp files.
            name = "%2E" + name[1:]
        return self._directory / f"{name}{self.suffix}"

    @staticmethod
    def _render(fields: Mapping[str, str]) -> str:
        return json.dumps(dict(fields), indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    def write_record(self, record_id: str, fields: Mapping[str, str]) -> bool:
        values = _check_fields(record_id, fields)
        path = self.path_for(record_id)
        rendered = self._render(values)
        try:
            if path.is_file() and path.read_bytes() == rendered.encode("utf-8"):
                return False
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory, prefix=".tmp-", suffix=self.suffix
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(rendered)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            msg = f"Failed to write record {record_id!r} to {path}: {exc}"
            raise StorageIOError(msg, record_id=record_id) from exc
        return True

    def read_all_records(self) -> list[Record]:
        if not self._directory.is_dir():
            return []
        result: list[Record] = []
        for path in sorted(self._directory.glob(f"*{self.suffix}")):
            if path.name.startswith("."):
                continue
            record_id = unquote(path.name[: -len(self.suffix)])
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except OSError as exc:
                msg = f"Failed to read record file {path}: {exc}"
                raise StorageIOError(msg, record_id=record_id) from exc
            except ValueError as exc:
                # JSONDecodeError and UnicodeDecodeError
                msg = f"Record file {path} is not valid JSON: {exc}"
                raise StorageIOError(msg, record_id=record_id) from exc
            if not isinstance(data, dict):
                msg = f"Record file {path} does not hold a JSON object"
                raise StorageIOError(msg, record_id=record_id)
            bad = sorted(k for k, v in data.items() if not isinstance(v, str))
            if bad:
                msg = f"Record file {path} has non-string values for: {', '.join(bad)}"
                raise StorageIOError(msg, record_id=record_id)
            result.append((record_id, data))
        return result

    def delete_record(self, record_id: str) -> None:
        """Remove a record entirely."""
        try:
            self.path_for(record_id).unlink(missing_ok=True)
        except OSError as exc:
            msg = f"Failed to delete record {record_id!r}: {exc}"
            raise StorageIOError(msg, record_id=record_id) from exc

    def close(self) -> None:
        """Nothing to release; files are closed after every operation."""


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def open_record_store(settings: HostSettings) -> SqlRecordStore | JsonRecordStore:
    """Open the record store selected by ``[storage] backend``."""
    location = settings.storage_location()
    if settings.storage.backend == "json":
        logger.debug("Using JSON record store at %s", location)
        return JsonRecordStore(location)
    logger.debug("Using SQLite record store at %s", location)
    return SqlRecordStore.open(location)
