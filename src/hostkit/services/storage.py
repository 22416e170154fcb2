"""StorageService — bulk save/load of a collection of Persistables.

The service owns a keyed collection ``record_id -> Persistable`` and a
:class:`~hostkit.infrastructure.records.RecordStore`. It is generic over
the persistence contract and never inspects concrete entity classes.

INVARIANT: ``save()`` and ``load()`` never raise. Failures are returned as
a ServiceResult so a timer callback driving autosave can never abort the
host's tick loop.

Concurrency: domain code mutates entity fields inside :meth:`mutating`
(shared lock). ``save()`` takes the exclusive lock only to copy every
snapshot out, then writes with the lock released. Lookups (``get``,
``ids``, ``in``) may be nested inside :meth:`mutating`; ``add``, ``remove``,
``save`` and ``load`` may not. ``snapshot()`` and ``restore()`` must not
call back into the service.

Removing an entity also deletes its stored record on the next ``save()``,
so a later ``load()`` does not bring it back.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from contextlib import contextmanager
from typing import TYPE_CHECKING

from hostkit.domain.persistable import Persistable, RestoreMismatch
from hostkit.infrastructure.locking import LockUpgradeError, SnapshotLock
from hostkit.infrastructure.records import StorageIOError
from hostkit.services._helpers import elapsed_ms, now_iso
from hostkit.services.base import BaseService
from hostkit.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from hostkit.infrastructure.records import RecordStore
    from hostkit.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class StorageService(BaseService):
    """Orchestrates persistence of every entity it owns.

    Args:
        store: Durable medium the records are written to and read from.
        entity_factory: Builds a blank entity for a record id at load time;
            the persisted mapping is then applied with ``restore()``.
        plugin_manager: Optional; receives ``post_save`` / ``post_load``.
    """

    def __init__(
        self,
        store: RecordStore,
        entity_factory: Callable[[str], Persistable] | None = None,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        super().__init__(plugin_manager)
        self._store = store
        self._factory = entity_factory
        self._entities: dict[str, Persistable] = {}
        self._removed: set[str] = set()
        self._lock = SnapshotLock()

    @property
    def store(self) -> RecordStore:
        return self._store

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def add(self, record_id: str, entity: Persistable) -> None:
        """Take ownership of *entity* under *record_id* (replacing any prior)."""
        if not record_id:
            msg = "Record id must not be empty"
            raise ValueError(msg)
        if not isinstance(entity, Persistable):
            msg = f"{type(entity).__name__} does not implement snapshot()/restore()"
            raise TypeError(msg)
        with self._lock.exclusive():
            self._entities[record_id] = entity
            self._removed.discard(record_id)

    def remove(self, record_id: str) -> Persistable | None:
        """Drop an entity; its stored record is deleted on the next save."""
        with self._lock.exclusive():
            self._removed.add(record_id)
            return self._entities.pop(record_id, None)

    def get(self, record_id: str) -> Persistable | None:
        with self._lock.shared():
            return self._entities.get(record_id)

    def ids(self) -> list[str]:
        """Sorted ids of every owned entity."""
        with self._lock.shared():
            return sorted(self._entities)

    def pending_removals(self) -> list[str]:
        """Ids whose stored records will be deleted by the next save."""
        with self._lock.shared():
            return sorted(self._removed)

    def __len__(self) -> int:
        with self._lock.shared():
            return len(self._entities)

    def __contains__(self, record_id: object) -> bool:
        with self._lock.shared():
            return record_id in self._entities

    @contextmanager
    def mutating(self) -> Iterator[None]:
        """Hold the shared lock while changing entity fields.

        Guarantees ``save()`` never copies a half-applied mutation.
        """
        with self._lock.shared():
            yield

    @staticmethod
    def _lock_held(op: str) -> ServiceResult:
        logger.warning("%s() called while holding the mutation lock", op)
        return ServiceResult.failure(
            op,
            ErrorCode.LOCK_HELD,
            f"{op}() cannot run inside mutating()",
        )

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self) -> ServiceResult:
        """Snapshot every entity, then write each record to the store.

        Records of removed entities are deleted in the same pass. One
        failing entity (snapshot, write or delete) does not stop the
        others; it is listed under ``failed`` and the result is not ok.
        """
        op = "save"
        started = time.perf_counter()
        warnings: list[str] = []
        failures: dict[str, str] = {}
        snapshot_failed = False

        try:
            with self._lock.exclusive():
                snapshots: dict[str, dict[str, str]] = {}
                for record_id, entity in sorted(self._entities.items()):
                    try:
                        snapshots[record_id] = dict(entity.snapshot())
                    except Exception as exc:
                        logger.warning("Snapshot of %s failed: %s", record_id, exc)
                        failures[record_id] = f"snapshot failed: {exc}"
                        snapshot_failed = True
                removals = sorted(self._removed)
                self._removed.clear()
        except LockUpgradeError:
            return self._lock_held(op)

        saved: list[str] = []
        unchanged: list[str] = []
        for record_id, fields in snapshots.items():
            try:
                written = self._store.write_record(record_id, fields)
            except StorageIOError as exc:
                logger.warning("Write of %s failed: %s", record_id, exc)
                failures[record_id] = str(exc)
                continue
            except (TypeError, ValueError) as exc:
                logger.warning("Snapshot of %s is not a str->str mapping: %s", record_id, exc)
                failures[record_id] = str(exc)
                snapshot_failed = True
                continue
            (saved if written else unchanged).append(record_id)

        deleted = self._delete_removed(removals, failures)

        failed = sorted(failures)
        self._dispatch_event("post_save", {"saved": saved, "failed": failed}, warnings)

        data = {
            "saved": saved,
            "unchanged": unchanged,
            "deleted": deleted,
            "failed": failed,
            "count": len(saved) + len(unchanged),
        }
        meta = {"duration_ms": elapsed_ms(started), "completed_at": now_iso()}

        if failures:
            code = ErrorCode.SNAPSHOT_FAILED if snapshot_failed else ErrorCode.IO_FAILURE
            logger.warning("Save finished with %d failed record(s)", len(failed))
            return ServiceResult.failure(
                op,
                code,
                f"{len(failed)} record(s) failed to save",
                detail={"failures": failures},
                data=data,
                warnings=warnings,
                meta=meta,
            )

        logger.debug(
            "Saved %d record(s), %d unchanged, %d deleted",
            len(saved),
            len(unchanged),
            len(deleted),
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings, meta=meta)

    def _delete_removed(self, removals: list[str], failures: dict[str, str]) -> list[str]:
        """Delete stored records of removed entities; failures are retried next save."""
        deleted: list[str] = []
        for record_id in removals:
            try:
                self._store.delete_record(record_id)
            except StorageIOError as exc:
                logger.warning("Delete of %s failed: %s", record_id, exc)
                failures[record_id] = str(exc)
                with self._lock.exclusive():
                    if record_id not in self._entities:
                        self._removed.add(record_id)
                continue
            deleted.append(record_id)
        return deleted

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> ServiceResult:
        """Restore every persisted record into a live entity.

        All records are restored into fresh entities first. If any record
        is duplicated or does not fit its entity, nothing is applied and
        the result reports ``RESTORE_MISMATCH``. On success the restored
        entities replace same-id entities in the collection; entities
        without a stored record are left as they are. Records of entities
        removed since the last save are skipped.
        """
        op = "load"
        started = time.perf_counter()
        warnings: list[str] = []

        try:
            records = self._store.read_all_records()
        except StorageIOError as exc:
            logger.warning("Reading records failed: %s", exc)
            return ServiceResult.failure(
                op,
                ErrorCode.IO_FAILURE,
                str(exc),
                detail={"record_id": exc.record_id} if exc.record_id else None,
            )

        pending = set(self.pending_removals())
        records = [(rid, fields) for rid, fields in records if rid not in pending]

        if records and self._factory is None:
            return ServiceResult.failure(
                op,
                ErrorCode.RESTORE_MISMATCH,
                "No entity factory configured; cannot build entities to restore",
                detail={"records": len(records)},
            )

        duplicates = sorted(rid for rid, n in Counter(rid for rid, _ in records).items() if n > 1)
        if duplicates:
            return ServiceResult.failure(
                op,
                ErrorCode.RESTORE_MISMATCH,
                f"Duplicate record ids in storage: {', '.join(duplicates)}",
                detail={"duplicates": duplicates},
            )

        staged: dict[str, Persistable] = {}
        mismatches: dict[str, str] = {}
        for record_id, fields in records:
            try:
                entity = self._factory(record_id)
                entity.restore(fields)
            except Exception as exc:
                if not isinstance(exc, RestoreMismatch):
                    logger.debug("Restore of %s raised", record_id, exc_info=True)
                mismatches[record_id] = f"{type(exc).__name__}: {exc}"
                continue
            staged[record_id] = entity

        if mismatches:
            logger.warning("Load aborted: %d record(s) did not restore", len(mismatches))
            return ServiceResult.failure(
                op,
                ErrorCode.RESTORE_MISMATCH,
                f"{len(mismatches)} record(s) could not be restored",
                detail={"mismatches": mismatches},
            )

        try:
            with self._lock.exclusive():
                self._entities.update(staged)
        except LockUpgradeError:
            return self._lock_held(op)

        restored = sorted(staged)
        self._dispatch_event("post_load", {"restored": restored}, warnings)
        logger.debug("Restored %d record(s)", len(restored))
        return ServiceResult(
            ok=True,
            op=op,
            data={"restored": restored, "count": len(restored)},
            warnings=warnings,
            meta={"duration_ms": elapsed_ms(started)},
        )

    def close(self) -> None:
        """Close the underlying store."""
        self._store.close()
