"""Readers/writer lock guarding a StorageService's entity collection.

Entity mutators hold the *shared* side so they can run alongside each
other. ``save()`` holds the *exclusive* side only long enough to copy
every snapshot out, then releases it before any I/O happens.

Writers are preferred: once a writer is waiting, new readers queue behind
it so a steady stream of mutations cannot starve the autosave. A thread
that already holds the shared side may take it again without queueing,
so lookups inside a mutation block never wait on a pending writer.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class LockUpgradeError(RuntimeError):
    """Exclusive access was requested by a thread holding the shared side."""


class SnapshotLock:
    """Shared/exclusive lock built on a single :class:`threading.Condition`."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self._local = threading.local()

    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @contextmanager
    def shared(self) -> Iterator[None]:
        """Hold the shared side for the duration of the block (re-entrant)."""
        depth = self._depth()
        with self._cond:
            if depth == 0:
                while self._writer or self._writers_waiting:
                    self._cond.wait()
            self._readers += 1
        self._local.depth = depth + 1
        try:
            yield
        finally:
            self._local.depth = depth
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the exclusive side for the duration of the block.

        Raises:
            LockUpgradeError: If the calling thread holds the shared side;
                waiting would never finish.
        """
        if self._depth():
            msg = "Cannot take the exclusive lock while holding the shared lock"
            raise LockUpgradeError(msg)
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        """Number of shared holders (for diagnostics and tests)."""
        with self._cond:
            return self._readers
