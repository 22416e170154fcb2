"""Host timer facilities — the "register repeating task" boundary.

Services depend only on :class:`HostTimer`. Two implementations cover the
two kinds of host:

- :class:`TickTimer` for hosts with a cooperative tick loop. The host calls
  :meth:`TickTimer.tick` once per tick; callbacks run on that thread, so
  ticks never overlap.
- :class:`ThreadTimer` for free-threaded hosts. Each task gets one daemon
  thread that sleeps until its next fixed-rate deadline.

Durations are always seconds. Cancelling a task stops future firings but
never interrupts a firing already in progress.
"""

from __future__ import annotations

import itertools
import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class ScheduledTask(Protocol):
    """Handle to a registered repeating callback."""

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class HostTimer(Protocol):
    """Anything able to run a callback after a delay and then periodically."""

    def register_repeating(
        self,
        initial_delay: float,
        period: float,
        callback: Callable[[], None],
    ) -> ScheduledTask: ...


def _check_durations(initial_delay: float, period: float) -> None:
    if initial_delay < 0:
        msg = f"initial_delay must be >= 0, got {initial_delay}"
        raise ValueError(msg)
    if period <= 0:
        msg = f"period must be > 0, got {period}"
        raise ValueError(msg)


# ---------------------------------------------------------------------------
# Cooperative tick loop
# ---------------------------------------------------------------------------


@dataclass
class TickTask:
    """A repeating callback driven by :class:`TickTimer`."""

    task_id: int
    callback: Callable[[], None]
    period_ticks: int
    next_tick: int
    cancelled: bool = False
    runs: int = 0

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class TickTimer:
    """Tick-driven timer; the host advances it with :meth:`tick`.

    Seconds are converted to ticks with ``ticks_per_second`` and rounded
    up, with a minimum period of one tick.
    """

    ticks_per_second: int = 20
    current_tick: int = 0
    _tasks: list[TickTask] = field(default_factory=list, init=False, repr=False)
    _ids: itertools.count[int] = field(default_factory=itertools.count, init=False, repr=False)

    def to_ticks(self, seconds: float) -> int:
        return math.ceil(seconds * self.ticks_per_second)

    def register_repeating(
        self,
        initial_delay: float,
        period: float,
        callback: Callable[[], None],
    ) -> TickTask:
        _check_durations(initial_delay, period)
        task = TickTask(
            task_id=next(self._ids),
            callback=callback,
            period_ticks=max(1, self.to_ticks(period)),
            next_tick=self.current_tick + self.to_ticks(initial_delay),
        )
        self._tasks.append(task)
        logger.debug(
            "Registered tick task %d (delay=%d ticks, period=%d ticks)",
            task.task_id,
            task.next_tick - self.current_tick,
            task.period_ticks,
        )
        return task

    def tick(self, count: int = 1) -> None:
        """Advance the clock *count* ticks, firing due callbacks in order."""
        for _ in range(count):
            self.current_tick += 1
            for task in list(self._tasks):
                if task.cancelled:
                    continue
                if self.current_tick >= task.next_tick:
                    task.next_tick += task.period_ticks
                    task.runs += 1
                    task.callback()
            self._tasks = [t for t in self._tasks if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Advance the clock by *seconds* worth of ticks."""
        self.tick(self.to_ticks(seconds))

    @property
    def pending(self) -> list[TickTask]:
        """Tasks that have not been cancelled."""
        return [t for t in self._tasks if not t.cancelled]


# ---------------------------------------------------------------------------
# Background thread
# ---------------------------------------------------------------------------


class ThreadTask:
    """One repeating callback on its own daemon thread."""

    def __init__(
        self,
        initial_delay: float,
        period: float,
        callback: Callable[[], None],
        *,
        name: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._initial_delay = initial_delay
        self._period = period
        self._callback = callback
        self._clock = clock
        self._stop = threading.Event()
        self.runs = 0
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Stop scheduling further runs; a run in progress completes."""
        self._stop.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the thread to exit. Returns True if it did."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        deadline = self._clock() + self._initial_delay
        while not self._stop.wait(max(0.0, deadline - self._clock())):
            self.runs += 1
            try:
                self._callback()
            except Exception:
                logger.exception("Repeating task %s raised", self._thread.name)
            deadline += self._period
            now = self._clock()
            if deadline < now:
                # Skip missed periods rather than firing in a burst.
                missed = math.ceil((now - deadline) / self._period)
                deadline += missed * self._period


class ThreadTimer:
    """Timer that runs each repeating task on a dedicated daemon thread."""

    def __init__(self, *, name_prefix: str = "hostkit-timer") -> None:
        self._name_prefix = name_prefix
        self._ids = itertools.count(1)
        self._tasks: list[ThreadTask] = []

    def register_repeating(
        self,
        initial_delay: float,
        period: float,
        callback: Callable[[], None],
    ) -> ThreadTask:
        _check_durations(initial_delay, period)
        task = ThreadTask(
            initial_delay,
            period,
            callback,
            name=f"{self._name_prefix}-{next(self._ids)}",
        )
        self._tasks.append(task)
        task.start()
        return task

    def shutdown(self, timeout: float | None = 5.0) -> None:
        """Cancel every task and wait for the threads to finish."""
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            task.join(timeout)
        self._tasks.clear()
