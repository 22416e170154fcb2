"""Tests for the hourly autosave scheduler."""

from __future__ import annotations

import logging

import pytest

from hostkit.config.models import AutosaveConfig
from hostkit.infrastructure.timer import TickTimer
from hostkit.services.autosave import AutosaveScheduler
from hostkit.services.result import ErrorCode, ServiceResult

HOUR = 3600


class _CountingStorage:
    """Stands in for StorageService; returns canned results."""

    def __init__(self, *results: ServiceResult) -> None:
        self.calls = 0
        self._results = list(results)

    def save(self) -> ServiceResult:
        self.calls += 1
        if self._results:
            return self._results.pop(0)
        return ServiceResult(ok=True, op="save", data={"saved": []})


@pytest.fixture
def timer() -> TickTimer:
    return TickTimer(ticks_per_second=20)


class TestSchedule:
    def test_defaults_are_one_hour(self, timer: TickTimer) -> None:
        scheduler = AutosaveScheduler(timer)
        assert scheduler.initial_delay == HOUR
        assert scheduler.period == HOUR

    def test_no_save_before_first_hour(self, timer: TickTimer) -> None:
        storage = _CountingStorage()
        AutosaveScheduler(timer).schedule_autosave(storage)
        timer.advance(HOUR - 1)
        assert storage.calls == 0
        timer.advance(1)
        assert storage.calls == 1

    def test_exactly_one_save_per_period(self, timer: TickTimer) -> None:
        storage = _CountingStorage()
        AutosaveScheduler(timer).schedule_autosave(storage)
        timer.advance(HOUR)
        for expected in range(2, 6):
            timer.advance(HOUR - 1)
            assert storage.calls == expected - 1
            timer.advance(1)
            assert storage.calls == expected

    def test_cancel_stops_saves(self, timer: TickTimer) -> None:
        storage = _CountingStorage()
        task = AutosaveScheduler(timer).schedule_autosave(storage)
        timer.advance(HOUR)
        task.cancel()
        timer.advance(3 * HOUR)
        assert storage.calls == 1

    def test_from_config(self, timer: TickTimer) -> None:
        config = AutosaveConfig(initial_delay_seconds=10, period_seconds=5)
        scheduler = AutosaveScheduler.from_config(timer, config)
        storage = _CountingStorage()
        scheduler.schedule_autosave(storage)
        timer.advance(10)
        timer.advance(15)
        assert storage.calls == 4


class TestFailures:
    def test_failure_is_logged_and_next_run_still_happens(
        self, timer: TickTimer, caplog: pytest.LogCaptureFixture
    ) -> None:
        failed = ServiceResult.failure("save", ErrorCode.IO_FAILURE, "disk full")
        storage = _CountingStorage(failed)
        AutosaveScheduler(timer).schedule_autosave(storage)

        with caplog.at_level(logging.WARNING, logger="hostkit.services.autosave"):
            timer.advance(HOUR)
        assert "Autosave failed: disk full" in caplog.text

        timer.advance(HOUR)
        assert storage.calls == 2
