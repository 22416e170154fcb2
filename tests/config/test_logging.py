"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from hostkit.config.logging import configure_logging


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("hostkit").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_debug_flag_enables_debug(self) -> None:
        configure_logging(debug=True)
        assert logging.getLogger("hostkit").level == logging.DEBUG

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging()
        assert logging.getLogger("hostkit").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("hostkit.test").warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "hostkit.test"
        assert "timestamp" in parsed

    def test_stdlib_logger_gets_structured_fields(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("hostkit.services.autosave").debug("Scheduled autosave")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Scheduled autosave"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "hostkit.services.autosave"

    def test_third_party_debug_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("sqlalchemy.engine").debug("query noise")
        assert capfd.readouterr().err == ""

    def test_idempotent_calls(self) -> None:
        configure_logging(verbose=True)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1
