"""structlog configuration for hostkit.

Everything is routed through the stdlib root logger: hostkit modules log
with ``logging.getLogger(__name__)`` and a single stderr handler renders
those records (and any native structlog loggers) either for a terminal
or as JSON lines with ``--log-json``.
"""

from __future__ import annotations

import logging
import sys

import structlog

LOGGER_NAME = "hostkit"

# Loggers that are chatty at DEBUG and never useful to a plugin operator.
_QUIET_LOGGERS = ("sqlalchemy", "ruamel")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    debug: bool = False,
) -> None:
    """Install the stderr handler and set hostkit's log level.

    Safe to call repeatedly; the root logger always ends up with exactly
    one handler.

    Args:
        verbose: DEBUG for ``hostkit.*`` loggers instead of WARNING.
        log_json: Render JSON lines instead of console output.
        debug: The ``debug`` setting from ``hostkit.toml``; same effect
            as *verbose*.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAME).setLevel(
        logging.DEBUG if verbose or debug else logging.WARNING
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
