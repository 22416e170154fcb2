"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Opens the record store lazily so ``--help`` and
``color`` never touch storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostkit.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from hostkit.config.settings import HostSettings
    from hostkit.infrastructure.records import JsonRecordStore, SqlRecordStore
    from hostkit.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: HostSettings) -> None:
        self.settings = settings
        self._store: SqlRecordStore | JsonRecordStore | None = None

        from hostkit.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            debug=settings.debug,
        )

    @property
    def store(self) -> SqlRecordStore | JsonRecordStore:
        """The configured record store (opened on first access)."""
        if self._store is None:
            from hostkit.infrastructure.records import open_record_store

            self._store = open_record_store(self.settings)
        return self._store

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout; warnings go to stderr.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
