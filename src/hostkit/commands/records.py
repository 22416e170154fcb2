"""records — inspect the persisted entity records."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hostkit.commands._base import HostGroup

if TYPE_CHECKING:
    from hostkit.commands._context import AppContext
    from hostkit.services.result import ServiceResult


def _read_records(app: AppContext, op: str) -> tuple[list[tuple[str, dict]], ServiceResult | None]:
    """Read every record, or return an IO_FAILURE result."""
    from hostkit.infrastructure.records import StorageIOError
    from hostkit.services.result import ErrorCode, ServiceResult

    try:
        return app.store.read_all_records(), None
    except StorageIOError as exc:
        return [], ServiceResult.failure(op, ErrorCode.IO_FAILURE, str(exc))


@click.group(
    cls=HostGroup,
    examples="""\
  hostkit records list
  hostkit --json records list
  hostkit records show faction-red""",
)
def records() -> None:
    """Inspect persisted records."""


@records.command("list")
@click.pass_obj
def list_records(app: AppContext) -> None:
    """List every persisted record id with its field count."""
    from hostkit.services.result import ServiceResult

    op = "list_records"
    rows, failure = _read_records(app, op)
    if failure is not None:
        app.emit(failure)
        return
    items = [{"id": record_id, "fields": len(fields)} for record_id, fields in rows]
    app.emit(
        ServiceResult(
            ok=True,
            op=op,
            data={
                "backend": app.settings.storage.backend,
                "location": str(app.settings.storage_location()),
                "count": len(items),
                "items": items,
            },
        )
    )


@records.command("show")
@click.argument("record_id")
@click.pass_obj
def show_record(app: AppContext, record_id: str) -> None:
    """Show the stored fields of RECORD_ID."""
    from hostkit.services.result import ErrorCode, ServiceResult

    op = "show_record"
    rows, failure = _read_records(app, op)
    if failure is not None:
        app.emit(failure)
        return
    for rid, fields in rows:
        if rid == record_id:
            app.emit(ServiceResult(ok=True, op=op, data={"id": rid, "fields": fields}))
            return
    app.emit(
        ServiceResult.failure(
            op,
            ErrorCode.NOT_FOUND,
            f"No record with id {record_id!r}",
            detail={"id": record_id},
        )
    )
