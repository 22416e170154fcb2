"""Toolbox — small utilities plugins reach for: colors and scheduling."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hostkit.domain.colors import normalize_color_name, resolve_color
from hostkit.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from hostkit.infrastructure.timer import ScheduledTask
    from hostkit.services.autosave import AutosaveScheduler
    from hostkit.services.storage import StorageService


class Toolbox:
    """Groups the color resolver and autosave scheduler.

    Args:
        scheduler: Autosave scheduler bound to the host timer. Optional for
            callers that only need colors.
        restricted_colors: Default for :meth:`resolve_color`; when True
            the host palette is skipped.
    """

    def __init__(
        self,
        scheduler: AutosaveScheduler | None = None,
        *,
        restricted_colors: bool = False,
    ) -> None:
        self.scheduler = scheduler
        self.restricted_colors = restricted_colors

    def resolve_color(self, value: str, *, restricted: bool | None = None) -> str | None:
        """Resolve *value* to ``#rrggbb`` or None."""
        if restricted is None:
            restricted = self.restricted_colors
        return resolve_color(value, restricted=restricted)

    def describe_color(self, value: str, *, restricted: bool | None = None) -> ServiceResult:
        """Resolve *value* and wrap the outcome in a ServiceResult."""
        op = "resolve_color"
        hex_value = self.resolve_color(value, restricted=restricted)
        if hex_value is None:
            return ServiceResult.failure(
                op,
                ErrorCode.NOT_FOUND,
                f"Unknown color: {value!r}",
                detail={"input": value},
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "input": value,
                "name": normalize_color_name(value),
                "hex": hex_value,
            },
        )

    def schedule_autosave(self, storage: StorageService) -> ScheduledTask:
        if self.scheduler is None:
            msg = "Toolbox was built without an autosave scheduler"
            raise RuntimeError(msg)
        return self.scheduler.schedule_autosave(storage)
