"""Autosave — periodic bulk save of a StorageService.

Registers one repeating task per StorageService with the host timer:
first run after an hour, then every hour. Each run calls ``save()``
synchronously on the timer's thread and ignores its return value apart
from logging a failure. No retry, no backoff: the next run happens at
the next period boundary whatever the previous outcome.

Registering two autosaves for the same StorageService is a caller error
and is not checked here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hostkit.config.models import AUTOSAVE_DELAY_SECONDS, AUTOSAVE_PERIOD_SECONDS

if TYPE_CHECKING:
    from hostkit.config.models import AutosaveConfig
    from hostkit.infrastructure.timer import HostTimer, ScheduledTask
    from hostkit.services.storage import StorageService

logger = logging.getLogger(__name__)


class AutosaveScheduler:
    """Binds StorageServices to a host timer.

    Args:
        timer: Host facility that runs repeating callbacks.
        initial_delay: Seconds before the first save.
        period: Seconds between saves.
    """

    def __init__(
        self,
        timer: HostTimer,
        *,
        initial_delay: float = AUTOSAVE_DELAY_SECONDS,
        period: float = AUTOSAVE_PERIOD_SECONDS,
    ) -> None:
        self._timer = timer
        self.initial_delay = initial_delay
        self.period = period

    @classmethod
    def from_config(cls, timer: HostTimer, config: AutosaveConfig) -> AutosaveScheduler:
        return cls(
            timer,
            initial_delay=config.initial_delay_seconds,
            period=config.period_seconds,
        )

    def schedule_autosave(self, storage: StorageService) -> ScheduledTask:
        """Register the repeating save for *storage* and return its handle.

        ``handle.cancel()`` stops future saves; a save in progress finishes.
        """

        def _autosave() -> None:
            result = storage.save()
            if not result.ok:
                message = result.error.message if result.error else "unknown error"
                logger.warning("Autosave failed: %s", message)
            else:
                logger.debug("Autosave wrote %d record(s)", len(result.data["saved"]))

        task = self._timer.register_repeating(self.initial_delay, self.period, _autosave)
        logger.debug(
            "Scheduled autosave (delay=%ss, period=%ss)", self.initial_delay, self.period
        )
        return task
