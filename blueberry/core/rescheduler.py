"""
Blueberry Planner Notifier — Rescheduler.

The caller side of the notification pipeline: gathers settings and the
family's records from the API, then runs a scheduling pass. Invoked by
the periodic refresh job and by bot commands.

Full passes are throttled (default: at most one every 5 seconds) so
that several triggers arriving together cause a single round of sink
calls. Throttling skips new passes; it never interrupts one in flight.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import tzinfo
from typing import TYPE_CHECKING, Callable

from blueberry.core.notification_scheduler import (
    CategoryOutcome,
    ScheduleReport,
    ScheduleStatus,
    schedule_all,
    schedule_category,
)
from blueberry.data.models import Category
from blueberry.integrations.blueberry_api import BlueberryAPIError
from blueberry.ports.notification_port import PermissionState

if TYPE_CHECKING:
    from blueberry.integrations.blueberry_api import BlueberryClient
    from blueberry.ports.notification_port import NotificationSink

logger = logging.getLogger(__name__)


class NotificationRescheduler:
    """Fetches fresh data and reschedules notifications on demand."""

    def __init__(
        self,
        client: BlueberryClient,
        sink: NotificationSink,
        min_interval: float = 5,
        clock: Callable[[], float] = time.monotonic,
        tz: tzinfo | None = None,
    ) -> None:
        self._client = client
        self._sink = sink
        self._min_interval = min_interval
        self._clock = clock
        self._tz = tz
        self._last_pass: float | None = None

    def _throttled(self) -> bool:
        now = self._clock()
        if self._last_pass is not None and now - self._last_pass < self._min_interval:
            return True
        self._last_pass = now
        return False

    async def reschedule_all(self) -> ScheduleReport | None:
        """Run a full pass; None when skipped (unsupported, throttled, no data)."""
        if not self._sink.supports_scheduling:
            return None
        if self._throttled():
            logger.debug("Reschedule skipped: last pass under %ss ago", self._min_interval)
            return None

        try:
            notification_settings, medications, chores, reminders = await asyncio.gather(
                self._client.get_notification_settings(),
                self._client.list_medications(),
                self._client.list_chores(),
                self._client.list_reminders(),
            )
        except BlueberryAPIError as exc:
            logger.error("Reschedule skipped, could not load family data: %s", exc)
            return None

        return await schedule_all(
            self._sink,
            medications,
            chores,
            reminders,
            notification_settings,
            tz=self._tz,
        )

    async def reschedule_category(self, category: Category) -> CategoryOutcome | None:
        """Reschedule one category right away, without throttling."""
        if not self._sink.supports_scheduling:
            return None

        permission = await self._sink.check_permission()
        if permission is not PermissionState.GRANTED:
            return CategoryOutcome(category, ScheduleStatus.PERMISSION_DENIED)

        loaders = {
            Category.MEDICATION: self._client.list_medications,
            Category.CHORE: self._client.list_chores,
            Category.REMINDER: self._client.list_reminders,
        }
        try:
            notification_settings, records = await asyncio.gather(
                self._client.get_notification_settings(),
                loaders[category](),
            )
        except BlueberryAPIError as exc:
            logger.error("Could not load %s: %s", category.plural, exc)
            return None

        outcome = await schedule_category(
            self._sink, category, records, notification_settings, tz=self._tz,
        )
        logger.info(
            "Rescheduled %s: %s (%d scheduled)",
            category.plural, outcome.status.value, outcome.scheduled,
        )
        return outcome
