"""In-process notification sinks — implement NotificationSink.

InMemorySink keeps pending triggers in a dict keyed by trigger ID, which
gives it the same replace-on-reschedule semantics as a device store. It
backs dry runs (NOTIFICATION_SINK=memory) and the test suite.

NullSink is the no-capability variant: nothing can be scheduled or shown.
"""

from __future__ import annotations

import logging
from typing import Sequence

from blueberry.data.models import TriggerDescriptor
from blueberry.ports.notification_port import NotificationSinkError, PermissionState

logger = logging.getLogger(__name__)


class InMemorySink:
    """Dict-backed implementation of NotificationSink."""

    supports_scheduling = True

    def __init__(
        self,
        permission: PermissionState = PermissionState.GRANTED,
        grant_on_request: bool = True,
    ) -> None:
        self.pending: dict[int, TriggerDescriptor] = {}
        self.shown: list[tuple[str, str]] = []
        self.permission = permission
        self._grant_on_request = grant_on_request
        # Failure injection: set to an exception to make the next calls raise.
        self.fail_schedule: Exception | None = None
        self.fail_cancel: Exception | None = None
        self.fail_pending: Exception | None = None

    async def schedule(self, triggers: Sequence[TriggerDescriptor]) -> None:
        if self.fail_schedule is not None:
            raise NotificationSinkError(f"schedule failed: {self.fail_schedule}") from self.fail_schedule
        for trigger in triggers:
            self.pending[trigger.id] = trigger
        logger.debug("Stored %d triggers (%d pending)", len(triggers), len(self.pending))

    async def cancel(self, trigger_ids: Sequence[int]) -> None:
        if self.fail_cancel is not None:
            raise NotificationSinkError(f"cancel failed: {self.fail_cancel}") from self.fail_cancel
        for tid in trigger_ids:
            self.pending.pop(tid, None)

    async def get_pending(self) -> list[TriggerDescriptor]:
        if self.fail_pending is not None:
            raise NotificationSinkError(f"pending query failed: {self.fail_pending}") from self.fail_pending
        return list(self.pending.values())

    async def check_permission(self) -> PermissionState:
        return self.permission

    async def request_permission(self) -> bool:
        if self.permission is PermissionState.DEFAULT:
            self.permission = (
                PermissionState.GRANTED if self._grant_on_request else PermissionState.DENIED
            )
        return self.permission is PermissionState.GRANTED

    async def show(self, title: str, body: str) -> None:
        self.shown.append((title, body))

    def pending_ids(self) -> set[int]:
        return set(self.pending)


class NullSink:
    """A sink for contexts without any notification capability."""

    supports_scheduling = False

    async def schedule(self, triggers: Sequence[TriggerDescriptor]) -> None:
        return None

    async def cancel(self, trigger_ids: Sequence[int]) -> None:
        return None

    async def get_pending(self) -> list[TriggerDescriptor]:
        return []

    async def check_permission(self) -> PermissionState:
        return PermissionState.DENIED

    async def request_permission(self) -> bool:
        return False

    async def show(self, title: str, body: str) -> None:
        return None
