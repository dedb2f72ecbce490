"""Notification sink port — abstract interface for device-local notifications.

Core modules depend on this protocol, never on a specific delivery channel.
A sink is chosen once at startup (see adapters.sink_factory) and passed in.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from blueberry.data.models import TriggerDescriptor


class NotificationSinkError(Exception):
    """Raised when any notification sink operation fails."""


class PermissionState(Enum):
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"   # not asked yet


class NotificationSink(Protocol):
    """Abstract pending-notification store used by core modules.

    Scheduling a trigger whose ID is already pending replaces it.
    """

    supports_scheduling: bool

    async def schedule(self, triggers: Sequence[TriggerDescriptor]) -> None: ...

    async def cancel(self, trigger_ids: Sequence[int]) -> None: ...

    async def get_pending(self) -> list[TriggerDescriptor]: ...

    async def check_permission(self) -> PermissionState: ...

    async def request_permission(self) -> bool: ...

    async def show(self, title: str, body: str) -> None: ...
