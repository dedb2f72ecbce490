"""
Blueberry Planner Notifier — Notification Scheduler.

Cancel-then-schedule pipelines per category, and the orchestrator that
runs all three concurrently against one NotificationSink.

Rescheduling is idempotent: each pipeline first cancels every pending
trigger in its category's ID namespace, then schedules the fresh set.
Unchanged triggers are recreated too; there is no diffing.

Failures never propagate to the caller. Each category reports a
CategoryOutcome, and one category failing does not affect the others.

This module is provider-agnostic: it depends on the NotificationSink
protocol, not on a specific implementation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from blueberry.config import local_timezone
from blueberry.core.category_schedulers import BUILDERS
from blueberry.core.identity import TriggerIdAssigner, namespace_range
from blueberry.data.models import Category, NotificationSettings, TriggerDescriptor
from blueberry.ports.notification_port import PermissionState

if TYPE_CHECKING:
    from blueberry.data.models import ChoreRecord, MedicationRecord, ReminderRecord
    from blueberry.ports.notification_port import NotificationSink

logger = logging.getLogger(__name__)

TEST_NOTIFICATION_ID = 99_999
TEST_NOTIFICATION_DELAY = timedelta(seconds=3)
_TEST_TITLE = "🫐 Blueberry Planner"
_TEST_BODY = (
    "Notifications are working! You'll receive reminders for your "
    "medications, chores, and more."
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class ScheduleStatus(Enum):
    SCHEDULED = "scheduled"
    DISABLED = "disabled"
    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    CANCEL_FAILED = "cancel_failed"
    SCHEDULE_FAILED = "schedule_failed"


@dataclass
class CategoryOutcome:
    """What one category pipeline did during a pass."""

    category: Category
    status: ScheduleStatus
    scheduled: int = 0
    cancelled: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status not in (
            ScheduleStatus.CANCEL_FAILED,
            ScheduleStatus.SCHEDULE_FAILED,
        )


@dataclass
class ScheduleReport:
    outcomes: dict[Category, CategoryOutcome] = field(default_factory=dict)
    collisions: int = 0

    def counts(self) -> dict[str, int]:
        return {c.plural: self.outcomes[c].scheduled for c in Category if c in self.outcomes}

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes.values())


# ---------------------------------------------------------------------------
# Cancellation gate
# ---------------------------------------------------------------------------


async def cancel_category(sink: NotificationSink, category: Category) -> int:
    """Cancel every pending trigger inside the category's ID namespace.

    Sink errors propagate; callers decide how to report them.
    """
    reserved = namespace_range(category)
    pending = await sink.get_pending()
    to_cancel = [t.id for t in pending if t.id in reserved]
    if to_cancel:
        await sink.cancel(to_cancel)
        logger.debug("Cancelled %d pending %s triggers", len(to_cancel), category.value)
    return len(to_cancel)


# ---------------------------------------------------------------------------
# Category pipelines
# ---------------------------------------------------------------------------


async def schedule_category(
    sink: NotificationSink,
    category: Category,
    records: Sequence,
    settings: NotificationSettings,
    assigner: TriggerIdAssigner | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> CategoryOutcome:
    """Cancel the category's pending triggers and schedule fresh ones."""
    if not sink.supports_scheduling:
        return CategoryOutcome(category, ScheduleStatus.UNSUPPORTED)
    if not settings.is_enabled(category):
        return CategoryOutcome(category, ScheduleStatus.DISABLED)

    # Built before cancelling: pending triggers stay intact when a builder fails.
    try:
        triggers = BUILDERS[category](records, settings, assigner=assigner, now=now, tz=tz)
    except Exception as exc:
        logger.error("Failed to build %s notifications: %s", category.value, exc)
        return CategoryOutcome(category, ScheduleStatus.SCHEDULE_FAILED, error=str(exc))

    try:
        cancelled = await cancel_category(sink, category)
    except Exception as exc:
        logger.error("Failed to cancel %s notifications: %s", category.value, exc)
        return CategoryOutcome(category, ScheduleStatus.CANCEL_FAILED, error=str(exc))

    if not triggers:
        return CategoryOutcome(category, ScheduleStatus.SCHEDULED, cancelled=cancelled)

    try:
        await sink.schedule(triggers)
    except Exception as exc:
        logger.error("Failed to schedule %s notifications: %s", category.value, exc)
        return CategoryOutcome(
            category, ScheduleStatus.SCHEDULE_FAILED, cancelled=cancelled, error=str(exc),
        )

    return CategoryOutcome(
        category, ScheduleStatus.SCHEDULED, scheduled=len(triggers), cancelled=cancelled,
    )


async def schedule_all(
    sink: NotificationSink,
    medications: Sequence[MedicationRecord],
    chores: Sequence[ChoreRecord],
    reminders: Sequence[ReminderRecord],
    settings: NotificationSettings,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> ScheduleReport:
    """Reschedule all three categories concurrently.

    A single permission probe guards the whole pass: without permission
    nothing is cancelled or scheduled.
    """
    try:
        permission = await sink.check_permission()
    except Exception as exc:
        logger.warning("Permission probe failed: %s", exc)
        permission = PermissionState.DEFAULT

    if permission is not PermissionState.GRANTED:
        logger.info("Notification permission is %s, skipping pass", permission.value)
        return ScheduleReport(outcomes={
            c: CategoryOutcome(c, ScheduleStatus.PERMISSION_DENIED) for c in Category
        })

    # Category namespaces are disjoint, so the pipelines share no state
    # beyond the assigner's bookkeeping.
    assigner = TriggerIdAssigner()
    records = {
        Category.MEDICATION: medications,
        Category.CHORE: chores,
        Category.REMINDER: reminders,
    }
    outcomes = await asyncio.gather(*(
        schedule_category(sink, c, records[c], settings, assigner=assigner, now=now, tz=tz)
        for c in Category
    ))

    report = ScheduleReport(
        outcomes={o.category: o for o in outcomes},
        collisions=assigner.collisions,
    )
    logger.info("Notifications scheduled: %s", report.counts())
    return report


# ---------------------------------------------------------------------------
# Maintenance helpers
# ---------------------------------------------------------------------------


async def cancel_all_notifications(sink: NotificationSink) -> int:
    """Cancel every pending trigger regardless of category."""
    if not sink.supports_scheduling:
        return 0
    try:
        pending = await sink.get_pending()
        if pending:
            await sink.cancel([t.id for t in pending])
        return len(pending)
    except Exception as exc:
        logger.error("Failed to cancel notifications: %s", exc)
        return 0


async def get_pending_notification_count(sink: NotificationSink) -> int:
    if not sink.supports_scheduling:
        return 0
    try:
        return len(await sink.get_pending())
    except Exception as exc:
        logger.warning("Failed to count pending notifications: %s", exc)
        return 0


async def send_test_notification(
    sink: NotificationSink,
    now: datetime | None = None,
) -> bool:
    """Fire a test notification a few seconds from now (or immediately).

    Scheduling sinks get a one-shot trigger; display-only sinks show it
    right away when permission is granted.
    """
    try:
        if sink.supports_scheduling:
            fire_at = (now or datetime.now(local_timezone())) + TEST_NOTIFICATION_DELAY
            await sink.schedule([TriggerDescriptor(
                id=TEST_NOTIFICATION_ID,
                title=_TEST_TITLE,
                body=_TEST_BODY,
                fire_at=fire_at,
            )])
            return True

        if await sink.check_permission() is PermissionState.GRANTED:
            await sink.show(_TEST_TITLE, _TEST_BODY)
            return True
    except Exception as exc:
        logger.error("Failed to send test notification: %s", exc)
    return False


def route_for_extra(extra: dict | None) -> str | None:
    """Map a tapped notification's extra payload to its in-app page."""
    if not extra:
        return None
    try:
        return Category(extra.get("type")).route
    except ValueError:
        return None
