"""
Blueberry Planner Notifier — Category Schedulers.

One pure builder per category: filter eligible records, project their
firing instants and wrap them in TriggerDescriptors. Builders never talk
to a sink; cancellation and delivery live in notification_scheduler.

Sink-level schedulers only take one-shot absolute times, so medications
are projected over a rolling two-day window (today + tomorrow) that the
periodic refresh keeps populated.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Callable, Sequence

from blueberry.core.identity import TriggerIdAssigner
from blueberry.core.time_projector import project_instant, project_local, today_and_tomorrow
from blueberry.data.models import (
    Category,
    ChoreRecord,
    MedicationRecord,
    NotificationSettings,
    ReminderRecord,
    TriggerDescriptor,
)

logger = logging.getLogger(__name__)

DEFAULT_CHORE_TIME = "08:00"
_CLOSED_CHORE_STATUSES = frozenset({"COMPLETED", "DONE"})


def build_medication_triggers(
    medications: Sequence[MedicationRecord],
    settings: NotificationSettings,
    assigner: TriggerIdAssigner | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[TriggerDescriptor]:
    """One trigger per active medication, time slot and day (today, tomorrow)."""
    if not settings.medications_enabled:
        return []

    assigner = assigner or TriggerIdAssigner()
    today, tomorrow = today_and_tomorrow(now, tz)
    triggers: list[TriggerDescriptor] = []

    for med in medications:
        if med.active is not True or med.schedule is None:
            continue
        body = f"Time to take {med.name}"
        if med.dosage:
            body += f" ({med.dosage})"

        for slot, time_str in enumerate(med.schedule.times):
            for day, is_tomorrow in ((today, False), (tomorrow, True)):
                fire_at = project_local(
                    day, time_str, settings.medications_minutes, now=now, tz=tz,
                )
                if fire_at is None:
                    continue
                triggers.append(TriggerDescriptor(
                    id=assigner.assign(Category.MEDICATION, med.id, slot, is_tomorrow),
                    title="💊 Medication Reminder",
                    body=body,
                    fire_at=fire_at,
                    action_type="MEDICATION_REMINDER",
                    extra={"type": Category.MEDICATION.value, "id": med.id},
                ))

    return triggers


def build_chore_triggers(
    chores: Sequence[ChoreRecord],
    settings: NotificationSettings,
    assigner: TriggerIdAssigner | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[TriggerDescriptor]:
    """One trigger per open chore with a due date."""
    if not settings.chores_enabled:
        return []

    assigner = assigner or TriggerIdAssigner()
    triggers: list[TriggerDescriptor] = []

    for chore in chores:
        if (chore.status or "").upper() in _CLOSED_CHORE_STATUSES:
            continue
        if not chore.due_date:
            continue

        fire_at = project_local(
            chore.due_date,
            chore.due_time or DEFAULT_CHORE_TIME,
            settings.chores_minutes,
            now=now,
            tz=tz,
        )
        if fire_at is None:
            continue
        triggers.append(TriggerDescriptor(
            id=assigner.assign(Category.CHORE, chore.id),
            title="✅ Chore Reminder",
            body=f"Don't forget: {chore.title}",
            fire_at=fire_at,
            action_type="CHORE_REMINDER",
            extra={"type": Category.CHORE.value, "id": chore.id},
        ))

    return triggers


def build_reminder_triggers(
    reminders: Sequence[ReminderRecord],
    settings: NotificationSettings,
    assigner: TriggerIdAssigner | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[TriggerDescriptor]:
    """One trigger per active reminder with a start time."""
    if not settings.reminders_enabled:
        return []

    assigner = assigner or TriggerIdAssigner()
    triggers: list[TriggerDescriptor] = []

    for reminder in reminders:
        if reminder.is_active is False or not reminder.start_time:
            continue

        fire_at = project_instant(
            reminder.start_time, settings.reminders_minutes, now=now, tz=tz,
        )
        if fire_at is None:
            continue

        body = reminder.title
        if reminder.description:
            body += f": {reminder.description}"
        triggers.append(TriggerDescriptor(
            id=assigner.assign(Category.REMINDER, reminder.id),
            title="🔔 Reminder",
            body=body,
            fire_at=fire_at,
            action_type="REMINDER",
            extra={"type": Category.REMINDER.value, "id": reminder.id},
        ))

    return triggers


Builder = Callable[..., list[TriggerDescriptor]]

BUILDERS: dict[Category, Builder] = {
    Category.MEDICATION: build_medication_triggers,
    Category.CHORE: build_chore_triggers,
    Category.REMINDER: build_reminder_triggers,
}
