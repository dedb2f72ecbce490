"""Tests for blueberry.core.category_schedulers — trigger builders."""

from datetime import datetime, timedelta

from blueberry.core.category_schedulers import (
    BUILDERS,
    build_chore_triggers,
    build_medication_triggers,
    build_reminder_triggers,
)
from blueberry.core.identity import TriggerIdAssigner, hash_record_id, namespace_range
from blueberry.data.models import (
    DEFAULT_NOTIFICATION_SETTINGS,
    Category,
    ChoreRecord,
    MedicationRecord,
    NotificationSettings,
    ReminderRecord,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _med(
    id: str = "med-1",
    times: list[str] | None = None,
    active: bool | None = True,
    dosage: str | None = "5ml",
) -> MedicationRecord:
    return MedicationRecord(
        id=id,
        name="Amoxicillin",
        dosage=dosage,
        schedule={"type": "daily", "times": times if times is not None else ["08:00", "20:00"]},
        active=active,
    )


# ---------------------------------------------------------------------------
# Medications
# ---------------------------------------------------------------------------


class TestMedicationTriggers:
    def test_two_times_two_days_gives_four(self, now, tz):
        triggers = build_medication_triggers([_med()], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)
        assert len(triggers) == 4
        assert sorted(t.fire_at for t in triggers) == [
            datetime(2026, 3, 10, 7, 45, tzinfo=tz),
            datetime(2026, 3, 10, 19, 45, tzinfo=tz),
            datetime(2026, 3, 11, 7, 45, tzinfo=tz),
            datetime(2026, 3, 11, 19, 45, tzinfo=tz),
        ]

    def test_ids_encode_slot_and_day(self, now, tz):
        triggers = build_medication_triggers([_med()], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)
        base = 100000 + hash_record_id("med-1")
        assert {t.id for t in triggers} == {base, base + 1, base + 1000, base + 1001}

    def test_disabled_gives_none(self, now, tz):
        s = NotificationSettings(medications_enabled=False)
        assert build_medication_triggers([_med()], s, now=now, tz=tz) == []

    def test_past_slot_today_skipped(self, tz):
        noon = datetime(2026, 3, 10, 12, 0, tzinfo=tz)
        triggers = build_medication_triggers([_med()], DEFAULT_NOTIFICATION_SETTINGS, now=noon, tz=tz)
        assert len(triggers) == 3

    def test_inactive_or_unset_active_skipped(self, now, tz):
        meds = [_med(id="a", active=False), _med(id="b", active=None)]
        assert build_medication_triggers(meds, DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz) == []

    def test_empty_times_or_no_schedule_skipped(self, now, tz):
        no_schedule = MedicationRecord(id="c", name="X", active=True)
        meds = [_med(id="a", times=[]), no_schedule]
        assert build_medication_triggers(meds, DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz) == []

    def test_bad_time_skips_only_that_slot(self, now, tz):
        triggers = build_medication_triggers(
            [_med(times=["xx", "20:00"])], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz,
        )
        assert len(triggers) == 2

    def test_content(self, now, tz):
        trigger = build_medication_triggers([_med()], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)[0]
        assert trigger.title == "💊 Medication Reminder"
        assert trigger.body == "Time to take Amoxicillin (5ml)"
        assert trigger.action_type == "MEDICATION_REMINDER"
        assert trigger.extra == {"type": "medication", "id": "med-1"}

    def test_body_without_dosage(self, now, tz):
        trigger = build_medication_triggers(
            [_med(dosage=None)], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz,
        )[0]
        assert trigger.body == "Time to take Amoxicillin"


# ---------------------------------------------------------------------------
# Chores
# ---------------------------------------------------------------------------


class TestChoreTriggers:
    def test_default_time_and_lead(self, now, tz):
        chore = ChoreRecord(id="c1", title="Trash", due_date="2026-03-11")
        triggers = build_chore_triggers([chore], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)
        assert len(triggers) == 1
        assert triggers[0].fire_at == datetime(2026, 3, 11, 7, 30, tzinfo=tz)
        assert triggers[0].body == "Don't forget: Trash"
        assert triggers[0].extra == {"type": "chore", "id": "c1"}
        assert triggers[0].id in namespace_range(Category.CHORE)

    def test_explicit_due_time(self, now, tz):
        chore = ChoreRecord(id="c1", title="Dishes", due_date="2026-03-10", due_time="18:00")
        triggers = build_chore_triggers([chore], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)
        assert triggers[0].fire_at == datetime(2026, 3, 10, 17, 30, tzinfo=tz)

    def test_completed_never_triggers(self, now, tz):
        chores = [
            ChoreRecord(id="c1", title="A", due_date="2026-03-12", status="COMPLETED"),
            ChoreRecord(id="c2", title="B", due_date="2026-03-12", status="DONE"),
        ]
        assert build_chore_triggers(chores, DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz) == []

    def test_missing_due_date_skipped(self, now, tz):
        chore = ChoreRecord(id="c1", title="Someday")
        assert build_chore_triggers([chore], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz) == []

    def test_overdue_skipped(self, now, tz):
        chore = ChoreRecord(id="c1", title="Late", due_date="2026-03-09")
        assert build_chore_triggers([chore], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz) == []

    def test_disabled(self, now, tz):
        chore = ChoreRecord(id="c1", title="Trash", due_date="2026-03-11")
        s = NotificationSettings(chores_enabled=False)
        assert build_chore_triggers([chore], s, now=now, tz=tz) == []


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------


class TestReminderTriggers:
    def test_inside_lead_window_skipped(self, now, tz):
        reminder = ReminderRecord(id="r1", title="Call", start_time=now + timedelta(minutes=10))
        assert build_reminder_triggers([reminder], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz) == []

    def test_outside_lead_window_scheduled(self, now, tz):
        reminder = ReminderRecord(id="r1", title="Call", start_time=now + timedelta(minutes=30))
        triggers = build_reminder_triggers([reminder], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)
        assert len(triggers) == 1
        assert triggers[0].fire_at == now + timedelta(minutes=15)
        assert triggers[0].extra["type"] == "reminder"

    def test_description_in_body(self, now, tz):
        reminder = ReminderRecord(
            id="r1", title="Dentist", description="Bring forms",
            start_time="2026-03-10T12:00:00Z",
        )
        trigger = build_reminder_triggers([reminder], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)[0]
        assert trigger.body == "Dentist: Bring forms"
        assert trigger.title == "🔔 Reminder"

    def test_inactive_or_no_start_skipped(self, now, tz):
        reminders = [
            ReminderRecord(id="r1", title="Off", start_time="2026-03-11T09:00:00Z", is_active=False),
            ReminderRecord(id="r2", title="No start"),
        ]
        assert build_reminder_triggers(reminders, DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz) == []

    def test_unset_active_counts_as_active(self, now, tz):
        reminder = ReminderRecord(id="r1", title="T", start_time="2026-03-11T09:00:00Z")
        assert len(build_reminder_triggers([reminder], DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)) == 1

    def test_malformed_start_skips_record_only(self, now, tz):
        reminders = [
            ReminderRecord(id="r1", title="Bad", start_time="next tuesday"),
            ReminderRecord(id="r2", title="Good", start_time="2026-03-11T09:00:00Z"),
        ]
        triggers = build_reminder_triggers(reminders, DEFAULT_NOTIFICATION_SETTINGS, now=now, tz=tz)
        assert [t.extra["id"] for t in triggers] == ["r2"]


def test_shared_assigner_tracks_all_categories(now, tz):
    assigner = TriggerIdAssigner()
    build_chore_triggers(
        [ChoreRecord(id="c1", title="T", due_date="2026-03-11")],
        DEFAULT_NOTIFICATION_SETTINGS, assigner=assigner, now=now, tz=tz,
    )
    build_medication_triggers([_med()], DEFAULT_NOTIFICATION_SETTINGS, assigner=assigner, now=now, tz=tz)
    assert len(assigner.assigned) == 5


def test_builders_cover_every_category():
    assert set(BUILDERS) == set(Category)
