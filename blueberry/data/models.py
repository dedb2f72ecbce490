"""
Blueberry Planner Notifier — Data Models.

Records are owned by the Blueberry API; this service only reads them.
API payloads are camelCase JSON, so the pydantic models accept both the
camelCase aliases and the snake_case field names.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# Each category owns [base, base + NAMESPACE_SIZE) of trigger IDs.
NAMESPACE_SIZE = 100_000


class Category(Enum):
    """A schedulable record category with its own ID namespace and settings."""

    MEDICATION = "medication"
    CHORE = "chore"
    REMINDER = "reminder"

    @property
    def base(self) -> int:
        return _CATEGORY_BASES[self]

    @property
    def plural(self) -> str:
        """Key used in result counts and settings, e.g. "medications"."""
        return f"{self.value}s"

    @property
    def route(self) -> str:
        """In-app page a tapped notification opens."""
        return f"/{self.plural}"


_CATEGORY_BASES = {
    Category.MEDICATION: 100_000,
    Category.CHORE: 200_000,
    Category.REMINDER: 300_000,
}


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class MedicationSchedule(_ApiModel):
    """Daily schedule of a medication, e.g. {"type": "daily", "times": ["08:00"]}."""

    type: str = "daily"
    times: list[str] = []


class MedicationRecord(_ApiModel):
    id: str
    name: str
    dosage: str | None = None
    assigned_to: str | None = None
    schedule: MedicationSchedule | None = None
    active: bool | None = None

    @field_validator("schedule", mode="before")
    @classmethod
    def decode_schedule(cls, v: Any) -> Any:
        """The schedule column is JSON; some endpoints return it still encoded."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except ValueError:
                logger.warning("Undecodable medication schedule: %r", v)
                return None
        return v


class ChoreRecord(_ApiModel):
    id: str
    title: str
    due_date: str | None = None     # YYYY-MM-DD
    due_time: str | None = None     # HH:MM, 08:00 when absent
    status: str | None = "PENDING"
    assigned_to: str | None = None


class ReminderRecord(_ApiModel):
    id: str
    title: str
    description: str | None = None
    start_time: str | datetime | None = None
    is_active: bool | None = None   # None counts as active


class NotificationSettings(_ApiModel):
    """Per-category notification preferences of a family member.

    Field defaults are the documented default table; a server payload with
    missing or null fields falls back to them via resolve().
    """

    model_config = ConfigDict(frozen=True)

    medications_enabled: bool = True
    medications_minutes: int = 15
    chores_enabled: bool = True
    chores_minutes: int = 30
    reminders_enabled: bool = True
    reminders_minutes: int = 15
    groceries_enabled: bool = False     # reserved, not scheduled
    calendar_enabled: bool = True       # reserved, not scheduled
    calendar_minutes: int = 15
    push_enabled: bool = False

    @classmethod
    def resolve(cls, payload: dict | None) -> NotificationSettings:
        """Merge a (possibly partial) server payload over the defaults."""
        if not payload:
            return DEFAULT_NOTIFICATION_SETTINGS
        cleaned = {k: v for k, v in payload.items() if v is not None}
        return cls.model_validate(cleaned)

    def is_enabled(self, category: Category) -> bool:
        return bool(getattr(self, f"{category.plural}_enabled"))

    def lead_minutes(self, category: Category) -> int:
        return int(getattr(self, f"{category.plural}_minutes"))


DEFAULT_NOTIFICATION_SETTINGS = NotificationSettings()


@dataclass
class TriggerDescriptor:
    """A fully resolved notification handed to a sink."""

    id: int
    title: str
    body: str
    fire_at: datetime                 # timezone-aware
    action_type: str = ""
    extra: dict[str, str] = field(default_factory=dict)  # {"type": ..., "id": ...}
    sound: str = "default"
    small_icon: str = "ic_notification"
    large_icon: str = "ic_notification"
