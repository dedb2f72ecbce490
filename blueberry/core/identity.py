"""Trigger identity — stable integer IDs for scheduled notifications.

A trigger ID is ``category base + hash(record id) + slot (+1000 for
tomorrow)``, so every ID of a category stays inside that category's
namespace and can be cancelled in bulk without knowing the record IDs.

The hash is not collision-free. Two records that hash to the same value
overwrite each other's trigger in the sink; TriggerIdAssigner reports
such collisions but does not resolve them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from blueberry.data.models import NAMESPACE_SIZE, Category

logger = logging.getLogger(__name__)

HASH_MODULUS = 90_000
TOMORROW_OFFSET = 1_000


def hash_record_id(record_id: str) -> int:
    """Deterministic hash of a record ID into [0, 90000).

    Java-style string hash (h = h*31 + code) with signed 32-bit wraparound.
    """
    h = 0
    for ch in record_id:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h) % HASH_MODULUS


def trigger_id(
    category: Category,
    record_id: str,
    slot: int = 0,
    tomorrow: bool = False,
) -> int:
    """Return the trigger ID of one (record, time slot, day) combination."""
    offset = TOMORROW_OFFSET if tomorrow else 0
    return category.base + hash_record_id(record_id) + slot + offset


def namespace_range(category: Category) -> range:
    """All trigger IDs reserved for a category."""
    return range(category.base, category.base + NAMESPACE_SIZE)


@dataclass(frozen=True)
class TriggerKey:
    category: Category
    record_id: str
    slot: int = 0
    tomorrow: bool = False


@dataclass
class TriggerIdAssigner:
    """Record-to-trigger mapping kept for the duration of one scheduling pass."""

    assigned: dict[int, TriggerKey] = field(default_factory=dict)
    collisions: int = 0

    def assign(
        self,
        category: Category,
        record_id: str,
        slot: int = 0,
        tomorrow: bool = False,
    ) -> int:
        key = TriggerKey(category, record_id, slot, tomorrow)
        tid = trigger_id(category, record_id, slot, tomorrow)

        previous = self.assigned.get(tid)
        if previous is not None and previous != key:
            self.collisions += 1
            logger.warning(
                "Trigger ID collision: %d used by %s '%s' and %s '%s'; "
                "the later trigger replaces the earlier one",
                tid, previous.category.value, previous.record_id,
                category.value, record_id,
            )
        self.assigned[tid] = key
        return tid

    def record_for(self, tid: int) -> TriggerKey | None:
        return self.assigned.get(tid)
