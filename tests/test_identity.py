"""Tests for blueberry.core.identity — trigger ID derivation."""

import uuid

from blueberry.core.identity import (
    TriggerIdAssigner,
    hash_record_id,
    namespace_range,
    trigger_id,
)
from blueberry.data.models import Category


class TestHashRecordId:
    def test_single_char(self):
        assert hash_record_id("a") == 97

    def test_two_chars(self):
        assert hash_record_id("ab") == 97 * 31 + 98

    def test_empty_string(self):
        assert hash_record_id("") == 0

    def test_32_bit_wraparound(self):
        # Java/JS hashCode of this string is exactly -2**31
        assert hash_record_id("polygenelubricants") == 2**31 % 90000

    def test_deterministic_and_in_range(self):
        for _ in range(200):
            rid = str(uuid.uuid4())
            h = hash_record_id(rid)
            assert h == hash_record_id(rid)
            assert 0 <= h < 90000


class TestTriggerId:
    def test_category_base_added(self):
        assert trigger_id(Category.MEDICATION, "a") == 100000 + 97
        assert trigger_id(Category.CHORE, "a") == 200000 + 97
        assert trigger_id(Category.REMINDER, "a") == 300000 + 97

    def test_slot_and_tomorrow_offsets(self):
        assert trigger_id(Category.MEDICATION, "a", slot=2) == 100000 + 97 + 2
        assert trigger_id(Category.MEDICATION, "a", slot=1, tomorrow=True) == 100000 + 97 + 1 + 1000

    def test_ids_stay_in_namespace(self):
        for category in Category:
            reserved = namespace_range(category)
            for _ in range(50):
                rid = str(uuid.uuid4())
                assert trigger_id(category, rid, slot=5, tomorrow=True) in reserved

    def test_namespaces_disjoint(self):
        ranges = [set(namespace_range(c)) for c in Category]
        assert not ranges[0] & ranges[1]
        assert not ranges[1] & ranges[2]


class TestTriggerIdAssigner:
    def test_assign_matches_trigger_id(self):
        assigner = TriggerIdAssigner()
        tid = assigner.assign(Category.CHORE, "chore-1")
        assert tid == trigger_id(Category.CHORE, "chore-1")
        assert assigner.record_for(tid).record_id == "chore-1"

    def test_same_key_twice_is_not_a_collision(self):
        assigner = TriggerIdAssigner()
        assigner.assign(Category.CHORE, "chore-1")
        assigner.assign(Category.CHORE, "chore-1")
        assert assigner.collisions == 0

    def test_collision_is_reported_not_resolved(self):
        # "Aa" and "BB" share a hash
        assigner = TriggerIdAssigner()
        first = assigner.assign(Category.CHORE, "Aa")
        second = assigner.assign(Category.CHORE, "BB")
        assert first == second
        assert assigner.collisions == 1
        assert assigner.record_for(first).record_id == "BB"

    def test_unknown_id(self):
        assert TriggerIdAssigner().record_for(123) is None
