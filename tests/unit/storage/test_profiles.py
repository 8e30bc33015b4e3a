"""
Tests for current child profile resolution.
"""

import json

from ollie.chat.models import AgeGroup
from ollie.storage.kv import InMemoryKeyValueStore
from ollie.storage.profiles import resolve_child_profile


def test_no_store_is_anonymous_older():
    profile = resolve_child_profile(None)
    assert profile.child_id is None
    assert profile.age_group == AgeGroup.OLDER


def test_no_pointer_is_anonymous_older(memory_store):
    profile = resolve_child_profile(memory_store)
    assert profile.child_id is None
    assert profile.age_group == AgeGroup.OLDER


def test_pointer_id_resolved_from_children_list():
    store = InMemoryKeyValueStore({
        "orbit_current_profile": "c2",
        "orbit_children": json.dumps([
            {"id": "c1", "age": 10},
            {"id": "c2", "age": 5},
        ]),
    })

    profile = resolve_child_profile(store)
    assert profile.child_id == "c2"
    assert profile.age_group == AgeGroup.YOUNG


def test_explicit_age_group_wins():
    store = InMemoryKeyValueStore({
        "orbit_current_profile": json.dumps({"id": 7, "ageGroup": "OLDER", "age": 5}),
    })

    profile = resolve_child_profile(store)
    assert profile.child_id == "7"
    assert profile.age_group == AgeGroup.OLDER


def test_age_boundary():
    young = InMemoryKeyValueStore({"orbit_current_profile": json.dumps({"id": "a", "age": 7})})
    older = InMemoryKeyValueStore({"orbit_current_profile": json.dumps({"id": "b", "age": 8})})

    assert resolve_child_profile(young).age_group == AgeGroup.YOUNG
    assert resolve_child_profile(older).age_group == AgeGroup.OLDER


def test_malformed_children_list_keeps_id():
    store = InMemoryKeyValueStore({
        "orbit_current_profile": "c1",
        "orbit_children": "{broken",
    })

    profile = resolve_child_profile(store)
    assert profile.child_id == "c1"
    assert profile.age_group == AgeGroup.OLDER
