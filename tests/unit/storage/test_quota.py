"""
Tests for the demo message quota: window expiry, persistence, failure tolerance.
"""

import json

import pytest

from ollie.shared.exceptions import StorageError
from ollie.storage.kv import InMemoryKeyValueStore, KeyValueStore
from ollie.storage.quota import QuotaRepository


class BrokenStore(KeyValueStore):
    """Storage that fails every operation."""

    def get(self, key):
        raise StorageError("storage disabled")

    def set(self, key, value):
        raise StorageError("storage disabled")

    def delete(self, key):
        raise StorageError("storage disabled")


def test_empty_store_reads_zero(quota):
    reading = quota.read()
    assert reading.count == 0
    assert reading.timestamp_valid is False


def test_increment_then_read(quota, memory_store, clock):
    quota.increment(1)
    quota.increment(2)

    reading = quota.read()
    assert reading.count == 2
    assert reading.timestamp_valid is True

    stored = json.loads(memory_store.get("orbit_demo_chat_count"))
    assert stored == {"count": 2, "timestamp": int(clock.now * 1000)}


def test_count_is_monotonic_within_window(quota, clock):
    seen = []
    for count in range(1, 4):
        quota.increment(count)
        clock.advance_hours(1)
        seen.append(quota.read().count)

    assert seen == [1, 2, 3]


def test_expires_after_window(quota, clock):
    quota.increment(3)

    clock.advance_hours(23)
    clock.now += 3599
    assert quota.read().count == 3

    clock.now += 1
    reading = quota.read()
    assert reading.count == 0
    assert reading.timestamp_valid is False
    assert reading.available is True


def test_increment_restarts_window(quota, clock):
    quota.increment(1)
    clock.advance_hours(20)
    quota.increment(2)
    clock.advance_hours(20)

    # 40h after the first write but only 20h after the last
    assert quota.read().count == 2


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2]",
    '{"count": "many", "timestamp": 0}',
    '{"count": -1, "timestamp": 0}',
    '{"timestamp": 0}',
])
def test_malformed_record_reads_zero(memory_store, clock, raw):
    memory_store.set("orbit_demo_chat_count", raw)
    quota = QuotaRepository(store=memory_store, clock=clock)

    assert quota.read().count == 0


def test_storage_failure_is_tolerated(clock):
    quota = QuotaRepository(store=BrokenStore(), clock=clock)

    reading = quota.read()
    assert reading.count == 0
    assert reading.available is False
    # Writes are dropped without raising
    quota.increment(1)


def test_custom_key_and_window(clock):
    store = InMemoryKeyValueStore()
    quota = QuotaRepository(store=store, key="custom_key", window_hours=1, clock=clock)

    quota.increment(1)
    assert store.get("custom_key") is not None
    clock.advance_hours(1)
    assert quota.read().count == 0
