"""
Unit Tests for the In-Memory Cache Tier

Tests TTL expiry, size-bounded eviction order and the background sweep,
driven by a fake clock.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from directory_cache.infrastructure.cache.memory_cache import (
    DisabledMemoryCache,
    MemoryCache,
    default_size_estimator,
)


def fixed_size(size: int):
    return lambda payload: size


@pytest.fixture
def cache(fake_clock):
    """60s TTL, room for two 100-byte entries."""
    return MemoryCache(
        default_ttl=60, max_size_bytes=250, size_estimator=fixed_size(100), clock=fake_clock
    )


@pytest.mark.unit
class TestBasicOperations:
    def test_get_missing_key(self, cache):
        assert cache.get("homepage") is None

    def test_set_then_get(self, cache):
        assert cache.set("homepage", {"towns": []}) is True
        assert cache.get("homepage") == {"towns": []}

    def test_get_returns_independent_copies(self, cache):
        """Mutating a returned value must not change the stored one."""
        cache.set("homepage", {"towns": ["mendocino"]})

        cache.get("homepage")["towns"].append("fort-bragg")

        assert cache.get("homepage") == {"towns": ["mendocino"]}

    def test_delete(self, cache):
        cache.set("homepage", {})
        assert cache.delete("homepage") is True
        assert cache.delete("homepage") is False
        assert cache.get("homepage") is None

    def test_reset(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)

        cache.reset()

        assert cache.memory_stats().entries == 0
        assert cache.memory_stats().current_size == 0

    def test_default_size_estimator_adds_overhead(self):
        assert default_size_estimator(b"12345") == 105


@pytest.mark.unit
class TestExpiry:
    def test_entry_expires_after_ttl(self, cache, fake_clock):
        cache.set("homepage", {"v": 1})

        fake_clock.advance(59)
        assert cache.get("homepage") == {"v": 1}

        fake_clock.advance(1)
        assert cache.get("homepage") is None
        assert cache.memory_stats().entries == 0

    def test_explicit_ttl(self, cache, fake_clock):
        cache.set("homepage", {"v": 1}, ttl=5)
        fake_clock.advance(5)
        assert cache.get("homepage") is None

    def test_entry_info(self, cache, fake_clock):
        cache.set("homepage", {"v": 1})

        info = cache.entry_info("homepage")

        assert info.ttl == 60
        assert info.size_bytes == 100
        assert info.cached_at == datetime.fromtimestamp(fake_clock.now, tz=timezone.utc)
        assert (info.expires_at - info.cached_at).total_seconds() == 60

    def test_entry_info_for_expired_entry(self, cache, fake_clock):
        cache.set("homepage", {"v": 1})
        fake_clock.advance(61)
        assert cache.entry_info("homepage") is None

    def test_purge_expired(self, cache, fake_clock):
        cache.set("short", 1, ttl=10)
        cache.set("long", 2, ttl=100)

        fake_clock.advance(20)

        assert cache.purge_expired() == 1
        assert cache.keys() == ["long"]


@pytest.mark.unit
class TestEviction:
    """Test the deterministic eviction order under a size budget."""

    def test_oldest_entry_evicted_first(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        assert cache.keys() == ["b", "c"]
        assert cache.memory_stats().current_size == 200

    def test_expired_entries_evicted_before_live_ones(self, cache, fake_clock):
        cache.set("live", 1, ttl=100)
        cache.set("stale", 2, ttl=10)
        fake_clock.advance(20)

        cache.set("new", 3)

        assert cache.keys() == ["live", "new"]

    def test_reset_key_moves_to_back(self, cache):
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)

        cache.set("c", 3)

        assert cache.keys() == ["a", "c"]
        assert cache.get("a") == 10

    def test_oversize_entry_not_stored(self, fake_clock):
        cache = MemoryCache(default_ttl=60, max_size_bytes=250,
                            size_estimator=fixed_size(300), clock=fake_clock)

        assert cache.set("huge", {"x": 1}) is False
        assert cache.get("huge") is None
        assert cache.memory_stats().current_size == 0

    def test_zero_budget_is_unbounded(self, fake_clock):
        cache = MemoryCache(default_ttl=60, max_size_bytes=0,
                            size_estimator=fixed_size(10_000), clock=fake_clock)
        for i in range(50):
            cache.set(f"k{i}", i)

        assert cache.memory_stats().entries == 50

    def test_size_accounting_stays_consistent(self, cache):
        cache.set("a", 1)
        cache.set("a", 2)
        cache.delete("a")

        assert cache.memory_stats().current_size == 0


@pytest.mark.unit
class TestBackgroundSweep:
    @pytest.mark.asyncio
    async def test_sweep_removes_expired_entries(self, cache, fake_clock):
        cache.set("homepage", {"v": 1}, ttl=1)
        fake_clock.advance(2)

        cache.start_cleanup(0.01)
        await asyncio.sleep(0.05)
        await cache.stop_cleanup()

        assert cache.keys() == []

    @pytest.mark.asyncio
    async def test_start_cleanup_is_idempotent(self, cache):
        cache.start_cleanup(10)
        task = cache._cleanup_task
        cache.start_cleanup(10)

        assert cache._cleanup_task is task
        await cache.stop_cleanup()
        assert cache._cleanup_task is None

    @pytest.mark.asyncio
    async def test_stop_without_start(self, cache):
        await cache.stop_cleanup()


@pytest.mark.unit
class TestDisabledMemoryCache:
    def test_stores_nothing(self):
        cache = DisabledMemoryCache()

        assert cache.enabled is False
        assert cache.set("homepage", {}) is False
        assert cache.get("homepage") is None
        assert cache.delete("homepage") is False
        assert cache.memory_stats().entries == 0
        assert cache.keys() == []
