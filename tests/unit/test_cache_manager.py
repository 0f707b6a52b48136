"""Unit tests for cache_manager.py."""

import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from songfinder.config import CacheConfig
from songfinder.sanitizer import Query
from songfinder.search.cache_manager import (
    CacheEntry,
    CachedSearchProvider,
    EntryState,
    SingleFlightCache,
)


def _counting_fetch(value, delay=0.0, calls=None):
    calls = calls if calls is not None else []

    async def fetch():
        calls.append(value)
        if delay:
            await asyncio.sleep(delay)
        return value

    return fetch, calls


class TestCacheEntry:
    """Test cases for CacheEntry dataclass."""

    def test_new_entry_is_pending(self):
        entry = CacheEntry(key="k")
        assert entry.state is EntryState.PENDING
        assert not entry.is_ready
        assert not entry.is_expired

    def test_cache_entry_is_expired(self):
        fresh = CacheEntry(key="k", state=EntryState.READY, ttl_seconds=3600)
        assert not fresh.is_expired

        stale = CacheEntry(
            key="k",
            state=EntryState.READY,
            created_at=datetime.now() - timedelta(hours=2),
            ttl_seconds=3600,
        )
        assert stale.is_expired

    def test_no_ttl_never_expires(self):
        entry = CacheEntry(
            key="k", state=EntryState.READY, created_at=datetime.now() - timedelta(days=365)
        )
        assert not entry.is_expired

    def test_touch(self):
        entry = CacheEntry(key="k")
        entry.touch()
        assert entry.access_count == 1


class TestSingleFlightCache:
    """Test cases for SingleFlightCache."""

    @pytest.mark.asyncio
    async def test_basic_operations(self):
        cache = SingleFlightCache(max_size=3)
        fetch, calls = _counting_fetch("value1")

        assert await cache.get_or_fetch("key1", fetch) == "value1"
        assert await cache.get_or_fetch("key1", fetch) == "value1"
        assert calls == ["value1"]
        assert cache.peek("key1") == "value1"
        assert "key1" in cache

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_fetch(self):
        cache = SingleFlightCache()
        fetch, calls = _counting_fetch("value", delay=0.05)

        results = await asyncio.gather(*(cache.get_or_fetch("key", fetch) for _ in range(25)))

        assert results == ["value"] * 25
        assert len(calls) == 1
        stats = cache.get_stats()
        assert stats["misses"] == 1
        assert stats["coalesced"] == 24

    @pytest.mark.asyncio
    async def test_lru_cache_eviction(self):
        """Inserting capacity + 1 keys evicts exactly the least recently used one."""
        cache = SingleFlightCache(max_size=3)
        calls = []
        for key in ("key1", "key2", "key3"):
            await cache.get_or_fetch(key, _counting_fetch(key, calls=calls)[0])

        # Access key1 to make it recently used
        await cache.get_or_fetch("key1", _counting_fetch("key1", calls=calls)[0])

        await cache.get_or_fetch("key4", _counting_fetch("key4", calls=calls)[0])

        assert len(cache) == 3
        assert "key1" in cache
        assert "key2" not in cache
        assert "key3" in cache
        assert "key4" in cache
        assert cache.get_stats()["evictions"] == 1
        assert calls == ["key1", "key2", "key3", "key4"]

    @pytest.mark.asyncio
    async def test_pending_entries_are_not_evicted(self):
        cache = SingleFlightCache(max_size=1)
        slow, slow_calls = _counting_fetch("slow", delay=0.05)
        fast, _ = _counting_fetch("fast")

        slow_task = asyncio.ensure_future(cache.get_or_fetch("slow", slow))
        await asyncio.sleep(0)
        assert await cache.get_or_fetch("fast", fast) == "fast"
        assert cache.get_stats()["evictions"] == 0
        assert await slow_task == "slow"
        assert len(slow_calls) == 1

    @pytest.mark.asyncio
    async def test_expired_entry_is_refetched(self):
        cache = SingleFlightCache(ttl_seconds=60)
        fetch, calls = _counting_fetch("value")

        await cache.get_or_fetch("key", fetch)
        cache._entries["key"].created_at = datetime.now() - timedelta(seconds=120)

        assert cache.peek("key") is None
        await cache.get_or_fetch("key", fetch)
        assert len(calls) == 2
        assert cache.get_stats()["expirations"] == 1

    @pytest.mark.asyncio
    async def test_failed_fetch_leaves_no_entry(self):
        cache = SingleFlightCache()
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("boom")
            return "recovered"

        with pytest.raises(RuntimeError, match="boom"):
            await cache.get_or_fetch("key", flaky)

        assert len(cache) == 0
        assert cache.in_flight == 0
        assert await cache.get_or_fetch("key", flaky) == "recovered"
        assert cache.get_stats()["failures"] == 1

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self):
        cache = SingleFlightCache()
        calls = []

        async def failing():
            calls.append(1)
            await asyncio.sleep(0.02)
            raise RuntimeError("upstream down")

        results = await asyncio.gather(
            *(cache.get_or_fetch("key", failing) for _ in range(5)), return_exceptions=True
        )

        assert len(calls) == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_fetch(self):
        cache = SingleFlightCache()
        fetch, calls = _counting_fetch("value", delay=0.05)

        initiator = asyncio.ensure_future(cache.get_or_fetch("key", fetch))
        await asyncio.sleep(0)
        waiter = asyncio.ensure_future(cache.get_or_fetch("key", fetch))
        await asyncio.sleep(0)

        initiator.cancel()
        with pytest.raises(asyncio.CancelledError):
            await initiator

        assert await waiter == "value"
        assert len(calls) == 1
        assert cache.peek("key") == "value"

    @pytest.mark.asyncio
    async def test_fetch_completes_after_all_callers_cancel(self):
        cache = SingleFlightCache()
        fetch, calls = _counting_fetch("value", delay=0.02)

        caller = asyncio.ensure_future(cache.get_or_fetch("key", fetch))
        await asyncio.sleep(0)
        caller.cancel()
        await asyncio.sleep(0.05)

        assert cache.peek("key") == "value"
        assert await cache.get_or_fetch("key", fetch) == "value"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_invalidate_during_fetch_does_not_store(self):
        cache = SingleFlightCache()
        fetch, _ = _counting_fetch("value", delay=0.02)

        task = asyncio.ensure_future(cache.get_or_fetch("key", fetch))
        await asyncio.sleep(0)
        assert await cache.invalidate("key")

        assert await task == "value"
        assert "key" not in cache

    @pytest.mark.asyncio
    async def test_caller_after_invalidate_joins_running_fetch(self):
        cache = SingleFlightCache()
        fetch, calls = _counting_fetch("value", delay=0.05)

        first = asyncio.ensure_future(cache.get_or_fetch("key", fetch))
        await asyncio.sleep(0)
        assert await cache.invalidate("key")
        second = asyncio.ensure_future(cache.get_or_fetch("key", fetch))

        assert await asyncio.gather(first, second) == ["value", "value"]
        assert len(calls) == 1
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_caller_after_clear_joins_running_fetch(self):
        cache = SingleFlightCache()
        fetch, calls = _counting_fetch("value", delay=0.05)

        first = asyncio.ensure_future(cache.get_or_fetch("key", fetch))
        await asyncio.sleep(0)
        await cache.clear()
        second = asyncio.ensure_future(cache.get_or_fetch("key", fetch))

        assert await asyncio.gather(first, second) == ["value", "value"]
        assert len(calls) == 1
        assert "key" not in cache

        # the next lookup after the discarded fetch goes upstream again
        await cache.get_or_fetch("key", fetch)
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = SingleFlightCache()
        await cache.get_or_fetch("key", _counting_fetch("value")[0])

        await cache.clear()
        assert len(cache) == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            SingleFlightCache(max_size=0)

    def test_from_config(self):
        cache = SingleFlightCache.from_config(CacheConfig(max_size=5, ttl_seconds=30))
        assert cache.max_size == 5
        assert cache.ttl_seconds == 30


class TestCachedSearchProvider:
    """Test cases for the provider cache decorator."""

    @pytest.mark.asyncio
    async def test_single_flight_under_concurrent_load(self, slow_provider):
        cached = CachedSearchProvider(slow_provider)
        query = Query("Coldplay", "Yellow")

        results = await asyncio.gather(*(cached.search(query) for _ in range(50)))

        assert slow_provider.call_count == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_ready_entry_returns_same_result_object(self, stub_provider):
        cached = CachedSearchProvider(stub_provider)
        query = Query("Coldplay", "Yellow")

        first = await cached.search(query)
        second = await cached.search(Query(" Coldplay", "Yellow "))

        assert second is first
        assert stub_provider.call_count == 1

    @pytest.mark.asyncio
    async def test_case_sensitive_keys(self, stub_provider):
        cached = CachedSearchProvider(stub_provider)

        await cached.search(Query("Coldplay", "Yellow"))
        await cached.search(Query("coldplay", "yellow"))

        assert stub_provider.call_count == 2

    @pytest.mark.asyncio
    async def test_not_found_results_are_cached(self, stub_provider_cls):
        provider = stub_provider_cls(missing=[("Coldplay", "Nope")])
        cached = CachedSearchProvider(provider)

        first = await cached.search(Query("Coldplay", "Nope"))
        second = await cached.search(Query("Coldplay", "Nope"))

        assert not first.found
        assert second is first
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, stub_provider_cls):
        provider = stub_provider_cls(fail_times=1)
        cached = CachedSearchProvider(provider)
        query = Query("Coldplay", "Yellow")

        with pytest.raises(RuntimeError):
            await cached.search(query)
        result = await cached.search(query)

        assert result.found
        assert provider.call_count == 2

    @pytest.mark.asyncio
    async def test_eviction_uses_config(self, stub_provider):
        cached = CachedSearchProvider(stub_provider, CacheConfig(max_size=2))
        for song in ("One", "Two", "Three"):
            await cached.search(Query("Metallica", song))

        await cached.search(Query("Metallica", "One"))
        assert stub_provider.call_count == 4

    @pytest.mark.asyncio
    async def test_instances_do_not_share_state(self, stub_provider):
        first = CachedSearchProvider(stub_provider)
        second = CachedSearchProvider(stub_provider)
        query = Query("Coldplay", "Yellow")

        await first.search(query)
        await second.search(query)

        assert stub_provider.call_count == 2
        assert first.cache is not second.cache

    @pytest.mark.asyncio
    async def test_invalidate(self, stub_provider):
        cached = CachedSearchProvider(stub_provider)
        query = Query("Coldplay", "Yellow")

        await cached.search(query)
        assert await cached.invalidate(query)
        await cached.search(query)

        assert stub_provider.call_count == 2

    def test_identity_and_statistics(self, stub_provider):
        cached = CachedSearchProvider(stub_provider)

        assert cached.name == stub_provider.name
        assert cached.kind is stub_provider.kind
        stats = cached.get_statistics()
        assert stats["provider"] == stub_provider.name
        assert stats["cache"]["size"] == 0
