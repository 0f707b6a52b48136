"""In-memory lookup cache with single-flight fetches, and the caching decorators."""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

from ..config import CacheConfig
from ..sanitizer import Query
from .providers.base import LookupResult, SearchProvider
from .strategies import SearchStrategy

logger = logging.getLogger(__name__)


class EntryState(str, Enum):
    PENDING = "pending"
    READY = "ready"


@dataclass
class CacheEntry:
    """Cache entry with metadata.

    A PENDING entry carries the task computing its value; ``value`` is only
    meaningful once the entry is READY.
    """

    key: Hashable
    value: Any = None
    state: EntryState = EntryState.PENDING
    created_at: datetime = field(default_factory=datetime.now)
    last_accessed: datetime = field(default_factory=datetime.now)
    access_count: int = 0
    ttl_seconds: Optional[float] = None
    task: Optional["asyncio.Future"] = field(default=None, repr=False)
    # Set when invalidated in flight: waiters still share the task, the value is not kept.
    discard: bool = False

    @property
    def is_ready(self) -> bool:
        return self.state is EntryState.READY

    @property
    def is_expired(self) -> bool:
        """Check if a READY entry has outlived its TTL."""
        if self.ttl_seconds is None or not self.is_ready:
            return False
        return (datetime.now() - self.created_at).total_seconds() > self.ttl_seconds

    def touch(self):
        """Update last accessed time and increment access count."""
        self.last_accessed = datetime.now()
        self.access_count += 1


def _consume_exception(task: "asyncio.Future") -> None:
    # Failures are delivered to waiters; nobody may be left waiting.
    if not task.cancelled():
        task.exception()


class SingleFlightCache:
    """LRU cache where concurrent misses on one key share a single fetch.

    The entry table is guarded by one lock and no critical section awaits
    anything but the lock, so upstream calls never run while it is held.
    """

    def __init__(self, max_size: int = 1000, ttl_seconds: Optional[float] = None):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._lock: Optional[asyncio.Lock] = None

        self.stats = {
            "hits": 0,
            "misses": 0,
            "coalesced": 0,
            "failures": 0,
            "evictions": 0,
            "expirations": 0,
        }

    @classmethod
    def from_config(cls, config: Optional[CacheConfig] = None) -> "SingleFlightCache":
        config = config or CacheConfig()
        return cls(max_size=config.max_size, ttl_seconds=config.ttl_seconds)

    def _ensure_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def get_or_fetch(self, key: Hashable, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for ``key``, fetching it at most once.

        Cancelling the caller abandons only its own wait. The fetch keeps
        running for the other waiters and still fills the cache. A failed
        fetch removes its entry and its error reaches every waiter.
        """
        async with self._ensure_lock():
            entry = self._entries.get(key)

            if entry is not None and entry.is_expired:
                del self._entries[key]
                self.stats["expirations"] += 1
                entry = None

            if entry is not None and entry.is_ready:
                self._entries.move_to_end(key)
                entry.touch()
                self.stats["hits"] += 1
                return entry.value

            if entry is not None:
                self.stats["coalesced"] += 1
            else:
                self.stats["misses"] += 1
                self._evict_for_insert()
                entry = CacheEntry(key=key, ttl_seconds=self.ttl_seconds)
                entry.task = asyncio.ensure_future(self._run_fetch(entry, fetch))
                entry.task.add_done_callback(_consume_exception)
                self._entries[key] = entry

            task = entry.task

        return await asyncio.shield(task)

    async def _run_fetch(self, entry: CacheEntry, fetch: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await fetch()
        except BaseException:
            async with self._ensure_lock():
                if self._entries.get(entry.key) is entry:
                    del self._entries[entry.key]
                entry.task = None
                self.stats["failures"] += 1
            raise

        async with self._ensure_lock():
            entry.task = None
            if entry.discard:
                if self._entries.get(entry.key) is entry:
                    del self._entries[entry.key]
                return value

            entry.value = value
            entry.created_at = entry.last_accessed = datetime.now()
            entry.state = EntryState.READY
            if self._entries.get(entry.key) is entry:
                self._entries.move_to_end(entry.key)
        return value

    def _evict_for_insert(self) -> None:
        """Drop least-recently-used READY entries until a new entry fits."""
        while len(self._entries) >= self.max_size:
            victim = next((k for k, e in self._entries.items() if e.is_ready), None)
            if victim is None:
                # Everything is in flight; allow a temporary overflow.
                return
            del self._entries[victim]
            self.stats["evictions"] += 1
            logger.debug(f"Evicted cache entry {victim!r}")

    def peek(self, key: Hashable) -> Optional[Any]:
        """Return a READY, unexpired value without touching recency."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_ready or entry.is_expired:
            return None
        return entry.value

    def _drop(self, key: Hashable) -> None:
        # Caller holds the lock. A PENDING entry stays so later callers join
        # its fetch instead of starting a second one.
        entry = self._entries[key]
        if entry.is_ready:
            del self._entries[key]
        else:
            entry.discard = True

    async def invalidate(self, key: Hashable) -> bool:
        """Remove ``key``; an in-flight fetch completes but is not stored."""
        async with self._ensure_lock():
            if key not in self._entries:
                return False
            self._drop(key)
            return True

    async def clear(self):
        """Clear all cache entries; in-flight fetches complete but are not stored."""
        async with self._ensure_lock():
            for key in list(self._entries):
                self._drop(key)

    @property
    def in_flight(self) -> int:
        return sum(1 for entry in self._entries.values() if not entry.is_ready)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.peek(key) is not None

    def get_stats(self) -> Dict:
        """Get cache statistics."""
        lookups = self.stats["hits"] + self.stats["misses"] + self.stats["coalesced"]
        return {
            **self.stats,
            "size": len(self._entries),
            "max_size": self.max_size,
            "in_flight": self.in_flight,
            "ttl_seconds": self.ttl_seconds,
            "hit_rate": self.stats["hits"] / lookups if lookups else 0.0,
        }


class CachedSearchProvider(SearchProvider):
    """Adds a private single-flight cache in front of another provider."""

    def __init__(self, provider: SearchProvider, config: Optional[CacheConfig] = None):
        self.provider = provider
        self.cache = SingleFlightCache.from_config(config)
        super().__init__(config)
        self.provider_name = provider.name

    @property
    def kind(self):
        return self.provider.kind

    async def search(self, query: Query) -> LookupResult:
        return await self.cache.get_or_fetch(query, lambda: self.provider.search(query))

    async def invalidate(self, query: Query) -> bool:
        return await self.cache.invalidate(query)

    def get_statistics(self) -> Dict:
        return {**self.provider.get_statistics(), "cache": self.cache.get_stats()}

    async def aclose(self) -> None:
        await self.provider.aclose()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.provider!r})"


class CachedSearchStrategy(SearchStrategy):
    """Adds a private single-flight cache in front of a strategy.

    Keys combine the strategy tag, the provider instance and the query, so
    the same query resolved under different strategies or providers never
    collides, even when two providers share a name.
    """

    def __init__(self, strategy: SearchStrategy, config: Optional[CacheConfig] = None):
        self.strategy = strategy
        self.cache = SingleFlightCache.from_config(config)
        super().__init__()

    @property
    def kind(self):
        return self.strategy.kind

    def cache_key(self, query: Query, provider: SearchProvider):
        return (self.kind.value, provider, query)

    async def resolve(self, query: Query, provider: SearchProvider) -> LookupResult:
        return await self.cache.get_or_fetch(
            self.cache_key(query, provider), lambda: self.strategy.resolve(query, provider)
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.strategy!r})"
