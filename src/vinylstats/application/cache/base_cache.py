"""Base cache interface and in-memory TTL implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

K = TypeVar("K")  # Key type
V = TypeVar("V")  # Value type

DEFAULT_TTL_SECONDS = 900


@dataclass
class CacheEntry[V]:
    """Cache entry with value and metadata."""

    value: V
    created_at: float
    ttl_seconds: float

    # Hey future me, visibility is STRICTLY "age < ttl". At exactly created_at + ttl the entry
    # is already gone. Timestamps come from the cache's clock (monotonic by default) so a
    # wall-clock jump from NTP can't resurrect or kill entries.
    def is_expired(self, now: float) -> bool:
        """Check if cache entry is expired at time ``now``."""
        return now - self.created_at >= self.ttl_seconds


class BaseCache[K, V](ABC):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V) -> None:
        """Set value in cache, replacing value AND timestamp of any prior entry.

        Args:
            key: Cache key
            value: Value to cache
        """
        pass


class InMemoryCache(BaseCache[K, V]):
    """In-memory, single-process TTL cache.

    One TTL for every entry (no per-key override). No invalidation either:
    a key is refreshed by ``set`` and disappears by time. ``clear`` exists
    for tests and shutdown only.
    """

    # Listen up future me, this is IN-MEMORY ONLY! Restart = cache gone, and it's not shared
    # across worker processes. The _lock keeps concurrent coroutines from interleaving a
    # read-check-delete with a set. It does NOT dedupe concurrent misses - that's what
    # AggregateCache.get_or_compute(coalesce=True) is for.
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize in-memory cache.

        Args:
            ttl_seconds: Lifetime of every entry
            clock: Time source in seconds; tests pass a fake to simulate time
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()

    # Yo, get() evicts on read: an expired entry is deleted and reported as a miss. Caller
    # can't tell "never set" from "expired" - both are None.
    async def get(self, key: K) -> V | None:
        """Get value from cache."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._clock()):
                del self._cache[key]
                return None

            return entry.value

    async def set(self, key: K, value: V) -> None:
        """Set value in cache (always overwrites)."""
        async with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                created_at=self._clock(),
                ttl_seconds=self.ttl_seconds,
            )

    async def exists(self, key: K) -> bool:
        """Check if a live entry exists (evicts it when expired, like get)."""
        return await self.get(key) is not None

    async def clear(self) -> None:
        """Drop every entry, live or not."""
        async with self._lock:
            self._cache.clear()

    async def cleanup_expired(self) -> int:
        """Remove expired entries from cache.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            now = self._clock()
            expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]
            for key in expired_keys:
                del self._cache[key]
            return len(expired_keys)

    # Not locked - it's a monitoring snapshot, a slightly stale count is fine.
    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        now = self._clock()
        total_entries = len(self._cache)
        expired_entries = sum(1 for entry in self._cache.values() if entry.is_expired(now))

        return {
            "total_entries": total_entries,
            "active_entries": total_entries - expired_entries,
            "expired_entries": expired_entries,
            "ttl_seconds": self.ttl_seconds,
        }
