"""Memoization of computed playlist/album aggregates.

Hey future me - this wraps an InMemoryCache with the "<kind>:<entityId>" key scheme and
the compute-on-miss dance the stats service needs. Two rules you must not break:

1. Only SUCCESSFUL results are stored. If the compute coroutine raises, nothing is
   written, so a flaky network minute doesn't poison the next 15 minutes of lookups.
2. By default concurrent misses for the same key BOTH compute and the last set() wins
   (that's how the old app behaved). With coalesce=True the second caller awaits the
   first caller's in-flight computation instead - and shares its exception if it fails.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Literal

from vinylstats.application.cache.base_cache import DEFAULT_TTL_SECONDS, InMemoryCache

logger = logging.getLogger(__name__)

AggregateKind = Literal["duration", "album", "genres", "breakdown", "playlist-uris"]


class AggregateCache:
    """TTL cache for aggregate results keyed by ``"<kind>:<entityId>"``."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        coalesce: bool = False,
    ) -> None:
        """Initialize aggregate cache.

        Args:
            ttl_seconds: Lifetime of every cached aggregate (default 15 minutes)
            clock: Time source, injectable for tests
            coalesce: Default for get_or_compute's single-flight behaviour
        """
        self._cache: InMemoryCache[str, Any] = InMemoryCache(ttl_seconds, clock)
        self._coalesce = coalesce
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    @staticmethod
    def make_key(kind: str, entity_id: str) -> str:
        """Build the cache key for an aggregate."""
        return f"{kind}:{entity_id}"

    async def get(self, kind: AggregateKind, entity_id: str) -> Any | None:
        """Cached aggregate or None on miss/expiry."""
        return await self._cache.get(self.make_key(kind, entity_id))

    async def set(self, kind: AggregateKind, entity_id: str, value: Any) -> None:
        """Store an aggregate (overwrites, resets the TTL)."""
        await self._cache.set(self.make_key(kind, entity_id), value)

    async def get_or_compute(
        self,
        kind: AggregateKind,
        entity_id: str,
        compute: Callable[[], Awaitable[Any]],
        coalesce: bool | None = None,
    ) -> Any:
        """Return the cached aggregate or compute, store and return it.

        Args:
            kind: Aggregate kind (first half of the key)
            entity_id: Entity the aggregate belongs to
            compute: Zero-arg coroutine factory doing the fetch + aggregation
            coalesce: Share one in-flight computation between concurrent misses
                (None = use the cache-wide default)

        Returns:
            The aggregate

        Raises:
            Whatever ``compute`` raises; nothing is cached in that case
        """
        key = self.make_key(kind, entity_id)
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug(f"Aggregate cache hit: {key}")
            return cached

        if coalesce if coalesce is not None else self._coalesce:
            return await self._compute_coalesced(key, compute)

        logger.debug(f"Aggregate cache miss: {key}")
        value = await compute()
        await self._cache.set(key, value)
        return value

    async def _compute_coalesced(
        self, key: str, compute: Callable[[], Awaitable[Any]]
    ) -> Any:
        pending = self._in_flight.get(key)
        if pending is not None:
            logger.debug(f"Aggregate cache miss joined in-flight computation: {key}")
            # shield: one waiter being cancelled must not cancel the shared computation
            return await asyncio.shield(pending)

        logger.debug(f"Aggregate cache miss: {key}")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            value = await compute()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so a failure nobody else awaited doesn't log "never retrieved"
            future.exception()
            raise
        else:
            await self._cache.set(key, value)
            future.set_result(value)
            return value
        finally:
            self._in_flight.pop(key, None)

    def get_stats(self) -> dict[str, Any]:
        """Cache statistics plus number of coalesced computations running."""
        return {**self._cache.get_stats(), "in_flight": len(self._in_flight)}

    async def clear(self) -> None:
        """Drop everything (tests / shutdown)."""
        await self._cache.clear()
