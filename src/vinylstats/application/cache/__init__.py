"""Caching layer - TTL caches for reducing catalog API calls."""

from vinylstats.application.cache.aggregate_cache import AggregateCache, AggregateKind
from vinylstats.application.cache.base_cache import BaseCache, CacheEntry, InMemoryCache

__all__ = [
    "AggregateCache",
    "AggregateKind",
    "BaseCache",
    "CacheEntry",
    "InMemoryCache",
]
