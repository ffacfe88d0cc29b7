"""TTL cache for search responses."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Generic, TypeVar

from cachetools import TTLCache

T = TypeVar("T")


class CacheManager(Generic[T]):
    """Thin async-friendly wrapper around ``cachetools.TTLCache``."""

    def __init__(
        self,
        maxsize: int,
        ttl_seconds: float,
        *,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TTLCache[str, T] = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=timer)
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def maxsize(self) -> int:
        return int(self._cache.maxsize)

    @property
    def ttl(self) -> float:
        return float(self._cache.ttl)

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, key: str) -> T | None:
        """Return a cached value if it exists and is still valid."""

        async with self._lock:
            value = self._cache.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
            return value

    async def set(self, key: str, value: T) -> None:
        """Store a value in the cache."""

        async with self._lock:
            self._cache[key] = value

    async def expire(self) -> None:
        """Drop entries whose TTL has elapsed."""

        async with self._lock:
            self._cache.expire()

    async def clear(self) -> int:
        """Remove all cached entries and return how many were dropped."""

        async with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count


__all__ = ["CacheManager"]
