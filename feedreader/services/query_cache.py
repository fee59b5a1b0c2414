"""Query Cache: explicit keys, TTL and invalidation.

Results are stored under the identity of the query that produced them,
e.g. ``("feeds",)`` or ``("articles", feed_id)``. Mutations invalidate the
affected keys explicitly once they succeed; nothing is refetched behind the
caller's back.

A per-key asyncio.Lock with double-checked locking makes concurrent misses on
the same key share a single backend call.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from feedreader.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
CacheKey = tuple[str, ...]

_MISSING = object()


class QueryCache:
    """In-memory map from query key to its last loaded value."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        # ttl_seconds <= 0 means entries never expire
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, Any]] = {}
        self._locks: dict[CacheKey, asyncio.Lock] = {}

    def _lookup(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        stored_at, value = entry
        if self._ttl > 0 and (self._clock() - stored_at) >= self._ttl:
            del self._entries[key]
            return _MISSING
        return value

    def _get_lock(self, key: CacheKey) -> asyncio.Lock:
        # Created lazily so the lock binds to the running loop
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def __contains__(self, key: CacheKey) -> bool:
        return self._lookup(key) is not _MISSING

    def peek(self, key: CacheKey, default: Optional[Any] = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    async def fetch(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[T]],
        force_refresh: bool = False,
    ) -> T:
        """Return the cached value for *key*, loading it on a miss.

        Loader errors propagate and leave the cache untouched.
        """
        if not force_refresh:
            value = self._lookup(key)
            if value is not _MISSING:
                return value

        async with self._get_lock(key):
            if not force_refresh:
                value = self._lookup(key)
                if value is not _MISSING:
                    return value

            logger.debug("Cache miss", key=key, force=force_refresh)
            value = await loader()
            self._entries[key] = (self._clock(), value)
            return value

    def invalidate(self, *prefix: str) -> int:
        """Drop every entry whose key starts with *prefix*.

        ``invalidate("articles")`` drops all article lists;
        ``invalidate("articles", "f1")`` only the list for feed f1.
        Returns the number of entries removed.
        """
        size = len(prefix)
        stale = [key for key in self._entries if key[:size] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Cache invalidated", prefix=prefix, count=len(stale))
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()
