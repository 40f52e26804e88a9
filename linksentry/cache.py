"""In-memory TTL cache for LinkSentry.

Holds the results of expensive external lookups (RDAP registration dates)
for a fixed lifetime. Entries are stale once the clock passes their expiry
and are dropped on the next read. Capacity is bounded: when full, the least
recently used entry is evicted.

The cache is handed to the components that use it rather than living at
module level, so tests and independent engine instances never share state.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional

from .constants import DOMAIN_AGE_CACHE_MAX_ENTRIES, DOMAIN_AGE_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class CacheEntry:
    """Represents a cached value with its creation and expiry times."""

    __slots__ = ("value", "created_at", "expires_at")

    def __init__(self, value: Any, created_at: float, expires_at: float):
        self.value = value
        self.created_at = created_at
        self.expires_at = expires_at

    def is_expired(self, now: float) -> bool:
        """Check if this entry has expired."""
        return now > self.expires_at


class CacheManager:
    """
    Bounded in-memory cache with per-entry TTL and LRU eviction.

    Usage:
        cache = CacheManager(ttl_seconds=6 * 3600, max_entries=10_000, namespace="rdap")

        cache.set("example.com", created_at)
        cached = cache.get("example.com")

        value = await cache.get_or_fetch("example.com", fetch_async_fn)

    Concurrent writers for the same key are not coordinated: the last write
    wins.
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        max_entries: Optional[int] = None,
        namespace: str = "",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache manager.

        Args:
            ttl_seconds: Default TTL for cache entries
            max_entries: Capacity before LRU eviction (None = unbounded)
            namespace: Prefix for cache keys (e.g., "rdap")
            clock: Source of the current time in epoch seconds
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.namespace = namespace
        self._clock = clock

        self._memory: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _make_key(self, key: str) -> str:
        """Generate full cache key with namespace."""
        if self.namespace:
            return f"{self.namespace}:{key}"
        return key

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for a key, discarding it if stale."""
        full_key = self._make_key(key)
        now = self._clock()

        with self._lock:
            entry = self._memory.get(full_key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._memory[full_key]
                self._misses += 1
                return None
            self._memory.move_to_end(full_key)
            self._hits += 1
            return entry

    def get(self, key: str) -> Optional[Any]:
        """
        Get cached value if exists and not expired.

        Args:
            key: Cache key (will be prefixed with namespace)

        Returns:
            Cached value or None if not found/expired
        """
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
    ) -> CacheEntry:
        """
        Set cached value.

        Args:
            key: Cache key (will be prefixed with namespace)
            value: Value to cache
            ttl_seconds: Override default TTL for this entry
        """
        full_key = self._make_key(key)
        now = self._clock()
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(value=value, created_at=now, expires_at=now + ttl)

        with self._lock:
            self._memory[full_key] = entry
            self._memory.move_to_end(full_key)
            if self.max_entries is not None:
                while len(self._memory) > self.max_entries:
                    evicted, _ = self._memory.popitem(last=False)
                    self._evictions += 1
                    logger.debug("Evicted cache entry %s", evicted)
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._memory)

    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[int] = None,
    ) -> Any:
        """
        Get cached value or fetch and cache it.

        A fetch returning None is not cached, so failed lookups are retried on
        the next call.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = await fetch_fn()
        if value is not None:
            self.set(key, value, ttl_seconds)
        return value

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "namespace": self.namespace,
                "ttl_seconds": self.ttl_seconds,
                "max_entries": self.max_entries,
                "memory_entries": len(self._memory),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }


def create_domain_age_cache(
    ttl_seconds: int = DOMAIN_AGE_CACHE_TTL_SECONDS,
    max_entries: int = DOMAIN_AGE_CACHE_MAX_ENTRIES,
    clock: Callable[[], float] = time.time,
) -> CacheManager:
    """Create cache for RDAP registration-date lookups (memory-only)."""
    return CacheManager(
        ttl_seconds=ttl_seconds,
        max_entries=max_entries,
        namespace="rdap",
        clock=clock,
    )
