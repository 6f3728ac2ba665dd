"""
In-memory memoisation cache with TTL expiry and LRU eviction.

Used to remember gateway probe results and ranked gateway lists for one
check interval.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

_MISSING = object()


@dataclass
class CacheEntry(Generic[V]):
    """Cached value with its expiry time (monotonic clock, seconds)."""

    value: V
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache(Generic[V]):
    """
    Bounded key/value cache with per-entry TTL and LRU eviction.

    All operations take an internal re-entrant lock, so a cache can be shared
    between threads as well as between coroutines.

    Args:
        ttl_seconds: Lifetime of each entry
        max_size: Maximum number of entries; the least recently used entry is
                  evicted when a new key would exceed it
        clock: Time source, ``time.monotonic`` by default
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: "OrderedDict[Hashable, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable, default: Any = None) -> Any:
        """
        Get a cached value.

        Args:
            key: Cache key
            default: Returned when the key is missing or expired

        Returns:
            The cached value, or ``default``
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return default

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.misses += 1
                return default

            self._entries.move_to_end(key)
            self.hits += 1
            return entry.value

    def put(self, key: Hashable, value: V) -> None:
        """Store a value, evicting the least recently used entries if full."""
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            else:
                self._cleanup_expired()
                while len(self._entries) >= self.max_size:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug(f"Evicted LRU cache entry {evicted!r}")

            self._entries[key] = CacheEntry(value, self._clock() + self.ttl_seconds)

    def get_or_compute(self, key: Hashable, compute: Callable[[], V]) -> V:
        """Return the cached value for ``key``, computing and storing it on a miss."""
        with self._lock:
            value = self.get(key, _MISSING)
            if value is _MISSING:
                value = compute()
                self.put(key, value)
            return value

    def _cleanup_expired(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

    def invalidate(self, key: Hashable) -> None:
        """Drop one entry if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
