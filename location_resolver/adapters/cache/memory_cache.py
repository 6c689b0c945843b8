"""Thread-safe bounded in-memory cache.

The fastest lookup tier. Entries are evicted least-recently-used first:
reads move an entry to the most-recent end, so hot queries survive a burst
of one-off lookups.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass
class InMemoryCache(Generic[T]):
    """Thread-safe LRU cache with optional TTL.

    This cache implements the CachePort protocol. All reads and writes
    happen under one lock, so concurrent callers never observe a partial
    entry and concurrent inserts cannot push the size past max_size.

    Attributes:
        max_size: Maximum number of entries (None = unlimited)
        default_ttl_seconds: Default time-to-live for entries (None = no expiry)
        name: Cache name for logging

    Example:
        cache = InMemoryCache[LookupResult](name="locations", max_size=1000)
        cache.set("toronto:metro", result)
    """

    max_size: Optional[int] = 1000
    default_ttl_seconds: Optional[float] = None
    name: str = "cache"

    _store: "OrderedDict[str, Tuple[Any, float]]" = field(
        default_factory=OrderedDict, repr=False
    )
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    # Statistics
    _hits: int = field(default=0, repr=False)
    _misses: int = field(default=0, repr=False)
    _evictions: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        if self.max_size is not None and self.max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {self.max_size}")
        self._logger = logging.getLogger(f"cache.{self.name}")

    def get(self, key: str) -> Optional[T]:
        """Get a value from the cache.

        Args:
            key: The cache key.

        Returns:
            The cached value, or None if not found or expired.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expiry = entry
            if time.monotonic() > expiry:
                del self._store[key]
                self._logger.debug("Cache entry expired", extra={"key": key})
                self._misses += 1
                return None

            self._store.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Set a value in the cache.

        Args:
            key: The cache key.
            value: The value to cache.
            ttl: Optional TTL override for this entry.
        """
        effective_ttl = ttl if ttl is not None else self.default_ttl_seconds
        expiry = (
            time.monotonic() + effective_ttl
            if effective_ttl is not None
            else float("inf")
        )

        with self._lock:
            if key in self._store:
                self._store.move_to_end(key)
            elif self.max_size is not None:
                while len(self._store) >= self.max_size:
                    oldest_key, _ = self._store.popitem(last=False)
                    self._evictions += 1
                    self._logger.debug(
                        "Cache evicted entry",
                        extra={"key": oldest_key, "reason": "max_size"},
                    )

            self._store[key] = (value, expiry)
            self._logger.debug(
                "Cache entry set",
                extra={"key": key, "ttl": effective_ttl},
            )

    def clear(self) -> int:
        """Clear all entries from the cache.

        Returns:
            Number of entries that were cleared.
        """
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._logger.info("Cache cleared", extra={"entries_cleared": count})
            return count

    def invalidate(self, key: str) -> bool:
        """Invalidate a specific cache entry.

        Args:
            key: The cache key to invalidate.

        Returns:
            True if the key existed and was removed.
        """
        with self._lock:
            if key in self._store:
                del self._store[key]
                self._logger.debug("Cache entry invalidated", extra={"key": key})
                return True
            return False

    def size(self) -> int:
        """Return the number of entries in the cache."""
        with self._lock:
            return len(self._store)

    def stats(self) -> Dict[str, Any]:
        """Return cache statistics.

        Returns:
            Dictionary with hit/miss/eviction counts and size.
        """
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0
            return {
                "size": len(self._store),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate_percent": round(hit_rate, 1),
            }
