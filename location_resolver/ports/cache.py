"""Cache ports - Injectable caching abstractions.

Two tiers sit above the location repository:
- CachePort: the bounded in-process cache, consulted first
- LookupCachePort: the durable query -> result cache, consulted second
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, TypeVar

if TYPE_CHECKING:
    from ..domain.models import DurableCacheEntry

T = TypeVar("T")


class CachePort(Protocol[T]):
    """Port for the in-process cache.

    Implementations:
    - adapters/cache/memory_cache.py (InMemoryCache)

    Implementations must be safe under concurrent use and must never hold
    more entries than their configured capacity.
    """

    def get(self, key: str) -> Optional[T]:
        """Get a value from the cache.

        Args:
            key: The cache key.

        Returns:
            The cached value, or None if not found or expired.
        """
        ...

    def set(self, key: str, value: T) -> None:
        """Set a value in the cache, evicting if at capacity.

        Args:
            key: The cache key.
            value: The value to cache.
        """
        ...

    def clear(self) -> int:
        """Clear all entries from the cache.

        Returns:
            Number of entries that were cleared.
        """
        ...

    def invalidate(self, key: str) -> bool:
        """Invalidate a specific cache entry.

        Args:
            key: The cache key to invalidate.

        Returns:
            True if the key existed and was removed, False otherwise.
        """
        ...

    def size(self) -> int:
        """Return the number of entries in the cache."""
        ...

    def stats(self) -> Dict[str, Any]:
        """Return hit/miss counts and size."""
        ...


class LookupCachePort(Protocol):
    """Port for the durable lookup cache.

    Implementations:
    - adapters/cache/sql_lookup_cache.py (SQLLookupCache) - Production
    - adapters/cache/memory_lookup_cache.py (InMemoryLookupCache) - Tests, no DB
    - adapters/cache/null_lookup_cache.py (NullLookupCache) - Tier disabled

    Staleness is decided by the caller from ``last_accessed``; the store only
    persists. Any store failure may surface as an arbitrary exception, the
    resolver treats it as a miss.
    """

    def get(self, key: str) -> Optional[DurableCacheEntry]:
        """Fetch the entry stored under key, stale or not."""
        ...

    def upsert(self, entry: DurableCacheEntry, now: datetime) -> None:
        """Insert with hit_count=1, or overwrite and increment hit_count.

        Args:
            entry: The entry to persist.
            now: Timestamp written to last_accessed.
        """
        ...

    def record_hit(self, key: str, now: datetime) -> None:
        """Increment hit_count and refresh last_accessed."""
        ...

    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete entries last accessed before cutoff.

        Returns:
            Number of deleted entries.
        """
        ...

    def clear(self) -> int:
        """Delete every entry, returning how many were removed."""
        ...

    def size(self) -> int:
        """Return the number of stored entries."""
        ...
