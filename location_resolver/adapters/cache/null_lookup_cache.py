"""Null durable cache, used when the durable tier is disabled.

Every read misses and every write is dropped, so the resolver goes
straight from the in-process cache to the repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...domain.models import DurableCacheEntry


@dataclass
class NullLookupCache:
    """No-op LookupCachePort - always misses."""

    name: str = "null"

    def get(self, key: str) -> Optional[DurableCacheEntry]:
        """Always returns None (cache miss)."""
        return None

    def upsert(self, entry: DurableCacheEntry, now: datetime) -> None:
        """Does nothing."""
        pass

    def record_hit(self, key: str, now: datetime) -> None:
        """Does nothing."""
        pass

    def purge_older_than(self, cutoff: datetime) -> int:
        """Does nothing, returns 0."""
        return 0

    def clear(self) -> int:
        """Does nothing, returns 0."""
        return 0

    def size(self) -> int:
        """Always returns 0."""
        return 0
