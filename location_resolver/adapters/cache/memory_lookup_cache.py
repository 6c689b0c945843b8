"""In-memory durable-cache stand-in.

Implements LookupCachePort with a lock-guarded dict. Used in tests and in
deployments that run without a database; entries do not survive restarts.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Optional

from ...domain.models import DurableCacheEntry


@dataclass
class InMemoryLookupCache:
    """Thread-safe dict-backed LookupCachePort.

    Attributes:
        name: Cache name for logging
    """

    name: str = "lookup"

    _entries: Dict[str, DurableCacheEntry] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(f"cache.{self.name}")

    def get(self, key: str) -> Optional[DurableCacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def upsert(self, entry: DurableCacheEntry, now: datetime) -> None:
        with self._lock:
            existing = self._entries.get(entry.query)
            if existing is None:
                self._entries[entry.query] = replace(
                    entry, hit_count=1, last_accessed=now, created_at=now
                )
            else:
                self._entries[entry.query] = replace(
                    entry,
                    hit_count=existing.hit_count + 1,
                    last_accessed=now,
                    created_at=existing.created_at,
                )

    def record_hit(self, key: str, now: datetime) -> None:
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                self._entries[key] = replace(
                    existing, hit_count=existing.hit_count + 1, last_accessed=now
                )

    def purge_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [
                key
                for key, entry in self._entries.items()
                if entry.last_accessed is not None and entry.last_accessed < cutoff
            ]
            for key in stale:
                del self._entries[key]
        self._logger.info(
            "Purged old lookup cache entries", extra={"deleted": len(stale)}
        )
        return len(stale)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def size(self) -> int:
        with self._lock:
            return len(self._entries)
