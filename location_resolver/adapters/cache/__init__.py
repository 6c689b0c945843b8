"""Cache adapters - Implementations of CachePort and LookupCachePort.

Available implementations:
- InMemoryCache: Thread-safe bounded LRU with optional TTL (in-process tier)
- SQLLookupCache: SQLAlchemy-backed durable cache (SQLite / PostgreSQL)
- InMemoryLookupCache: Dict-backed durable cache for tests
- NullLookupCache: Disabled durable tier (always misses)
"""

from .memory_cache import InMemoryCache
from .memory_lookup_cache import InMemoryLookupCache
from .null_lookup_cache import NullLookupCache
from .sql_lookup_cache import SQLLookupCache

__all__ = ["InMemoryCache", "SQLLookupCache", "InMemoryLookupCache", "NullLookupCache"]
