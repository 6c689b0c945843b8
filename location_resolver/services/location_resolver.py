"""Location resolver service - Main orchestrator.

Resolves free-form location text to a confidence-scored airport or metro
area by searching the tiers in descending order:

1. In-process LRU cache
2. Durable lookup cache
3. Location repository (exact code, exact name, alias, fuzzy)
4. Static fallback table

Each tier that produces a hit populates the tiers above it. Store calls run
on a worker pool so they can be bounded by a timeout and abandoned when the
caller cancels.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import timedelta
from itertools import repeat
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from ..config import DurableCacheConfig, LookupConfig, get_config
from ..domain.errors import (
    LocationResolverError,
    LookupCancelledError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from ..domain.models import (
    AirportMatch,
    BatchLookupItem,
    DurableCacheEntry,
    LocationMatch,
    LocationType,
    LookupOptions,
    LookupResult,
    MetroMatch,
    ResultSource,
)
from ..domain.normalization import cache_key, normalize_query
from ..ports.cache import CachePort, LookupCachePort
from ..ports.clock import ClockPort
from ..ports.locations import LocationRepositoryPort
from ..ports.metrics import MetricsPort
from .fallback import lookup_fallback
from .scoring import Selection
from .strategies import DEFAULT_STRATEGIES, MatchContext, Strategy, run_strategies

R = TypeVar("R")

_CANCEL_POLL_SECONDS = 0.05
_HIT_TIERS = ("memory", "durable", "repository", "fallback")


@dataclass
class LocationResolverService:
    """Resolve user location text to IATA codes.

    Attributes:
        repository: Authoritative airport/metro dataset
        memory_cache: Bounded in-process cache of results by cache key
        durable_cache: Persisted query -> result cache
        metrics: Counter sink behind get_stats()
        clock: Time source for durable cache staleness
        lookup_config: Scoring thresholds and timeouts
        durable_config: Durable cache lifetime and timeout settings
        strategies: Repository matching strategies, in priority order
    """

    repository: LocationRepositoryPort
    memory_cache: CachePort[LookupResult]
    durable_cache: LookupCachePort
    metrics: MetricsPort
    clock: ClockPort
    lookup_config: LookupConfig = field(default_factory=lambda: get_config().lookup)
    durable_config: DurableCacheConfig = field(
        default_factory=lambda: get_config().durable_cache
    )
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES

    _executor: ThreadPoolExecutor = field(init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._executor = ThreadPoolExecutor(
            max_workers=self.lookup_config.io_workers,
            thread_name_prefix="location-io",
        )

    def lookup(
        self,
        query: Any,
        options: Optional[LookupOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> LookupResult:
        """Resolve a location query.

        Args:
            query: Free-form user text ("Toronto", "YYZ", "nyc", ...).
            options: Lookup switches; defaults prefer metros and allow fuzzy.
            cancel: Event the caller sets to abandon the lookup.

        Returns:
            The best match with its confidence and near-tie alternatives.

        Raises:
            ValidationError: If the query is empty or not a string.
            NotFoundError: If no tier produced a match.
            TransientError: If the repository failed and the fallback table
                had no answer either.
            LookupCancelledError: If ``cancel`` was set.
        """
        if not isinstance(query, str) or not query.strip():
            self.metrics.incr("errors")
            raise ValidationError("Query must be a non-empty string", query=repr(query))

        options = options or LookupOptions()
        normalized = normalize_query(query)
        key = cache_key(normalized, options.prefer_metro)

        # Tier 1: memory
        cached = self.memory_cache.get(key)
        if cached is not None:
            self.metrics.incr("hits.memory")
            self._logger.debug(
                "Memory cache hit",
                extra={"query": query, "iata_code": cached.iata_code},
            )
            return cached.with_source(ResultSource.MEMORY)

        try:
            return self._resolve_uncached(query, normalized, key, options, cancel)
        except LookupCancelledError as e:
            self.metrics.incr("errors")
            self._logger.info("Lookup cancelled", extra={"query": query})
            if not e.query:
                e.query = query
            raise

    def resolve_airport_code(self, query: Any) -> str:
        """Return just the IATA code, preferring metro codes.

        Raises:
            ValidationError: If the query is empty or not a string.
            NotFoundError: If the query cannot be resolved.
        """
        return self.lookup(query, LookupOptions(prefer_metro=True)).iata_code

    def get_airport_info(self, query: Any) -> Optional[Dict[str, Any]]:
        """Airport-level details for display, or None when unresolved."""
        try:
            result = self.lookup(query, LookupOptions(prefer_metro=False))
        except LocationResolverError as e:
            self._logger.debug(
                "Airport info unavailable", extra={"query": query, "error": str(e)}
            )
            return None
        return {"code": result.iata_code, **result.as_dict()}

    def can_resolve(self, query: Any) -> bool:
        try:
            self.lookup(query)
        except LocationResolverError:
            return False
        return True

    def lookup_many(
        self,
        queries: Sequence[str],
        options: Optional[LookupOptions] = None,
    ) -> List[BatchLookupItem]:
        """Resolve several queries independently.

        A failing query yields an item with an error message; it never fails
        the batch.

        Args:
            queries: Queries to resolve, in order.
            options: Lookup switches applied to every query.

        Returns:
            One item per query, in input order.

        Raises:
            ValidationError: If the batch is empty or exceeds the batch limit.
        """
        if not queries:
            raise ValidationError("At least one query is required", query="[]")
        limit = self.lookup_config.batch_limit
        if len(queries) > limit:
            raise ValidationError(
                f"At most {limit} queries per batch, got {len(queries)}",
                query=f"[{len(queries)} queries]",
            )

        # Separate pool: lookups submit their store calls to self._executor
        workers = min(self.lookup_config.io_workers, len(queries))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="location-batch"
        ) as pool:
            return list(pool.map(self._lookup_item, queries, repeat(options)))

    def _lookup_item(
        self, query: str, options: Optional[LookupOptions]
    ) -> BatchLookupItem:
        try:
            return BatchLookupItem(query=str(query), result=self.lookup(query, options))
        except LocationResolverError as e:
            return BatchLookupItem(query=str(query), error=e.message)

    def get_stats(self) -> Dict[str, Any]:
        """Counters for observability.

        Keys follow the snake_case form of the usual ``hits``, ``misses``,
        ``errors``, ``cacheSize`` and ``hitRate`` names.

        Returns:
            ``hits`` per tier, ``misses``, ``errors``, the memory ``cache_size``
            and ``hit_rate``, the percentage of cache hits over cache hits plus
            misses.
        """
        counts = self.metrics.snapshot()
        hits = {tier: counts.get(f"hits.{tier}", 0) for tier in _HIT_TIERS}
        misses = counts.get("misses", 0)
        cache_hits = hits["memory"] + hits["durable"]
        total = cache_hits + misses
        return {
            "hits": hits,
            "misses": misses,
            "errors": counts.get("errors", 0),
            "cache_size": self.memory_cache.size(),
            "hit_rate": round(cache_hits / total * 100, 2) if total else 0.0,
        }

    def clear_cache(self) -> int:
        """Empty the memory cache, returning how many entries were dropped."""
        cleared = self.memory_cache.clear()
        self._logger.info("Memory cache cleared", extra={"entries": cleared})
        return cleared

    def clear_db_cache(self, older_than_days: Optional[int] = None) -> int:
        """Purge durable cache entries not accessed recently.

        Args:
            older_than_days: Age threshold; defaults to the retention window.

        Returns:
            Number of purged entries, 0 if the store failed.
        """
        days = (
            older_than_days
            if older_than_days is not None
            else self.durable_config.retention_days
        )
        if days < 0:
            raise ValidationError(
                f"older_than_days must be >= 0, got {days}", query=str(days)
            )

        cutoff = self.clock.now() - timedelta(days=days)
        try:
            purged = self._call_bounded(
                "durable_cache",
                self.durable_config.timeout_seconds,
                self.durable_cache.purge_older_than,
                cutoff,
            )
        except TransientError as e:
            self.metrics.incr("errors")
            self._logger.error(
                "Durable cache purge failed",
                extra={"older_than_days": days, "error": str(e)},
            )
            return 0

        self._logger.info(
            "Durable cache purged",
            extra={"older_than_days": days, "deleted": purged},
        )
        return purged

    def _resolve_uncached(
        self,
        query: str,
        normalized: str,
        key: str,
        options: LookupOptions,
        cancel: Optional[threading.Event],
    ) -> LookupResult:
        self._check_cancelled(cancel, query)

        # Tier 2: durable cache
        durable = self._lookup_durable(key, query, cancel)
        if durable is not None:
            self.metrics.incr("hits.durable")
            self.memory_cache.set(key, durable)
            self._logger.info(
                "Durable cache hit",
                extra={"query": query, "iata_code": durable.iata_code},
            )
            return durable

        self._check_cancelled(cancel, query)

        # Tier 3: repository strategies
        try:
            selection = self._match_repository(normalized, options, cancel)
        except TransientError as e:
            self.metrics.incr("errors")
            self._logger.warning(
                "Repository lookup failed, trying fallback table",
                extra={"query": query, "error": str(e), "timed_out": e.timed_out},
            )
            recovered = self._fallback(query)
            if recovered is None:
                raise
            # Not cached: the repository should answer again once it recovers
            self.metrics.incr("hits.fallback")
            self._logger.info(
                "Fallback recovery",
                extra={"query": query, "iata_code": recovered.iata_code},
            )
            return recovered

        if selection is not None:
            result = LookupResult.from_match(
                selection.winner, selection.alternatives, ResultSource.REPOSITORY
            )
            self.metrics.incr("hits.repository")
            self._store_durable(key, result)
            self.memory_cache.set(key, result)
            self._logger.info(
                "Repository match",
                extra={
                    "query": query,
                    "iata_code": result.iata_code,
                    "type": result.type.value,
                    "confidence": result.confidence,
                    "alternatives": len(result.alternatives),
                },
            )
            return result

        # Tier 4: static fallback table
        fallback = self._fallback(query)
        if fallback is not None:
            self.metrics.incr("hits.fallback")
            self.memory_cache.set(key, fallback)
            self._logger.info(
                "Fallback table hit",
                extra={"query": query, "iata_code": fallback.iata_code},
            )
            return fallback

        self.metrics.incr("misses")
        self.metrics.incr("errors")
        self._logger.info("Location not found", extra={"query": query})
        raise NotFoundError(
            f'Could not resolve a location for "{query}". Use a 3-letter IATA '
            "code (e.g. JFK, LAX) or a known city name.",
            query=query,
        )

    def close(self) -> None:
        """Stop the store worker pool."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _match_repository(
        self,
        normalized: str,
        options: LookupOptions,
        cancel: Optional[threading.Event],
    ) -> Optional[Selection]:
        stop = threading.Event()
        ctx = MatchContext(
            repository=self.repository,
            query=normalized,
            options=options,
            config=self.lookup_config,
            cancel=stop,
        )
        return self._call_bounded(
            "repository",
            self.lookup_config.repository_timeout_seconds,
            run_strategies,
            ctx,
            self.strategies,
            cancel=cancel,
            stop=stop,
        )

    def _lookup_durable(
        self,
        key: str,
        query: str,
        cancel: Optional[threading.Event],
    ) -> Optional[LookupResult]:
        timeout = self.durable_config.timeout_seconds
        try:
            entry = self._call_bounded(
                "durable_cache", timeout, self.durable_cache.get, key, cancel=cancel
            )
        except TransientError as e:
            self.metrics.incr("errors")
            self._logger.warning(
                "Durable cache read failed, continuing",
                extra={"query": query, "error": str(e), "timed_out": e.timed_out},
            )
            return None

        if entry is None or entry.confidence < self.lookup_config.min_confidence:
            return None

        now = self.clock.now()
        max_age = timedelta(days=self.durable_config.ttl_days)
        if entry.last_accessed is not None and now - entry.last_accessed > max_age:
            self._logger.debug(
                "Durable cache entry stale",
                extra={"query": query, "last_accessed": entry.last_accessed.isoformat()},
            )
            return None

        try:
            match = self._call_bounded(
                "repository",
                self.lookup_config.repository_timeout_seconds,
                self._resolve_entry,
                entry,
                cancel=cancel,
            )
        except TransientError as e:
            self.metrics.incr("errors")
            self._logger.warning(
                "Could not refresh cached location",
                extra={"query": query, "error": str(e)},
            )
            return None

        if match is None:
            self._logger.info(
                "Cached location no longer in dataset",
                extra={"query": query, "iata_code": entry.result_iata_code},
            )
            return None

        try:
            self._call_bounded(
                "durable_cache", timeout, self.durable_cache.record_hit, key, now
            )
        except TransientError as e:
            self.metrics.incr("errors")
            self._logger.warning(
                "Durable cache hit count not updated",
                extra={"query": query, "error": str(e)},
            )

        return LookupResult.from_match(
            match, entry.alternatives, ResultSource.DURABLE_CACHE
        )

    def _resolve_entry(self, entry: DurableCacheEntry) -> Optional[LocationMatch]:
        """Re-read the cached location so the result carries current details."""
        if entry.result_type is LocationType.METRO:
            metro = self.repository.find_metro_by_code(entry.result_iata_code)
            return MetroMatch(metro, entry.confidence) if metro else None
        airport = self.repository.find_airport_by_code(entry.result_iata_code)
        return AirportMatch(airport, entry.confidence) if airport else None

    def _store_durable(self, key: str, result: LookupResult) -> None:
        entry = DurableCacheEntry.from_result(key, result)
        try:
            self._call_bounded(
                "durable_cache",
                self.durable_config.timeout_seconds,
                self.durable_cache.upsert,
                entry,
                self.clock.now(),
            )
        except TransientError as e:
            self.metrics.incr("errors")
            self._logger.warning(
                "Durable cache write failed",
                extra={"query": key, "error": str(e)},
            )

    def _fallback(self, query: str) -> Optional[LookupResult]:
        return lookup_fallback(
            query,
            confidence=self.lookup_config.fallback_confidence,
            code_confidence=self.lookup_config.fallback_code_confidence,
        )

    def _check_cancelled(self, cancel: Optional[threading.Event], query: str) -> None:
        if cancel is not None and cancel.is_set():
            raise LookupCancelledError("Lookup cancelled", query=query)

    def _call_bounded(
        self,
        tier: str,
        timeout: Optional[float],
        fn: Callable[..., R],
        *args: Any,
        cancel: Optional[threading.Event] = None,
        stop: Optional[threading.Event] = None,
    ) -> R:
        """Run a store call under a timeout and the caller's cancel event.

        Failures other than cancellation surface as TransientError so the
        caller can fall through to the next tier.

        Args:
            tier: Tier name reported in errors.
            timeout: Seconds to wait; None waits indefinitely.
            fn: The store call.
            *args: Arguments for ``fn``.
            cancel: Caller's cancel event, polled while waiting.
            stop: Event observed by ``fn``; set when the call is abandoned.

        Raises:
            TransientError: If the call failed or timed out.
            LookupCancelledError: If the caller cancelled.
        """
        if timeout is None and cancel is None:
            try:
                return fn(*args)
            except (LookupCancelledError, TransientError):
                raise
            except Exception as e:
                raise TransientError(f"{tier} call failed", tier=tier, cause=e)

        future = self._executor.submit(fn, *args)
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            wait = None if deadline is None else max(0.0, deadline - time.monotonic())
            if cancel is not None:
                wait = _CANCEL_POLL_SECONDS if wait is None else min(wait, _CANCEL_POLL_SECONDS)

            try:
                return future.result(timeout=wait)
            except FutureTimeoutError:
                if future.done():
                    # fn itself raised TimeoutError
                    raise TransientError(
                        f"{tier} call failed", tier=tier, cause=future.exception()
                    )
            except (LookupCancelledError, TransientError):
                raise
            except Exception as e:
                raise TransientError(f"{tier} call failed", tier=tier, cause=e)

            if cancel is not None and cancel.is_set():
                future.cancel()
                if stop is not None:
                    stop.set()
                raise LookupCancelledError(f"Lookup cancelled during {tier} call")

            if deadline is not None and time.monotonic() >= deadline:
                future.cancel()
                if stop is not None:
                    stop.set()
                raise TransientError(
                    f"{tier} call timed out after {timeout}s",
                    tier=tier,
                    timed_out=True,
                )
