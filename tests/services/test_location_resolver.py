"""Tests for the LocationResolverService facade."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from location_resolver.adapters.cache import InMemoryCache, InMemoryLookupCache
from location_resolver.adapters.locations import CSVLocationRepository
from location_resolver.config import DurableCacheConfig, LookupConfig
from location_resolver.domain.errors import (
    LookupCancelledError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from location_resolver.domain.models import LocationType, LookupOptions, ResultSource

AIRPORT_MODE = LookupOptions(prefer_metro=False)


class SlowRepository:
    """Delegates to a real repository, sleeping before name lookups."""

    def __init__(self, inner, delay=0.5):
        self.inner = inner
        self.delay = delay

    def find_metros_by_name(self, name):
        time.sleep(self.delay)
        return self.inner.find_metros_by_name(name)

    def __getattr__(self, name):
        return getattr(self.inner, name)


def codes(result):
    return [alt.iata_code for alt in result.alternatives]


# Resolution scenarios


def test_city_name_resolves_to_metro_with_member_alternatives(resolver):
    result = resolver.lookup("Toronto")

    assert result.type is LocationType.METRO
    assert result.iata_code == "YTO"
    assert result.confidence == 1.0
    assert result.source is ResultSource.REPOSITORY
    assert codes(result) == ["YYZ", "YTZ"]


def test_misspelled_city_resolves_through_fuzzy_matching(resolver):
    result = resolver.lookup("torotno")

    assert result.iata_code == "YTO"
    assert result.confidence == 0.57
    assert codes(result) == ["YYZ", "YTZ"]


def test_misspelled_city_in_airport_mode(resolver):
    result = resolver.lookup("torotno", AIRPORT_MODE)

    assert result.type is LocationType.AIRPORT
    assert result.iata_code == "YYZ"
    assert result.confidence == 0.57
    assert codes(result) == ["YTZ"]


def test_fuzzy_matching_can_be_disabled(resolver):
    with pytest.raises(NotFoundError):
        resolver.lookup("torotno", LookupOptions(fuzzy=False))


@pytest.mark.parametrize(
    "query, options, code, kind, confidence",
    [
        ("YYZ", LookupOptions(), "YTO", LocationType.METRO, 0.95),
        ("yyz", AIRPORT_MODE, "YYZ", LocationType.AIRPORT, 1.0),
        ("NYC", LookupOptions(), "NYC", LocationType.METRO, 1.0),
        ("SFO", LookupOptions(), "SFO", LocationType.AIRPORT, 1.0),
        ("Newark", LookupOptions(), "NYC", LocationType.METRO, 0.95),
        ("Newark", AIRPORT_MODE, "EWR", LocationType.AIRPORT, 0.95),
        ("Pearson", LookupOptions(), "YTO", LocationType.METRO, 0.95),
        ("Pearson", AIRPORT_MODE, "YYZ", LocationType.AIRPORT, 1.0),
        ("Frisco", LookupOptions(), "SFO", LocationType.AIRPORT, 0.9),
        ("Big Apple", LookupOptions(), "NYC", LocationType.METRO, 0.95),
        ("Big Apple", AIRPORT_MODE, "JFK", LocationType.AIRPORT, 0.7),
        ("the Toronto Airport", LookupOptions(), "YTO", LocationType.METRO, 1.0),
    ],
)
def test_resolution_matrix(resolver, query, options, code, kind, confidence):
    result = resolver.lookup(query, options)

    assert result.iata_code == code
    assert result.type is kind
    assert result.confidence == confidence


def test_exact_code_does_not_fall_through_to_fuzzy(resolver, counting_repository):
    resolver.lookup("SFO")

    assert counting_repository.calls["search_airports"] == 0
    assert counting_repository.calls["search_metros"] == 0


def test_alternatives_never_include_the_winner(resolver):
    result = resolver.lookup("New York")

    assert result.iata_code == "NYC"
    assert "NYC" not in codes(result)
    assert codes(result) == ["JFK", "LGA"]


def test_max_results_caps_alternatives(resolver):
    result = resolver.lookup("Toronto", LookupOptions(max_results=1))
    assert codes(result) == ["YYZ"]


def test_unknown_city_is_not_found(resolver):
    with pytest.raises(NotFoundError) as exc_info:
        resolver.lookup("xqzw")

    assert exc_info.value.query == "xqzw"
    assert "3-letter IATA code" in exc_info.value.message


def test_shared_word_ending_is_not_a_fuzzy_match(make_resolver):
    """Springfield shares only "field" with Lindbergh Field and Hartsfield."""
    resolver = make_resolver(CSVLocationRepository())

    with pytest.raises(NotFoundError):
        resolver.lookup("Springfield")


@pytest.mark.parametrize("word", ["cat", "the"])
def test_short_word_falls_back_instead_of_fuzzy_matching(make_resolver, word):
    resolver = make_resolver(CSVLocationRepository())

    result = resolver.lookup(word)

    assert result.source is ResultSource.FALLBACK
    assert result.iata_code == word.upper()


def test_unknown_three_letter_code_is_assumed_valid(resolver):
    result = resolver.lookup("QQQ")

    assert result.iata_code == "QQQ"
    assert result.source is ResultSource.FALLBACK
    assert result.confidence == 0.8
    assert result.city == "Unknown"


def test_inactive_airport_is_only_known_to_the_fallback(resolver):
    result = resolver.lookup("OLD")

    assert result.source is ResultSource.FALLBACK
    assert result.name == "OLD Airport"


def test_city_missing_from_dataset_uses_fallback_table(resolver):
    result = resolver.lookup("Miami")

    assert result.iata_code == "MIA"
    assert result.source is ResultSource.FALLBACK
    assert result.confidence == 0.9
    assert result.alternatives == ()


@pytest.mark.parametrize("query", ["", "   ", None, 42, ["YYZ"]])
def test_invalid_queries_are_rejected(resolver, query):
    with pytest.raises(ValidationError):
        resolver.lookup(query)

    assert resolver.get_stats()["errors"] == 1


# Caching


def test_repeat_lookup_is_served_from_memory(resolver, counting_repository):
    first = resolver.lookup("NYC")
    calls = counting_repository.total_calls

    second = resolver.lookup("nyc")

    assert counting_repository.total_calls == calls
    assert second.source is ResultSource.MEMORY
    assert (second.iata_code, second.confidence) == (first.iata_code, first.confidence)


def test_lookup_modes_are_cached_separately(resolver):
    assert resolver.lookup("YYZ").iata_code == "YTO"
    assert resolver.lookup("YYZ", AIRPORT_MODE).iata_code == "YYZ"


def test_durable_cache_hit_after_memory_is_cleared(resolver, lookup_cache):
    resolver.lookup("Toronto")
    assert lookup_cache.get("toronto:metro").hit_count == 1

    resolver.clear_cache()
    result = resolver.lookup("Toronto")

    assert result.source is ResultSource.DURABLE_CACHE
    assert result.iata_code == "YTO"
    assert codes(result) == ["YYZ", "YTZ"]
    assert lookup_cache.get("toronto:metro").hit_count == 2
    assert resolver.get_stats()["hits"]["durable"] == 1


def test_durable_hit_repopulates_memory(resolver):
    resolver.lookup("Toronto")
    resolver.clear_cache()
    resolver.lookup("Toronto")

    assert resolver.lookup("Toronto").source is ResultSource.MEMORY


def test_stale_durable_entry_is_resolved_again(resolver, lookup_cache, clock):
    resolver.lookup("Toronto")
    resolver.clear_cache()
    clock.advance(days=8)

    result = resolver.lookup("Toronto")

    assert result.source is ResultSource.REPOSITORY
    entry = lookup_cache.get("toronto:metro")
    assert entry.hit_count == 2
    assert entry.last_accessed == clock.now()


def test_durable_entry_below_min_confidence_is_ignored(
    make_resolver, repository, lookup_cache
):
    lenient = make_resolver(
        repository,
        durable_cache=lookup_cache,
        lookup_config=LookupConfig(min_confidence=0.5),
    )
    assert lenient.lookup("Big Apple", AIRPORT_MODE).confidence == 0.7

    strict = make_resolver(
        repository,
        durable_cache=lookup_cache,
        lookup_config=LookupConfig(min_confidence=0.8),
    )
    result = strict.lookup("Big Apple", AIRPORT_MODE)

    # The weak alias is skipped; fuzzy matching on the alias text wins
    assert result.source is ResultSource.REPOSITORY
    assert result.confidence == 1.0


def test_fallback_results_are_not_persisted(resolver, lookup_cache):
    resolver.lookup("Miami")
    assert lookup_cache.size() == 0


def test_durable_write_failure_does_not_fail_lookup(make_resolver, repository):
    broken = MagicMock(spec=InMemoryLookupCache)
    broken.get.return_value = None
    broken.upsert.side_effect = RuntimeError("disk full")
    service = make_resolver(repository, durable_cache=broken)

    result = service.lookup("Toronto")

    assert result.iata_code == "YTO"
    assert service.get_stats()["errors"] == 1
    assert service.lookup("Toronto").source is ResultSource.MEMORY


def test_durable_read_failure_falls_through_to_repository(make_resolver, repository):
    broken = MagicMock(spec=InMemoryLookupCache)
    broken.get.side_effect = RuntimeError("connection reset")
    service = make_resolver(repository, durable_cache=broken)

    assert service.lookup("Toronto").source is ResultSource.REPOSITORY


def test_memory_cache_capacity_is_respected(make_resolver, repository):
    service = make_resolver(repository, memory_cache=InMemoryCache(max_size=2))
    for query in ("NYC", "YTO", "SFO", "JFK"):
        service.lookup(query)

    assert service.get_stats()["cache_size"] == 2


# Failures, timeouts and cancellation


def test_repository_outage_is_answered_by_fallback(make_resolver, failing_repository):
    service = make_resolver(failing_repository)

    result = service.lookup("New York")

    assert result.iata_code == "JFK"
    assert result.source is ResultSource.FALLBACK
    assert result.confidence == 0.9
    assert service.get_stats()["errors"] == 1


def test_fallback_recovery_is_not_cached(make_resolver, failing_repository):
    service = make_resolver(failing_repository)
    service.lookup("New York")

    assert service.get_stats()["cache_size"] == 0


def test_repository_outage_without_fallback_raises_transient(
    make_resolver, failing_repository
):
    service = make_resolver(failing_repository)

    with pytest.raises(TransientError) as exc_info:
        service.lookup("Springfield")

    assert exc_info.value.tier == "repository"
    assert isinstance(exc_info.value.cause, ConnectionError)


def test_slow_repository_times_out_into_fallback(make_resolver, repository):
    service = make_resolver(
        SlowRepository(repository),
        lookup_config=LookupConfig(repository_timeout_seconds=0.05),
    )

    started = time.monotonic()
    result = service.lookup("Toronto")

    assert time.monotonic() - started < 0.4
    assert result.iata_code == "YYZ"
    assert result.source is ResultSource.FALLBACK


def test_timeout_without_fallback_reports_timed_out(make_resolver, repository):
    service = make_resolver(
        SlowRepository(repository),
        lookup_config=LookupConfig(repository_timeout_seconds=0.05),
    )

    with pytest.raises(TransientError) as exc_info:
        service.lookup("Springfield")

    assert exc_info.value.timed_out


def test_pre_cancelled_lookup_never_touches_the_repository(
    resolver, counting_repository
):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(LookupCancelledError) as exc_info:
        resolver.lookup("Toronto", cancel=cancel)

    assert exc_info.value.query == "Toronto"
    assert counting_repository.total_calls == 0
    assert resolver.get_stats()["errors"] == 1


def test_cancel_during_repository_call(make_resolver, repository):
    service = make_resolver(
        SlowRepository(repository),
        lookup_config=LookupConfig(repository_timeout_seconds=None),
    )
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()

    try:
        with pytest.raises(LookupCancelledError):
            service.lookup("Toronto", cancel=cancel)
    finally:
        timer.cancel()

    assert service.get_stats()["cache_size"] == 0


def test_cancelled_lookup_is_not_recovered_by_fallback(resolver):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(LookupCancelledError):
        resolver.lookup("New York", cancel=cancel)


# Convenience operations


def test_resolve_airport_code_prefers_metro(resolver):
    assert resolver.resolve_airport_code("Pearson") == "YTO"


def test_resolve_airport_code_raises_when_unresolved(resolver):
    with pytest.raises(NotFoundError):
        resolver.resolve_airport_code("xqzw")


def test_get_airport_info_returns_airport_details(resolver):
    info = resolver.get_airport_info("Toronto")

    assert info["code"] == "YYZ"
    assert info["iataCode"] == "YYZ"
    assert info["type"] == "airport"
    assert info["icaoCode"] == "CYYZ"
    assert info["city"] == "Toronto"


@pytest.mark.parametrize("query", ["xqzw", ""])
def test_get_airport_info_returns_none_when_unresolved(resolver, query):
    assert resolver.get_airport_info(query) is None


@pytest.mark.parametrize(
    "query, expected", [("Toronto", True), ("QQQ", True), ("xqzw", False), ("", False)]
)
def test_can_resolve(resolver, query, expected):
    assert resolver.can_resolve(query) is expected


def test_lookup_many_keeps_order_and_isolates_failures(resolver):
    items = resolver.lookup_many(["Toronto", "xqzw", "SFO", ""])

    assert [item.query for item in items] == ["Toronto", "xqzw", "SFO", ""]
    assert [item.is_success for item in items] == [True, False, True, False]
    assert items[0].result.iata_code == "YTO"
    assert "xqzw" in items[1].error


def test_lookup_many_rejects_empty_and_oversized_batches(make_resolver, repository):
    service = make_resolver(repository, lookup_config=LookupConfig(batch_limit=2))

    with pytest.raises(ValidationError):
        service.lookup_many([])
    with pytest.raises(ValidationError):
        service.lookup_many(["a", "b", "c"])


def test_stats_track_every_tier(make_resolver, repository):
    service = make_resolver(repository)
    service.lookup("Toronto")  # repository
    service.lookup("Toronto")  # memory
    service.lookup("Miami")  # fallback
    with pytest.raises(NotFoundError):
        service.lookup("xqzw")

    stats = service.get_stats()

    assert stats["hits"] == {"memory": 1, "durable": 0, "repository": 1, "fallback": 1}
    assert stats["misses"] == 1
    assert stats["errors"] == 1
    assert stats["cache_size"] == 2
    assert stats["hit_rate"] == 50.0
    assert set(stats) == {"hits", "misses", "errors", "cache_size", "hit_rate"}


def test_clear_cache_empties_memory_only(resolver, lookup_cache):
    resolver.lookup("Toronto")
    resolver.lookup("SFO")

    assert resolver.clear_cache() == 2
    assert resolver.get_stats()["cache_size"] == 0
    assert lookup_cache.size() == 2


def test_clear_db_cache_purges_by_last_access(resolver, lookup_cache, clock):
    resolver.lookup("Toronto")
    clock.advance(days=10)
    resolver.lookup("SFO")

    assert resolver.clear_db_cache(older_than_days=5) == 1
    assert lookup_cache.get("toronto:metro") is None
    assert lookup_cache.get("sfo:metro") is not None


def test_clear_db_cache_defaults_to_retention_window(
    make_resolver, repository, lookup_cache, clock
):
    service = make_resolver(
        repository,
        durable_cache=lookup_cache,
        durable_config=DurableCacheConfig(url="sqlite://", retention_days=30),
    )
    service.lookup("Toronto")
    clock.advance(days=29)

    assert service.clear_db_cache() == 0
    clock.advance(days=2)
    assert service.clear_db_cache() == 1


def test_clear_db_cache_rejects_negative_age(resolver):
    with pytest.raises(ValidationError):
        resolver.clear_db_cache(older_than_days=-1)


def test_clear_db_cache_failure_returns_zero(make_resolver, repository):
    broken = MagicMock(spec=InMemoryLookupCache)
    broken.get.return_value = None
    broken.purge_older_than.side_effect = RuntimeError("locked")
    service = make_resolver(repository, durable_cache=broken)

    assert service.clear_db_cache(older_than_days=1) == 0
    assert service.get_stats()["errors"] == 1
