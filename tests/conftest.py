"""Shared fixtures: a small deterministic dataset and resolver doubles."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional
from unittest.mock import MagicMock

import pytest

from location_resolver.adapters.cache import InMemoryCache, InMemoryLookupCache
from location_resolver.adapters.locations import CSVLocationRepository
from location_resolver.adapters.metrics import InMemoryMetrics
from location_resolver.config import (
    DatasetConfig,
    DurableCacheConfig,
    LookupConfig,
    reset_config,
)
from location_resolver.services import LocationResolverService

AIRPORTS_CSV = """\
iata_code,icao_code,name,city,country,country_code,latitude,longitude,timezone,airport_type,passenger_count,is_active
JFK,KJFK,John F. Kennedy International Airport,New York,United States,US,40.6398,-73.7789,America/New_York,large_airport,62551000,true
LGA,KLGA,LaGuardia Airport,New York,United States,US,40.7772,-73.8726,America/New_York,large_airport,31091000,true
EWR,KEWR,Newark Liberty International Airport,Newark,United States,US,40.6925,-74.1687,America/New_York,large_airport,46336000,true
YYZ,CYYZ,Toronto Pearson International Airport,Toronto,Canada,CA,43.6772,-79.6306,America/Toronto,large_airport,50499000,true
YTZ,CYTZ,Billy Bishop Toronto City Airport,Toronto,Canada,CA,43.6275,-79.3962,America/Toronto,medium_airport,2800000,true
SFO,KSFO,San Francisco International Airport,San Francisco,United States,US,37.619,-122.375,America/Los_Angeles,large_airport,57489000,true
OLD,,Oldtown Regional Airport,Oldtown,United States,US,,,,small_airport,,false
"""

METROS_CSV = """\
iata_code,name,country,country_code,latitude,longitude,timezone,airport_codes
NYC,New York City,United States,US,40.7038,-73.9397,America/New_York,JFK LGA EWR
YTO,Toronto,Canada,CA,43.6524,-79.5134,America/Toronto,YYZ YTZ
"""

ALIASES_CSV = """\
alias,airport_code,confidence,alias_type
Pearson,YYZ,1.0,common_name
Kennedy,JFK,0.95,common_name
Big Apple,JFK,0.7,common_name
Frisco,SFO,,common_name
Ghost,ZZZ,0.9,common_name
"""


def write_dataset(
    directory: Path,
    airports: str = AIRPORTS_CSV,
    metros: str = METROS_CSV,
    aliases: Optional[str] = ALIASES_CSV,
) -> DatasetConfig:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "airports.csv").write_text(airports, encoding="utf-8")
    (directory / "metro_areas.csv").write_text(metros, encoding="utf-8")
    if aliases is not None:
        (directory / "airport_aliases.csv").write_text(aliases, encoding="utf-8")
    return DatasetConfig(data_dir=directory)


class CountingRepository:
    """Delegates to a real repository and counts every call."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls: Counter = Counter()

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self.inner, name)
        if not callable(attr):
            return attr

        def counted(*args: Any, **kwargs: Any) -> Any:
            self.calls[name] += 1
            return attr(*args, **kwargs)

        return counted

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@dataclass
class FakeClock:
    current: datetime = field(
        default_factory=lambda: datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    )

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


REPOSITORY_METHODS = (
    "find_metro_by_code",
    "find_airport_by_code",
    "find_metro_for_airport",
    "find_metros_by_name",
    "find_airports_by_name",
    "find_by_alias",
    "search_metros",
    "search_airports",
)


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def dataset_config(tmp_path: Path) -> DatasetConfig:
    return write_dataset(tmp_path / "data")


@pytest.fixture
def repository(dataset_config: DatasetConfig) -> CSVLocationRepository:
    return CSVLocationRepository(dataset_config)


@pytest.fixture
def counting_repository(repository: CSVLocationRepository) -> CountingRepository:
    return CountingRepository(repository)


@pytest.fixture
def failing_repository() -> MagicMock:
    """Repository whose every query raises, as if the store were down."""
    repo = MagicMock(spec=CSVLocationRepository)
    for name in REPOSITORY_METHODS:
        getattr(repo, name).side_effect = ConnectionError("location store unreachable")
    return repo


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def lookup_cache() -> InMemoryLookupCache:
    return InMemoryLookupCache()


@pytest.fixture
def make_resolver(clock: FakeClock) -> Callable[..., LocationResolverService]:
    created: List[LocationResolverService] = []

    def factory(
        repository: Any,
        durable_cache: Any = None,
        memory_cache: Any = None,
        lookup_config: Optional[LookupConfig] = None,
        durable_config: Optional[DurableCacheConfig] = None,
    ) -> LocationResolverService:
        service = LocationResolverService(
            repository=repository,
            memory_cache=(
                memory_cache
                if memory_cache is not None
                else InMemoryCache(max_size=100, name="test")
            ),
            durable_cache=(
                durable_cache if durable_cache is not None else InMemoryLookupCache()
            ),
            metrics=InMemoryMetrics(),
            clock=clock,
            lookup_config=lookup_config or LookupConfig(),
            durable_config=durable_config or DurableCacheConfig(url="sqlite://"),
        )
        created.append(service)
        return service

    yield factory

    for service in created:
        service.close()


@pytest.fixture
def resolver(
    make_resolver: Callable[..., LocationResolverService],
    counting_repository: CountingRepository,
    lookup_cache: InMemoryLookupCache,
) -> LocationResolverService:
    return make_resolver(counting_repository, durable_cache=lookup_cache)
