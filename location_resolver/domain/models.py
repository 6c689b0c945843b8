"""Immutable domain models for the Location Resolver.

All models are frozen dataclasses with slots. Airports, metro areas and
aliases mirror the authoritative dataset rows; matches and lookup results
are what the resolver produces from them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

IATA_CODE = re.compile(r"^[A-Z]{3}$")


class LocationType(Enum):
    """Kind of location a match or result refers to."""

    METRO = "metro"
    AIRPORT = "airport"


class ResultSource(Enum):
    """Tier that produced a lookup result."""

    MEMORY = "memory"
    DURABLE_CACHE = "durable_cache"
    REPOSITORY = "repository"
    FALLBACK = "fallback"


def _check_iata(code: str) -> None:
    if not IATA_CODE.match(code):
        raise ValueError(f"IATA code must be exactly 3 uppercase letters, got {code!r}")


def _check_confidence(value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"Confidence must be between 0 and 1, got {value}")


@dataclass(frozen=True, slots=True)
class GeoLocation:
    """GPS coordinates representing a geographic location."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        """Validate coordinate ranges."""
        if not -90 <= self.latitude <= 90:
            raise ValueError(
                f"Latitude must be between -90 and 90, got {self.latitude}"
            )
        if not -180 <= self.longitude <= 180:
            raise ValueError(
                f"Longitude must be between -180 and 180, got {self.longitude}"
            )


@dataclass(frozen=True, slots=True)
class Airport:
    """A single airport from the authoritative dataset.

    Attributes:
        iata_code: Unique three-letter code (e.g., 'YYZ')
        name: Official airport name
        city: City served by the airport
        country: Country name
        country_code: ISO 3166-1 alpha-2 code
        icao_code: Four-letter ICAO code, if any
        location: GPS coordinates, if known
        timezone: IANA timezone name
        airport_type: 'large_airport', 'medium_airport', ...
        passenger_count: Annual passengers, used as a popularity signal
        is_active: Soft-delete flag; inactive airports are never matched
        id: Dataset identifier (defaults to the IATA code)
    """

    iata_code: str
    name: str
    city: str
    country: str
    country_code: Optional[str] = None
    icao_code: Optional[str] = None
    location: Optional[GeoLocation] = None
    timezone: Optional[str] = None
    airport_type: Optional[str] = None
    passenger_count: Optional[int] = None
    is_active: bool = True
    id: Optional[str] = None

    def __post_init__(self) -> None:
        _check_iata(self.iata_code)


@dataclass(frozen=True, slots=True)
class MetroArea:
    """A metro-level code grouping the airports of one urban area.

    Attributes:
        iata_code: Metro code (e.g., 'NYC')
        name: Metro name (e.g., 'New York City')
        airport_codes: Member airport codes, primary airport first
    """

    iata_code: str
    name: str
    country: str
    country_code: Optional[str] = None
    location: Optional[GeoLocation] = None
    timezone: Optional[str] = None
    airport_codes: tuple[str, ...] = field(default_factory=tuple)
    id: Optional[str] = None

    def __post_init__(self) -> None:
        _check_iata(self.iata_code)
        if not self.airport_codes:
            raise ValueError(f"Metro area {self.iata_code} has no airports")

    @property
    def primary_airport(self) -> str:
        return self.airport_codes[0]


@dataclass(frozen=True, slots=True)
class AirportAlias:
    """Informal name, nickname or misspelling pointing at one airport.

    Attributes:
        alias: Free-text alias as stored in the dataset
        airport_code: IATA code of the aliased airport
        confidence: How reliably the alias identifies the airport (None = unset)
        alias_type: 'common_name', 'abbreviation', 'typo', ...
    """

    alias: str
    airport_code: str
    confidence: Optional[float] = None
    alias_type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.confidence is not None:
            _check_confidence(self.confidence)


@dataclass(frozen=True, slots=True)
class MetroMatch:
    """A metro area candidate with its confidence."""

    type: ClassVar[LocationType] = LocationType.METRO

    metro: MetroArea
    confidence: float

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)

    @property
    def iata_code(self) -> str:
        return self.metro.iata_code

    @property
    def name(self) -> str:
        return self.metro.name

    @property
    def city(self) -> str:
        return self.metro.name

    @property
    def country(self) -> str:
        return self.metro.country

    @property
    def passenger_count(self) -> Optional[int]:
        return None


@dataclass(frozen=True, slots=True)
class AirportMatch:
    """An airport candidate with its confidence."""

    type: ClassVar[LocationType] = LocationType.AIRPORT

    airport: Airport
    confidence: float

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)

    @property
    def iata_code(self) -> str:
        return self.airport.iata_code

    @property
    def name(self) -> str:
        return self.airport.name

    @property
    def city(self) -> str:
        return self.airport.city

    @property
    def country(self) -> str:
        return self.airport.country

    @property
    def passenger_count(self) -> Optional[int]:
        return self.airport.passenger_count


LocationMatch = Union[MetroMatch, AirportMatch]


@dataclass(frozen=True, slots=True)
class Alternative:
    """A near-tie candidate offered for disambiguation."""

    iata_code: str
    name: str
    city: str
    country: str
    type: LocationType
    confidence: float

    @classmethod
    def from_match(cls, match: LocationMatch) -> Alternative:
        return cls(
            iata_code=match.iata_code,
            name=match.name,
            city=match.city,
            country=match.country,
            type=match.type,
            confidence=match.confidence,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "iataCode": self.iata_code,
            "name": self.name,
            "city": self.city,
            "country": self.country,
            "type": self.type.value,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Alternative:
        return cls(
            iata_code=data["iataCode"],
            name=data["name"],
            city=data["city"],
            country=data["country"],
            type=LocationType(data["type"]),
            confidence=float(data["confidence"]),
        )


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Resolved location returned to callers.

    Attributes:
        type: Metro or airport
        iata_code: Code to pass to downstream flight/hotel searches
        confidence: 0-1, rounded to 2 decimals
        alternatives: Near-tie candidates (at most 5), winner excluded
        source: Tier that produced the result
    """

    type: LocationType
    iata_code: str
    name: str
    city: str
    country: str
    confidence: float
    alternatives: tuple[Alternative, ...] = field(default_factory=tuple)
    source: ResultSource = ResultSource.REPOSITORY
    country_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    airport_codes: tuple[str, ...] = field(default_factory=tuple)
    icao_code: Optional[str] = None
    airport_type: Optional[str] = None
    passenger_count: Optional[int] = None
    location_id: Optional[str] = None

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)

    @classmethod
    def from_match(
        cls,
        match: LocationMatch,
        alternatives: tuple[Alternative, ...] = (),
        source: ResultSource = ResultSource.REPOSITORY,
    ) -> LookupResult:
        """Build a result from the winning candidate."""
        if isinstance(match, MetroMatch):
            metro = match.metro
            return cls(
                type=LocationType.METRO,
                iata_code=metro.iata_code,
                name=metro.name,
                city=metro.name,
                country=metro.country,
                confidence=round(match.confidence, 2),
                alternatives=alternatives,
                source=source,
                country_code=metro.country_code,
                latitude=metro.location.latitude if metro.location else None,
                longitude=metro.location.longitude if metro.location else None,
                timezone=metro.timezone,
                airport_codes=metro.airport_codes,
                location_id=metro.id or metro.iata_code,
            )

        airport = match.airport
        return cls(
            type=LocationType.AIRPORT,
            iata_code=airport.iata_code,
            name=airport.name,
            city=airport.city,
            country=airport.country,
            confidence=round(match.confidence, 2),
            alternatives=alternatives,
            source=source,
            country_code=airport.country_code,
            latitude=airport.location.latitude if airport.location else None,
            longitude=airport.location.longitude if airport.location else None,
            timezone=airport.timezone,
            icao_code=airport.icao_code,
            airport_type=airport.airport_type,
            passenger_count=airport.passenger_count,
            location_id=airport.id or airport.iata_code,
        )

    def with_source(self, source: ResultSource) -> LookupResult:
        return replace(self, source=source)

    def as_dict(self) -> Dict[str, Any]:
        """Render the camelCase shape consumed by HTTP and messaging layers."""
        data: Dict[str, Any] = {
            "type": self.type.value,
            "iataCode": self.iata_code,
            "name": self.name,
            "city": self.city,
            "country": self.country,
            "countryCode": self.country_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timezone": self.timezone,
            "confidence": self.confidence,
            "source": self.source.value,
        }
        if self.type is LocationType.METRO:
            data["airportCodes"] = list(self.airport_codes)
        else:
            data["icaoCode"] = self.icao_code
            data["airportType"] = self.airport_type
            data["passengerCount"] = self.passenger_count
        if self.alternatives:
            data["alternatives"] = [alt.as_dict() for alt in self.alternatives]
        return data


@dataclass(frozen=True, slots=True)
class DurableCacheEntry:
    """Persisted query -> result mapping.

    Attributes:
        query: Cache key built from the normalized query and lookup mode
        result_type: Type of the cached result
        result_iata_code: Code re-resolved against the repository on read
        result_id: Dataset identifier of the cached location
        alternatives: Disambiguation candidates at write time
        confidence: Confidence of the cached result
        hit_count: 1 on first write, incremented on every hit or rewrite
        last_accessed: Drives staleness and purging
    """

    query: str
    result_type: LocationType
    result_iata_code: str
    confidence: float
    result_id: Optional[str] = None
    alternatives: tuple[Alternative, ...] = field(default_factory=tuple)
    hit_count: int = 1
    last_accessed: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_result(cls, query: str, result: LookupResult) -> DurableCacheEntry:
        return cls(
            query=query,
            result_type=result.type,
            result_iata_code=result.iata_code,
            confidence=result.confidence,
            result_id=result.location_id,
            alternatives=result.alternatives,
        )


@dataclass(frozen=True, slots=True)
class LookupOptions:
    """Per-call lookup switches.

    Attributes:
        prefer_metro: Group an airport under its metro area when one exists
        fuzzy: Enable similarity-based matching
        max_results: Cap on fuzzy candidates and on alternatives
    """

    prefer_metro: bool = True
    fuzzy: bool = True
    max_results: int = 5

    def __post_init__(self) -> None:
        if self.max_results < 1:
            raise ValueError(f"max_results must be at least 1, got {self.max_results}")


@dataclass(frozen=True, slots=True)
class BatchLookupItem:
    """Outcome of one query in a batch lookup."""

    query: str
    result: Optional[LookupResult] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.result is not None
