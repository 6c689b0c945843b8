"""CSV Location Repository adapter.

Loads the airport, metro area and alias tables from CSV files once, builds
lookup indexes (by code, by normalized name/city, by alias) and answers the
LocationRepositoryPort queries from memory. Fuzzy search compares word
trigrams of the query with each location's name, city and alias fields
(never its bare code), scored with rapidfuzz.
"""

from __future__ import annotations

import csv
import logging
import re
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from ...config import DatasetConfig, get_config
from ...domain.errors import DatasetError
from ...domain.models import Airport, AirportAlias, GeoLocation, MetroArea
from ...domain.normalization import normalize_query


def _text(row: Dict[str, str], key: str) -> str:
    return (row.get(key) or "").strip()


def _optional_text(row: Dict[str, str], key: str) -> Optional[str]:
    return _text(row, key) or None


def _optional_float(row: Dict[str, str], key: str) -> Optional[float]:
    value = _text(row, key)
    return float(value) if value else None


def _optional_int(row: Dict[str, str], key: str) -> Optional[int]:
    value = _text(row, key)
    return int(float(value)) if value else None


def _flag(row: Dict[str, str], key: str, default: bool = True) -> bool:
    value = _text(row, key).lower()
    if not value:
        return default
    return value in {"1", "true", "t", "yes", "y"}


def _location(row: Dict[str, str]) -> Optional[GeoLocation]:
    lat = _optional_float(row, "latitude")
    lon = _optional_float(row, "longitude")
    if lat is None or lon is None:
        return None
    return GeoLocation(latitude=lat, longitude=lon)


def _keys(*texts: str) -> List[str]:
    """Lowercased and normalized variants, deduplicated, order kept."""
    keys: List[str] = []
    for text in texts:
        for key in (text.lower().strip(), normalize_query(text)):
            if key and key not in keys:
                keys.append(key)
    return keys


_WORD = re.compile(r"[^\W_]+")


def trigrams(text: str) -> Tuple[str, ...]:
    """Sorted, distinct word trigrams, each word padded as pg_trgm does.

    Example:
        >>> trigrams("Paris")
        ('  p', ' pa', 'ari', 'is ', 'par', 'ris')
    """
    grams = set()
    for word in _WORD.findall(text.lower()):
        padded = f"  {word} "
        grams.update(padded[i : i + 3] for i in range(len(padded) - 2))
    return tuple(sorted(grams))


def trigram_similarity(
    query: Tuple[str, ...], field_grams: Sequence[Tuple[str, ...]]
) -> float:
    """Best Dice coefficient between the query trigrams and any field.

    The Indel ratio of two sorted, distinct sequences is their Dice
    coefficient, so rapidfuzz scores the trigram sets directly.
    """
    if not query:
        return 0.0
    return max((fuzz.ratio(query, grams) / 100.0 for grams in field_grams), default=0.0)


def _field_grams(keys: Sequence[str]) -> List[Tuple[str, ...]]:
    """Trigram sets of the searchable fields; codes are left to exact matching."""
    fields: List[Tuple[str, ...]] = []
    for key in keys:
        grams = trigrams(key)
        if grams and grams not in fields:
            fields.append(grams)
    return fields


def _popularity(airport: Airport) -> int:
    return airport.passenger_count or 0


@dataclass
class _Dataset:
    """Loaded tables and their indexes."""

    airports: Dict[str, Airport] = field(default_factory=dict)
    metros: Dict[str, MetroArea] = field(default_factory=dict)
    metro_by_airport: Dict[str, str] = field(default_factory=dict)
    metros_by_name: Dict[str, List[MetroArea]] = field(
        default_factory=lambda: defaultdict(list)
    )
    airports_by_name: Dict[str, List[Airport]] = field(
        default_factory=lambda: defaultdict(list)
    )
    aliases_by_text: Dict[str, List[AirportAlias]] = field(
        default_factory=lambda: defaultdict(list)
    )
    airport_search_grams: Dict[str, List[Tuple[str, ...]]] = field(default_factory=dict)
    metro_search_grams: Dict[str, List[Tuple[str, ...]]] = field(default_factory=dict)


@dataclass
class CSVLocationRepository:
    """Location repository backed by CSV files.

    This adapter implements LocationRepositoryPort. Files are read lazily on
    first query and kept in memory until clear_cache() is called.

    Attributes:
        config: Dataset configuration (directory and file names)
    """

    config: DatasetConfig = field(default_factory=lambda: get_config().dataset)

    _data: Optional[_Dataset] = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _load(self) -> _Dataset:
        data = self._data
        if data is not None:
            return data

        with self._lock:
            if self._data is None:
                self._data = self._build_dataset()
            return self._data

    def _build_dataset(self) -> _Dataset:
        self._logger.debug(
            "Loading location dataset",
            extra={
                "airports_path": str(self.config.airports_path),
                "metros_path": str(self.config.metros_path),
                "aliases_path": str(self.config.aliases_path),
            },
        )

        data = _Dataset()
        current_path = self.config.airports_path
        try:
            self._load_airports(data)
            current_path = self.config.metros_path
            self._load_metros(data)
            current_path = self.config.aliases_path
            if self.config.aliases_path.exists():
                self._load_aliases(data)
        except DatasetError:
            raise
        except (OSError, KeyError, ValueError) as e:
            raise DatasetError(
                f"Failed to load location dataset: {e}",
                file_path=str(current_path),
                cause=e,
            )

        self._logger.info(
            "Location dataset loaded",
            extra={
                "airports": len(data.airports),
                "metros": len(data.metros),
                "aliases": sum(len(v) for v in data.aliases_by_text.values()),
            },
        )
        return data

    def _load_airports(self, data: _Dataset) -> None:
        with self.config.airports_path.open(encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                code = _text(row, "iata_code").upper()
                if not code:
                    continue
                if code in data.airports:
                    raise DatasetError(
                        f"Duplicate airport code: {code}",
                        file_path=str(self.config.airports_path),
                    )

                airport = Airport(
                    iata_code=code,
                    name=_text(row, "name") or code,
                    city=_text(row, "city") or "Unknown",
                    country=_text(row, "country") or "Unknown",
                    country_code=_optional_text(row, "country_code"),
                    icao_code=_optional_text(row, "icao_code"),
                    location=_location(row),
                    timezone=_optional_text(row, "timezone"),
                    airport_type=_optional_text(row, "airport_type"),
                    passenger_count=_optional_int(row, "passenger_count"),
                    is_active=_flag(row, "is_active"),
                    id=_optional_text(row, "id"),
                )
                data.airports[code] = airport

                for key in _keys(airport.city, airport.name):
                    data.airports_by_name[key].append(airport)
                data.airport_search_grams[code] = _field_grams(
                    _keys(airport.city, airport.name)
                )

        for airports in data.airports_by_name.values():
            airports.sort(key=_popularity, reverse=True)

    def _load_metros(self, data: _Dataset) -> None:
        with self.config.metros_path.open(encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                code = _text(row, "iata_code").upper()
                if not code:
                    continue
                members = tuple(
                    member.upper()
                    for member in _text(row, "airport_codes").split()
                    if member
                )

                metro = MetroArea(
                    iata_code=code,
                    name=_text(row, "name") or code,
                    country=_text(row, "country") or "Unknown",
                    country_code=_optional_text(row, "country_code"),
                    location=_location(row),
                    timezone=_optional_text(row, "timezone"),
                    airport_codes=members,
                    id=_optional_text(row, "id"),
                )
                data.metros[code] = metro

                for member in members:
                    if member not in data.airports:
                        self._logger.warning(
                            "Metro member airport missing from dataset",
                            extra={"metro": code, "airport": member},
                        )
                        continue
                    owner = data.metro_by_airport.get(member)
                    if owner is not None and owner != code:
                        raise DatasetError(
                            f"Airport {member} belongs to both {owner} and {code}",
                            file_path=str(self.config.metros_path),
                        )
                    data.metro_by_airport[member] = code

                for key in _keys(metro.name):
                    data.metros_by_name[key].append(metro)
                data.metro_search_grams[code] = _field_grams(_keys(metro.name))

    def _load_aliases(self, data: _Dataset) -> None:
        with self.config.aliases_path.open(encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                text = _text(row, "alias")
                code = _text(row, "airport_code").upper()
                if not text or not code:
                    continue
                if code not in data.airports:
                    self._logger.warning(
                        "Alias points at unknown airport",
                        extra={"alias": text, "airport": code},
                    )
                    continue

                alias = AirportAlias(
                    alias=text,
                    airport_code=code,
                    confidence=_optional_float(row, "confidence"),
                    alias_type=_optional_text(row, "alias_type"),
                )
                for key in _keys(text):
                    data.aliases_by_text[key].append(alias)
                    grams = trigrams(key)
                    fields = data.airport_search_grams[code]
                    if grams and grams not in fields:
                        fields.append(grams)

    def _active(self, data: _Dataset, code: str) -> Optional[Airport]:
        airport = data.airports.get(code)
        if airport is None or not airport.is_active:
            return None
        return airport

    def find_metro_by_code(self, code: str) -> Optional[MetroArea]:
        return self._load().metros.get(code.upper())

    def find_airport_by_code(self, code: str) -> Optional[Airport]:
        return self._active(self._load(), code.upper())

    def find_metro_for_airport(self, airport_code: str) -> Optional[MetroArea]:
        data = self._load()
        metro_code = data.metro_by_airport.get(airport_code.upper())
        return data.metros.get(metro_code) if metro_code else None

    def find_metros_by_name(self, name: str) -> Sequence[MetroArea]:
        return list(self._load().metros_by_name.get(name.lower().strip(), ()))

    def find_airports_by_name(self, name: str, limit: int = 5) -> Sequence[Airport]:
        data = self._load()
        matches = data.airports_by_name.get(name.lower().strip(), ())
        seen: set[str] = set()
        result: List[Airport] = []
        for airport in matches:
            if airport.is_active and airport.iata_code not in seen:
                seen.add(airport.iata_code)
                result.append(airport)
        return result[:limit]

    def find_by_alias(
        self, alias: str, limit: int = 5
    ) -> Sequence[Tuple[AirportAlias, Airport]]:
        data = self._load()
        pairs: Dict[str, Tuple[AirportAlias, Airport]] = {}
        for entry in data.aliases_by_text.get(alias.lower().strip(), ()):
            airport = self._active(data, entry.airport_code)
            if airport is None:
                continue
            current = pairs.get(airport.iata_code)
            if current is None or (entry.confidence or 0) > (current[0].confidence or 0):
                pairs[airport.iata_code] = (entry, airport)

        ranked = sorted(
            pairs.values(),
            key=lambda pair: (pair[0].confidence or 0, _popularity(pair[1])),
            reverse=True,
        )
        return ranked[:limit]

    def search_metros(
        self, text: str, limit: int, min_similarity: float
    ) -> Sequence[Tuple[MetroArea, float]]:
        data = self._load()
        query = trigrams(text)
        scored = []
        for code, fields in data.metro_search_grams.items():
            similarity = trigram_similarity(query, fields)
            if similarity > min_similarity:
                scored.append((data.metros[code], similarity))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]

    def search_airports(
        self, text: str, limit: int, min_similarity: float
    ) -> Sequence[Tuple[Airport, float]]:
        data = self._load()
        query = trigrams(text)
        scored = []
        for code, fields in data.airport_search_grams.items():
            airport = self._active(data, code)
            if airport is None:
                continue
            similarity = trigram_similarity(query, fields)
            if similarity > min_similarity:
                scored.append((airport, similarity))

        scored.sort(key=lambda pair: (pair[1], _popularity(pair[0])), reverse=True)
        return scored[:limit]

    def clear_cache(self) -> None:
        """Drop the loaded dataset so the next query reloads the files."""
        with self._lock:
            self._data = None
        self._logger.debug("Location dataset cache cleared")
