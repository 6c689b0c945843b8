"""Tests for the static fallback table."""

import pytest

from location_resolver.domain.models import LocationType, ResultSource
from location_resolver.services.fallback import FALLBACK_AIRPORTS, lookup_fallback


def test_known_city_resolves_to_main_airport():
    result = lookup_fallback("new york")

    assert result.iata_code == "JFK"
    assert result.type is LocationType.AIRPORT
    assert result.source is ResultSource.FALLBACK
    assert result.confidence == 0.9
    assert result.alternatives == ()


@pytest.mark.parametrize(
    "query, code",
    [
        ("Toronto", "YYZ"),
        ("  LONDON ", "LHR"),
        ("New York City", "JFK"),
        ("the Paris airport", "CDG"),
        ("vegas", "LAS"),
        ("nyc", "JFK"),
    ],
)
def test_queries_are_normalized_before_matching(query, code):
    assert lookup_fallback(query).iata_code == code


def test_unknown_three_letter_code_is_assumed_valid():
    result = lookup_fallback("XYZ")

    assert result.iata_code == "XYZ"
    assert result.name == "XYZ Airport"
    assert result.city == "Unknown"
    assert result.country == "Unknown"
    assert result.confidence == 0.8


def test_confidences_are_configurable():
    assert lookup_fallback("toronto", confidence=0.85).confidence == 0.85
    assert lookup_fallback("QQQ", code_confidence=0.82).confidence == 0.82


@pytest.mark.parametrize("query", ["Springfield", "xqzw", "y2k", ""])
def test_unknown_queries_miss(query):
    assert lookup_fallback(query) is None


def test_every_entry_has_a_valid_code():
    for key, airport in FALLBACK_AIRPORTS.items():
        assert key == key.lower().strip()
        assert len(airport.iata_code) == 3 and airport.iata_code.isupper()
