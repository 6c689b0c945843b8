"""Tests for the repository matching strategies."""

import threading

import pytest

from location_resolver.config import LookupConfig
from location_resolver.domain.errors import LookupCancelledError
from location_resolver.domain.models import LookupOptions, MetroMatch
from location_resolver.services.strategies import (
    MatchContext,
    match_alias,
    match_exact_code,
    match_exact_name,
    match_fuzzy,
    run_strategies,
)


def context(repository, query, cancel=None, **options):
    return MatchContext(
        repository=repository,
        query=query,
        options=LookupOptions(**options),
        config=LookupConfig(),
        cancel=cancel,
    )


def test_exact_code_ignores_non_codes(repository):
    assert match_exact_code(context(repository, "toronto")) == []


def test_exact_code_airport_mode_skips_metro_table(repository):
    """A metro code is not an airport, so airport mode finds nothing."""
    assert match_exact_code(context(repository, "nyc", prefer_metro=False)) == []


def test_exact_name_keeps_sibling_airports_of_matched_metro(repository):
    matches = match_exact_name(context(repository, "new york"))

    assert [(m.iata_code, m.confidence) for m in matches] == [
        ("NYC", 1.0),
        ("JFK", 0.95),
        ("LGA", 0.95),
    ]


@pytest.mark.parametrize("alias", ["pearson", "big apple"])
def test_alias_promotes_to_metro_at_promotion_confidence(repository, alias):
    """The alias's own confidence does not lower a metro promotion."""
    (match,) = match_alias(context(repository, alias))

    assert isinstance(match, MetroMatch)
    assert match.confidence == 0.95


def test_alias_in_airport_mode_keeps_alias_confidence(repository):
    (match,) = match_alias(context(repository, "big apple", prefer_metro=False))

    assert match.iata_code == "JFK"
    assert match.confidence == 0.7


def test_fuzzy_candidates_respect_min_confidence(repository):
    matches = match_fuzzy(context(repository, "torotno"))

    assert matches
    assert all(m.confidence >= 0.5 for m in matches)


def test_fuzzy_disabled_returns_nothing(repository):
    assert match_fuzzy(context(repository, "torotno", fuzzy=False)) == []


def test_first_strategy_with_a_confident_candidate_wins(repository):
    calls = []

    def weak(ctx):
        calls.append("weak")
        return [MetroMatch(repository.find_metro_by_code("NYC"), 0.2)]

    def strong(ctx):
        calls.append("strong")
        return [MetroMatch(repository.find_metro_by_code("YTO"), 0.9)]

    def never(ctx):
        calls.append("never")
        return []

    selection = run_strategies(context(repository, "x"), (weak, strong, never))

    assert selection.winner.iata_code == "YTO"
    assert calls == ["weak", "strong"]


def test_no_strategy_matches(repository):
    assert run_strategies(context(repository, "x"), (lambda ctx: [],)) is None


def test_cancel_is_checked_between_strategies(repository):
    cancel = threading.Event()

    def cancelling(ctx):
        cancel.set()
        return []

    with pytest.raises(LookupCancelledError):
        run_strategies(
            context(repository, "x", cancel=cancel), (cancelling, match_fuzzy)
        )
