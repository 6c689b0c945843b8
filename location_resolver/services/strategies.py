"""Repository matching strategies.

Each strategy turns a normalized query into weighted candidates using the
location repository. They are tried in a fixed order (exact code, exact
name, alias, fuzzy) and the first one that yields a confident candidate
wins; later strategies are never consulted.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..config import LookupConfig
from ..domain.errors import LookupCancelledError
from ..domain.models import (
    AirportMatch,
    LocationMatch,
    LookupOptions,
    MetroArea,
    MetroMatch,
)
from ..domain.normalization import looks_like_iata
from ..ports.locations import LocationRepositoryPort
from .scoring import Selection, rank_candidates, select_best, similarity_to_confidence

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0


@dataclass(frozen=True)
class MatchContext:
    """Everything a strategy needs for one lookup.

    Attributes:
        repository: Location dataset access
        query: Normalized query text
        options: Per-call lookup switches
        config: Scoring thresholds
        cancel: Set to abandon the lookup between repository calls
    """

    repository: LocationRepositoryPort
    query: str
    options: LookupOptions
    config: LookupConfig
    cancel: Optional[threading.Event] = None

    def check_cancelled(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise LookupCancelledError("Lookup cancelled", query=self.query)

    def metro_for(self, airport_code: str) -> Optional[MetroArea]:
        """Containing metro when metro grouping is preferred."""
        if not self.options.prefer_metro:
            return None
        self.check_cancelled()
        return self.repository.find_metro_for_airport(airport_code)


Strategy = Callable[[MatchContext], List[LocationMatch]]


def match_exact_code(ctx: MatchContext) -> List[LocationMatch]:
    """Three-letter code: metro table first, then airports with promotion."""
    if not looks_like_iata(ctx.query):
        return []

    code = ctx.query.upper()
    if ctx.options.prefer_metro:
        metro = ctx.repository.find_metro_by_code(code)
        if metro is not None:
            return [MetroMatch(metro, EXACT_CONFIDENCE)]

    ctx.check_cancelled()
    airport = ctx.repository.find_airport_by_code(code)
    if airport is None:
        return []

    metro = ctx.metro_for(airport.iata_code)
    if metro is not None:
        return [MetroMatch(metro, ctx.config.metro_promotion_confidence)]
    return [AirportMatch(airport, EXACT_CONFIDENCE)]


def match_exact_name(ctx: MatchContext) -> List[LocationMatch]:
    """Case-insensitive equality on metro name or airport city/name."""
    candidates: List[LocationMatch] = []
    metro_codes: set[str] = set()

    if ctx.options.prefer_metro:
        for metro in ctx.repository.find_metros_by_name(ctx.query):
            candidates.append(MetroMatch(metro, EXACT_CONFIDENCE))
            metro_codes.add(metro.iata_code)

    ctx.check_cancelled()
    airports = ctx.repository.find_airports_by_name(
        ctx.query, limit=ctx.config.exact_name_limit
    )
    confidence = ctx.config.exact_name_airport_confidence
    for airport in airports:
        metro = ctx.metro_for(airport.iata_code)
        if metro is not None and metro.iata_code not in metro_codes:
            candidates.append(
                MetroMatch(metro, ctx.config.metro_promotion_confidence)
            )
            metro_codes.add(metro.iata_code)
        else:
            # Sibling airports of an already-matched metro stay as alternatives
            candidates.append(AirportMatch(airport, confidence))

    return candidates


def match_alias(ctx: MatchContext) -> List[LocationMatch]:
    """Equality against airport aliases.

    An aliased airport inside a metro area promotes to the metro at the
    promotion confidence; otherwise the alias confidence applies.
    """
    candidates: List[LocationMatch] = []
    pairs = ctx.repository.find_by_alias(ctx.query, limit=ctx.config.exact_name_limit)
    for alias, airport in pairs:
        metro = ctx.metro_for(airport.iata_code)
        if metro is not None:
            candidates.append(MetroMatch(metro, ctx.config.metro_promotion_confidence))
            continue
        confidence = (
            alias.confidence
            if alias.confidence is not None
            else ctx.config.alias_default_confidence
        )
        candidates.append(AirportMatch(airport, confidence))
    return candidates


def match_fuzzy(ctx: MatchContext) -> List[LocationMatch]:
    """Trigram similarity over names, cities and aliases."""
    if not ctx.options.fuzzy:
        return []

    config = ctx.config
    limit = ctx.options.max_results
    candidates: List[LocationMatch] = []
    metro_codes: set[str] = set()

    if ctx.options.prefer_metro:
        for metro, similarity in ctx.repository.search_metros(
            ctx.query, limit, config.fuzzy_similarity_floor
        ):
            confidence = similarity_to_confidence(similarity, config.fuzzy_exponent)
            candidates.append(MetroMatch(metro, confidence))
            metro_codes.add(metro.iata_code)

    ctx.check_cancelled()
    for airport, similarity in ctx.repository.search_airports(
        ctx.query, limit, config.fuzzy_similarity_floor
    ):
        confidence = similarity_to_confidence(similarity, config.fuzzy_exponent)
        metro = ctx.metro_for(airport.iata_code)
        if metro is not None and metro.iata_code not in metro_codes:
            candidates.append(MetroMatch(metro, confidence))
            metro_codes.add(metro.iata_code)
        else:
            candidates.append(AirportMatch(airport, confidence))

    accepted = [c for c in candidates if c.confidence >= config.min_confidence]
    return rank_candidates(accepted)[:limit]


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    match_exact_code,
    match_exact_name,
    match_alias,
    match_fuzzy,
)


def run_strategies(
    ctx: MatchContext,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> Optional[Selection]:
    """Run strategies in order and select from the first confident one.

    Args:
        ctx: The lookup context.
        strategies: Ordered strategies; the first with a usable candidate wins.

    Returns:
        The selection, or None when no strategy matched.

    Raises:
        LookupCancelledError: If ``ctx.cancel`` is set between steps.
    """
    max_alternatives = min(ctx.config.max_alternatives, ctx.options.max_results)

    for strategy in strategies:
        ctx.check_cancelled()
        candidates = [
            c for c in strategy(ctx) if c.confidence >= ctx.config.min_confidence
        ]
        if not candidates:
            continue

        selection = select_best(
            candidates,
            ambiguity_window=ctx.config.ambiguity_window,
            max_alternatives=max_alternatives,
        )
        if selection is not None:
            logger.debug(
                "Strategy matched",
                extra={
                    "strategy": strategy.__name__,
                    "query": ctx.query,
                    "iata_code": selection.winner.iata_code,
                    "confidence": selection.winner.confidence,
                    "candidates": len(candidates),
                },
            )
            return selection

    return None
