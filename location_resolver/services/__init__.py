"""Services layer - Application orchestration.

This module contains the resolver service and the pure scoring and matching
logic it orchestrates.

Available services:
- LocationResolverService: Multi-tier lookup facade
- run_strategies / DEFAULT_STRATEGIES: Repository matching strategies
- select_best: Candidate ranking and disambiguation
- lookup_fallback: Static fallback table
"""

from .fallback import FALLBACK_AIRPORTS, lookup_fallback
from .location_resolver import LocationResolverService
from .scoring import Selection, rank_candidates, select_best, similarity_to_confidence
from .strategies import DEFAULT_STRATEGIES, MatchContext, run_strategies

__all__ = [
    "LocationResolverService",
    "MatchContext",
    "DEFAULT_STRATEGIES",
    "run_strategies",
    "Selection",
    "rank_candidates",
    "select_best",
    "similarity_to_confidence",
    "FALLBACK_AIRPORTS",
    "lookup_fallback",
]
