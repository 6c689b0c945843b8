"""Confidence scoring and disambiguation.

Turns raw match signal into a 0-1 confidence, orders candidates and picks
the winner. Candidates whose confidence sits within the ambiguity window of
the winner are returned as alternatives so the caller can ask the user
("Did you mean NYC or EWR specifically?").
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..domain.models import Alternative, LocationMatch, LocationType


def round_confidence(value: float) -> float:
    """Clamp to [0, 1] and round to 2 decimals."""
    return round(min(1.0, max(0.0, value)), 2)


def similarity_to_confidence(similarity: float, exponent: float = 0.8) -> float:
    """Map a text similarity in [0, 1] to a confidence.

    ``min(1, similarity ** exponent)``: with an exponent below 1 close matches
    gain more than weak ones (0.86 -> 0.89, 0.4 -> 0.48).
    """
    if similarity <= 0:
        return 0.0
    return round_confidence(similarity**exponent)


def _sort_key(match: LocationMatch) -> Tuple[float, int, int]:
    type_rank = 0 if match.type is LocationType.METRO else 1
    return (-match.confidence, type_rank, -(match.passenger_count or 0))


def rank_candidates(candidates: Iterable[LocationMatch]) -> List[LocationMatch]:
    """Sort best first and drop duplicates of the same location.

    Order: confidence descending, metros before airports, then passenger
    count descending. A location reached through several paths keeps its
    best-ranked entry only.
    """
    ranked: List[LocationMatch] = []
    seen: set[Tuple[LocationType, str]] = set()
    for match in sorted(candidates, key=_sort_key):
        key = (match.type, match.iata_code)
        if key not in seen:
            seen.add(key)
            ranked.append(match)
    return ranked


@dataclass(frozen=True, slots=True)
class Selection:
    """Winning candidate plus its near-ties."""

    winner: LocationMatch
    alternatives: Tuple[Alternative, ...] = ()


def select_best(
    candidates: Iterable[LocationMatch],
    ambiguity_window: float = 0.1,
    max_alternatives: int = 5,
) -> Optional[Selection]:
    """Pick the best candidate and collect alternatives.

    Args:
        candidates: Matches produced by one strategy.
        ambiguity_window: A candidate is a near-tie when its confidence is
            strictly less than this far below the winner's.
        max_alternatives: Cap on returned alternatives.

    Returns:
        The selection, or None when there are no candidates.
    """
    ranked = rank_candidates(candidates)
    if not ranked:
        return None

    winner, rest = ranked[0], ranked[1:]
    alternatives: List[Alternative] = []
    for match in rest:
        if len(alternatives) >= max_alternatives:
            break
        if match.iata_code == winner.iata_code:
            continue
        # Compare on the 2-decimal grid confidences live on (0.95 - 0.85 is 0.0999...)
        if round(winner.confidence - match.confidence, 2) < ambiguity_window:
            alternatives.append(Alternative.from_match(match))

    return Selection(winner=winner, alternatives=tuple(alternatives))
