"""Query normalization shared by the resolver and the dataset indexes."""

from __future__ import annotations

import re

_LEADING_WORD = re.compile(r"^(the|from|to)\s+")
_IATA_QUERY = re.compile(r"^[a-z]{3}$")


def normalize_query(raw: str) -> str:
    """Canonicalize free-form location text.

    Rules, in order: lowercase and trim, strip a trailing " city", strip a
    trailing " airport", strip one leading "the ", "from " or "to ".

    Example:
        >>> normalize_query("  The Toronto Airport ")
        'toronto'
    """
    normalized = raw.lower().strip()

    if normalized.endswith(" city"):
        normalized = normalized[: -len(" city")].strip()

    if normalized.endswith(" airport"):
        normalized = normalized[: -len(" airport")].strip()

    return _LEADING_WORD.sub("", normalized)


def looks_like_iata(normalized: str) -> bool:
    """True for a bare three-letter code such as "yyz"."""
    return bool(_IATA_QUERY.match(normalized))


def cache_key(normalized: str, prefer_metro: bool) -> str:
    return f"{normalized}:{'metro' if prefer_metro else 'airport'}"
