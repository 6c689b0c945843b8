"""Location resolution for the travel assistant.

Turns free-form user text ("Toronto", "YYZ", "nyc", a misspelled city) into
a canonical, confidence-scored airport or metro-area code.

Convenience functions below delegate to the process-wide default container:

    >>> from location_resolver import lookup, resolve_airport_code
    >>> lookup("Toronto").iata_code
    'YTO'
    >>> resolve_airport_code("YYZ")
    'YTO'
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .domain import LookupOptions, LookupResult

__version__ = "0.1.0"


def _service() -> Any:
    from .container import get_container
    from .services import LocationResolverService

    return get_container().resolve(LocationResolverService)


def lookup(query: str, options: Optional[LookupOptions] = None) -> LookupResult:
    """Resolve a location query with the default resolver."""
    return _service().lookup(query, options)


def resolve_airport_code(query: str) -> str:
    return _service().resolve_airport_code(query)


def get_airport_info(query: str) -> Optional[Dict[str, Any]]:
    return _service().get_airport_info(query)


def can_resolve(query: str) -> bool:
    return _service().can_resolve(query)


def get_stats() -> Dict[str, Any]:
    return _service().get_stats()


__all__ = [
    "LookupOptions",
    "LookupResult",
    "lookup",
    "resolve_airport_code",
    "get_airport_info",
    "can_resolve",
    "get_stats",
]
