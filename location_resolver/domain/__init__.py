"""Domain layer - Core location models, normalization and errors.

This module contains immutable domain models and typed errors
used throughout the application. No external dependencies.
"""

from .errors import (
    ConfigurationError,
    DatasetError,
    LocationResolverError,
    LookupCancelledError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from .models import (
    Airport,
    AirportAlias,
    AirportMatch,
    Alternative,
    BatchLookupItem,
    DurableCacheEntry,
    GeoLocation,
    LocationMatch,
    LocationType,
    LookupOptions,
    LookupResult,
    MetroArea,
    MetroMatch,
    ResultSource,
)
from .normalization import cache_key, looks_like_iata, normalize_query

__all__ = [
    # Models
    "GeoLocation",
    "Airport",
    "MetroArea",
    "AirportAlias",
    "LocationType",
    "MetroMatch",
    "AirportMatch",
    "LocationMatch",
    "Alternative",
    "LookupResult",
    "ResultSource",
    "LookupOptions",
    "DurableCacheEntry",
    "BatchLookupItem",
    # Normalization
    "normalize_query",
    "looks_like_iata",
    "cache_key",
    # Errors
    "LocationResolverError",
    "ValidationError",
    "NotFoundError",
    "TransientError",
    "LookupCancelledError",
    "DatasetError",
    "ConfigurationError",
]
