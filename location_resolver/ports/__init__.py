"""Ports layer - Abstract interfaces (Protocols) for the application.

Ports define the contracts between the resolver core and external
adapters. They enable dependency injection and make the system testable.

This module follows the Hexagonal Architecture pattern:
- Input ports: How the application is driven (services)
- Output ports: How the application drives external systems (adapters)
"""

from .cache import CachePort, LookupCachePort
from .clock import ClockPort
from .locations import LocationRepositoryPort
from .metrics import MetricsPort

__all__ = [
    # Locations
    "LocationRepositoryPort",
    # Cache
    "CachePort",
    "LookupCachePort",
    # Observability
    "MetricsPort",
    "ClockPort",
]
