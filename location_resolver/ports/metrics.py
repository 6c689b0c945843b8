"""Metrics port - Counter sink for lookup observability."""

from __future__ import annotations

from typing import Dict, Protocol


class MetricsPort(Protocol):
    """Port for counting lookup outcomes.

    Implementation: adapters/metrics/memory_metrics.py

    Counter names used by the resolver: hits.memory, hits.durable,
    hits.repository, hits.fallback, misses, errors.
    """

    def incr(self, name: str, amount: int = 1) -> None:
        """Increment a named counter."""
        ...

    def snapshot(self) -> Dict[str, int]:
        """Return a consistent copy of all counters."""
        ...

    def reset(self) -> None:
        """Zero every counter."""
        ...
