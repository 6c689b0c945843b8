"""Metrics adapters - Implementations of MetricsPort.

Available implementations:
- InMemoryMetrics: Thread-safe in-process counters
"""

from .memory_metrics import InMemoryMetrics

__all__ = ["InMemoryMetrics"]
