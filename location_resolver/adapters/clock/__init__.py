"""Clock adapters - Implementations of ClockPort."""

from .system_clock import SystemClock

__all__ = ["SystemClock"]
