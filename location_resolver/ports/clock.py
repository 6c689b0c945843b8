"""Clock port - Injectable time source for cache staleness."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    """Port for reading the current time.

    Implementation: adapters/clock/system_clock.py
    """

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
