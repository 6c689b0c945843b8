"""Wall-clock implementation of ClockPort."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class SystemClock:
    """Reads the system clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
