"""Thread-safe in-process counters implementing MetricsPort."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class InMemoryMetrics:
    """Named integer counters guarded by a lock.

    Each resolver instance gets its own sink, so tests can assert on
    counts without touching process-wide state.
    """

    _counters: Counter = field(default_factory=Counter, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[name] += amount

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
