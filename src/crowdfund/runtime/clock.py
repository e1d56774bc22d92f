from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Monotonically non-decreasing integer timestamp source (seconds)."""

    def now(self) -> int: ...


class SystemClock:
    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Deterministic clock for tests and dev harnesses.

    Refuses to move backwards, mirroring the guarantee the ledger relies on.
    """

    def __init__(self, start: int = 1_700_000_000) -> None:
        self._lock = threading.Lock()
        self._now = int(start)

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: int) -> int:
        s = int(seconds)
        if s < 0:
            raise ValueError("clock cannot move backwards")
        with self._lock:
            self._now += s
            return self._now

    def set(self, ts: int) -> int:
        t = int(ts)
        with self._lock:
            if t < self._now:
                raise ValueError(f"clock cannot move backwards: {t} < {self._now}")
            self._now = t
            return self._now
