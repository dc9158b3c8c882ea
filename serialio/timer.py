"""A monotonic countdown timer with millisecond resolution."""

from __future__ import annotations

import time

_NS_PER_MS = 1_000_000


class MillisecondTimer:
    """Counts down from a number of milliseconds on the monotonic clock."""

    def __init__(self, millis: int) -> None:
        if millis < 0:
            raise ValueError("millis must not be negative")
        self._expiry_ns = time.monotonic_ns() + int(millis) * _NS_PER_MS

    def remaining(self) -> int:
        """Milliseconds until expiry; negative once the timer has expired."""
        diff = self._expiry_ns - time.monotonic_ns()
        return int(diff / _NS_PER_MS)