"""Millisecond clocks used by the time-windowed components."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> float: ...


class SystemClock:
    """Monotonic milliseconds. Only differences between readings are meaningful."""

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0
