"""Time helpers shared by the store, lifecycle manager and scheduler.

Documents carry epoch-millisecond floats.  Every component that reads the
current time takes a ``Clock`` callable so tests can move time forward
without sleeping.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], float]


def now_ms() -> float:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


def to_ms(delta: timedelta) -> float:
    return delta.total_seconds() * 1000.0


def iso_from_ms(value: float) -> str:
    """Render an epoch-millisecond timestamp as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc).isoformat()


class ManualClock:
    """A settable clock for tests and deterministic replays.

    Parameters
    ----------
    start_ms:
        Initial epoch-millisecond value.
    """

    def __init__(self, start_ms: float = 1_700_000_000_000.0) -> None:
        self._now = start_ms

    def __call__(self) -> float:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now += to_ms(delta)

    def set(self, value_ms: float) -> None:
        self._now = value_ms
