"""randrelay.core.time

On-chain timestamps are whole unix seconds. So are ours.

This module is the *only* time helper surface in the codebase.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], int]


def unix_now() -> int:
    """Return the current wall-clock time in whole unix seconds."""

    return int(time.time())


def utc_now() -> datetime:
    """Return an aware UTC datetime."""

    return datetime.now(tz=UTC)


class FrozenClock:
    """Manually advanced clock. Schedulers take any zero-arg callable returning seconds."""

    def __init__(self, start: int) -> None:
        self.now = int(start)

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += int(seconds)
        return self.now

    def set(self, value: int) -> None:
        self.now = int(value)
