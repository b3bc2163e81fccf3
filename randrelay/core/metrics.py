"""randrelay.core.metrics

In-process counters and gauges for the relay.

Names are dotted and grouped by concern:
- ``beacon.ticks_skipped``, ``beacon.fetch_errors``
- ``submissions.{ok,failed,stale}.<kind>``
- ``reveal.expired``, ``<scheduler>.tick_errors``
- gauges: ``nonce.next``, ``commit_queue.depth``, ``pending.depth``

``RelayService.status()`` carries the snapshot, so it is logged on shutdown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock


@dataclass
class Counter:
    """Monotonic event count."""

    name: str
    _value: int = 0
    _lock: Lock = field(default_factory=Lock, repr=False)

    def inc(self, amount: int = 1) -> None:
        if amount < 0:
            raise ValueError(f"counter {self.name} cannot decrease")
        with self._lock:
            self._value += int(amount)

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass
class Gauge:
    """Last observed level (queue depth, next nonce)."""

    name: str
    _value: float = 0.0
    _lock: Lock = field(default_factory=Lock, repr=False)

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    @property
    def value(self) -> float:
        with self._lock:
            return self._value


class MetricsRegistry:
    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}

    def counter(self, name: str) -> Counter:
        with self._lock:
            return self._counters.setdefault(name, Counter(name=name))

    def gauge(self, name: str) -> Gauge:
        with self._lock:
            return self._gauges.setdefault(name, Gauge(name=name))

    def snapshot(self, prefix: str = "") -> dict[str, dict[str, float]]:
        """``{"counters": {...}, "gauges": {...}}``, names sorted, filtered by ``prefix``."""

        with self._lock:
            counters = list(self._counters.values())
            gauges = list(self._gauges.values())
        return {
            "counters": {c.name: c.value for c in sorted(counters, key=lambda m: m.name) if c.name.startswith(prefix)},
            "gauges": {g.name: g.value for g in sorted(gauges, key=lambda m: m.name) if g.name.startswith(prefix)},
        }


REGISTRY = MetricsRegistry()
