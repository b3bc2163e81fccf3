from __future__ import annotations

import pytest

from randrelay.core.metrics import MetricsRegistry


def test_metrics_snapshot_filters_by_prefix() -> None:
    m = MetricsRegistry()
    m.counter("submissions.ok.commit").inc()
    m.counter("submissions.ok.commit").inc()
    m.counter("reveal.expired").inc(3)
    m.gauge("nonce.next").set(9)

    assert m.snapshot("submissions.") == {"counters": {"submissions.ok.commit": 2}, "gauges": {}}
    assert m.snapshot()["counters"]["reveal.expired"] == 3
    with pytest.raises(ValueError):
        m.counter("reveal.expired").inc(-1)
