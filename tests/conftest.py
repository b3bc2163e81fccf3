from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from randrelay.core.config import Config  # noqa: E402
from randrelay.core.metrics import MetricsRegistry  # noqa: E402
from randrelay.core.nonce import NonceSequencer  # noqa: E402
from randrelay.core.queues import CommitQueue, PendingSubmissionQueue  # noqa: E402
from randrelay.core.time import FrozenClock  # noqa: E402
from randrelay.schedulers.base import SchedulerContext  # noqa: E402
from tests.unit._fakes import FakeChain  # noqa: E402


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _no_ambient_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    monkeypatch.delenv("RANDRELAY_CHAIN__PRIVATE_KEY", raising=False)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(100)


@pytest.fixture()
def metrics() -> MetricsRegistry:
    return MetricsRegistry()


@pytest.fixture()
def chain() -> FakeChain:
    return FakeChain(account_nonce=7)


@pytest.fixture()
def make_ctx(chain: FakeChain, clock: FrozenClock, metrics: MetricsRegistry):
    """Build a SchedulerContext around the fake chain, initialized at its nonce."""

    def _make(config: Config | None = None, **overrides: Any) -> SchedulerContext:
        nonces = NonceSequencer(metrics=metrics)
        nonces.initialize(chain.account_nonce)
        fields: dict[str, Any] = {
            "config": config or Config(),
            "chain": chain,
            "nonces": nonces,
            "commits": CommitQueue(metrics=metrics),
            "pending": PendingSubmissionQueue(metrics=metrics),
            "metrics": metrics,
            "logger": logging.getLogger("test"),
            "clock": clock,
        }
        fields.update(overrides)
        return SchedulerContext(**fields)

    return _make
