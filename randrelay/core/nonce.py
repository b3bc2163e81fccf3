"""randrelay.core.nonce

One account, one nonce counter, three schedulers.

The chain rejects out-of-order nonces. A reservation that is neither used nor
released stalls every later transaction from the account, so reserve, submit
and release-on-failure form a single critical section:

    async with sequencer.reservation() as nonce:
        await chain.submit(call, nonce)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol

from randrelay.core.exceptions import NonceError, NonceSyncError
from randrelay.core.metrics import REGISTRY, MetricsRegistry

logger = logging.getLogger(__name__)


class NonceSource(Protocol):
    async def get_account_nonce(self, address: str) -> int: ...


class NonceSequencer:
    """Owns the next outgoing nonce for a single sending account."""

    def __init__(self, *, metrics: MetricsRegistry | None = None) -> None:
        self._next: int | None = None
        self._outstanding: list[int] = []
        self._lock = asyncio.Lock()
        self._metrics = metrics or REGISTRY

    @property
    def initialized(self) -> bool:
        return self._next is not None

    @property
    def next_nonce(self) -> int:
        if self._next is None:
            raise NonceError("nonce sequencer not initialized")
        return self._next

    def initialize(self, nonce: int) -> None:
        if int(nonce) < 0:
            raise NonceError(f"nonce must be >= 0, got {nonce}")
        self._next = int(nonce)
        self._outstanding.clear()
        self._metrics.gauge("nonce.next").set(self._next)

    async def sync(self, source: NonceSource, address: str) -> int:
        """Initialize from the chain's authoritative transaction count."""

        try:
            nonce = await source.get_account_nonce(address)
        except Exception as e:
            raise NonceSyncError(f"could not read transaction count for {address}: {e}") from e
        self.initialize(nonce)
        logger.info("nonce_synced", extra={"nonce": nonce})
        return nonce

    def reserve(self) -> int:
        nonce = self.next_nonce
        self._next = nonce + 1
        self._outstanding.append(nonce)
        self._metrics.gauge("nonce.next").set(self._next)
        return nonce

    def confirm(self, nonce: int) -> None:
        """Mark a reservation as used by an accepted transaction."""

        if nonce in self._outstanding:
            self._outstanding.remove(nonce)

    def release(self, nonce: int) -> None:
        """Give back the most recent reservation after a failed submission."""

        if self._next is None or not self._outstanding or self._outstanding[-1] != nonce:
            raise NonceError(f"release of nonce {nonce} out of order (next={self._next})")
        self._outstanding.pop()
        self._next = nonce
        self._metrics.gauge("nonce.next").set(self._next)

    @asynccontextmanager
    async def reservation(self) -> AsyncIterator[int]:
        async with self._lock:
            nonce = self.reserve()
            try:
                yield nonce
            except BaseException:
                self.release(nonce)
                raise
            self.confirm(nonce)
