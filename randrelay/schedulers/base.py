"""randrelay.schedulers.base

Schedulers are the relay's clockwork.

Each one owns a single periodic concern (poll the beacon, commit, reveal) and
fires on its own timer. They never call each other; they meet only at the
shared interfaces in the context: the nonce sequencer, the commit queue and
the pending-submission log.

Tick protocol:
- decide whether there is work this tick
- build one contract call
- submit it inside a nonce reservation
- on failure, record to the pending log and carry on
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

from randrelay.core.config import Config
from randrelay.core.exceptions import StaleSubmissionError, SubmissionError
from randrelay.core.metrics import MetricsRegistry
from randrelay.core.nonce import NonceSequencer
from randrelay.core.queues import CommitQueue, PendingSubmissionQueue
from randrelay.core.time import Clock, unix_now
from randrelay.core.types import ContractCall, PendingSubmission


class Submitter(Protocol):
    async def submit(self, call: ContractCall, nonce: int) -> str: ...


@dataclass(frozen=True, slots=True)
class SchedulerContext:
    """Shared context injected into every scheduler."""

    config: Config
    chain: Submitter
    nonces: NonceSequencer
    commits: CommitQueue
    pending: PendingSubmissionQueue
    metrics: MetricsRegistry
    logger: logging.Logger
    clock: Clock = unix_now


class PeriodicTask(ABC):
    """Template-method base class.

    Subclasses implement:
    - interval_s
    - tick()

    and inherit:
    - run_tick() (isolation boundary: a tick never raises)
    - run() (timer loop until the stop event is set)
    - submit() (nonce reservation + pending log on failure)
    """

    name: str
    initial_delay_s: float = 0.0

    def __init__(self, ctx: SchedulerContext) -> None:
        self.ctx = ctx

    @property
    @abstractmethod
    def interval_s(self) -> float:
        raise NotImplementedError

    @abstractmethod
    async def tick(self) -> Any:
        raise NotImplementedError

    def detail(self, event: str, **fields: Any) -> None:
        """Per-submission detail: INFO when verbose, DEBUG otherwise."""

        level = logging.INFO if self.ctx.config.logging.verbose else logging.DEBUG
        self.ctx.logger.log(level, event, extra={"scheduler": self.name, **fields})

    async def run_tick(self) -> Any:
        try:
            return await self.tick()
        except Exception:  # noqa: BLE001 - scheduler isolation boundary
            self.ctx.metrics.counter(f"{self.name}.tick_errors").inc()
            self.ctx.logger.exception("scheduler_tick_failed", extra={"scheduler": self.name})
            return None

    async def run(self, stop: asyncio.Event) -> None:
        """Fire ``run_tick`` every ``interval_s`` until ``stop`` is set.

        Ticks are independent tasks: a slow tick does not delay the next one.
        In-flight ticks are cancelled on stop.
        """

        if self.initial_delay_s > 0 and await _wait(stop, self.initial_delay_s):
            return

        inflight: set[asyncio.Task[Any]] = set()
        self.ctx.logger.info("scheduler_started", extra={"scheduler": self.name, "interval_s": self.interval_s})
        try:
            while not stop.is_set():
                task = asyncio.create_task(self.run_tick(), name=f"{self.name}-tick")
                inflight.add(task)
                task.add_done_callback(inflight.discard)
                if await _wait(stop, self.interval_s):
                    break
        finally:
            for task in list(inflight):
                task.cancel()
            if inflight:
                await asyncio.gather(*inflight, return_exceptions=True)
            self.ctx.logger.info("scheduler_stopped", extra={"scheduler": self.name})

    async def submit(self, call: ContractCall, *, deadline: int | None = None) -> str | None:
        """Submit ``call`` under a nonce reservation.

        Returns the tx hash, or None when the chain refused it. A refusal
        releases the nonce and lands in the pending log with attempt=1.

        ``deadline`` is checked once the nonce lock is held: a call whose
        deadline has passed (``clock() >= deadline``) while queued behind a
        stalled node is dropped unsent, releasing its nonce.
        """

        kind = str(call.kind)
        try:
            async with self.ctx.nonces.reservation() as nonce:
                if deadline is not None and self.ctx.clock() >= deadline:
                    raise StaleSubmissionError(f"{call.method} deadline={deadline} passed before submission")
                tx_hash = await self.ctx.chain.submit(call, nonce)
        except StaleSubmissionError as e:
            self.ctx.metrics.counter(f"submissions.stale.{kind}").inc()
            self.ctx.logger.warning(
                f"{kind}_submit_stale",
                extra={"scheduler": self.name, "timestamp": call.timestamp, "deadline": deadline, "error": str(e)},
            )
            return None
        except SubmissionError as e:
            self.ctx.pending.record(
                PendingSubmission(
                    kind=call.kind,
                    timestamp=call.timestamp,
                    payload="0x" + call.value.hex(),
                    attempt=1,
                    error=str(e),
                )
            )
            self.ctx.metrics.counter(f"submissions.failed.{kind}").inc()
            self.ctx.logger.error(
                f"{kind}_submit_failed",
                extra={"scheduler": self.name, "timestamp": call.timestamp, "error": str(e)},
            )
            return None

        self.ctx.metrics.counter(f"submissions.ok.{kind}").inc()
        self.detail(
            f"{kind}_submitted",
            method=call.method,
            timestamp=call.timestamp,
            value="0x" + call.value.hex(),
            nonce=nonce,
            tx=tx_hash,
        )
        return tx_hash


async def _wait(stop: asyncio.Event, timeout_s: float) -> bool:
    """Sleep up to ``timeout_s``; True if ``stop`` was set meanwhile."""

    try:
        await asyncio.wait_for(stop.wait(), timeout=timeout_s)
    except TimeoutError:
        return stop.is_set()
    return True
