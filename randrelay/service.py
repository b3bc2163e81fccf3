"""randrelay.service

Wires the relay together and runs it.

Startup order:
1. resolve the signing account
2. sync the nonce from the chain (fatal on failure)
3. start the beacon poller and the commit scheduler
4. start the reveal scheduler after its startup delay (handled by the task)

Shutdown sets one stop event; every loop exits and in-flight ticks are cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from randrelay.core.client import ClientConfig, DataClient
from randrelay.core.config import Config
from randrelay.core.metrics import REGISTRY, MetricsRegistry
from randrelay.core.nonce import NonceSequencer
from randrelay.core.queues import CommitQueue, PendingSubmissionQueue
from randrelay.core.time import Clock, unix_now
from randrelay.integrations.chain import ChainClient
from randrelay.integrations.drand import DrandClient
from randrelay.schedulers.base import PeriodicTask, SchedulerContext
from randrelay.schedulers.beacon import BeaconSource, RandomnessBeaconPoller
from randrelay.schedulers.commit import CommitScheduler
from randrelay.schedulers.reveal import RevealScheduler

logger = logging.getLogger(__name__)


@dataclass
class RelayService:
    config: Config
    chain: Any  # ChainClient-shaped: address, get_account_nonce, submit
    beacon: BeaconSource
    metrics: MetricsRegistry = field(default_factory=lambda: REGISTRY)
    clock: Clock = unix_now
    nonces: NonceSequencer = field(init=False)
    commits: CommitQueue = field(init=False)
    pending: PendingSubmissionQueue = field(init=False)
    tasks: list[PeriodicTask] = field(init=False)

    def __post_init__(self) -> None:
        self.nonces = NonceSequencer(metrics=self.metrics)
        self.commits = CommitQueue(metrics=self.metrics)
        self.pending = PendingSubmissionQueue(metrics=self.metrics)
        ctx = SchedulerContext(
            config=self.config,
            chain=self.chain,
            nonces=self.nonces,
            commits=self.commits,
            pending=self.pending,
            metrics=self.metrics,
            logger=logger,
            clock=self.clock,
        )
        self.tasks = [
            RandomnessBeaconPoller(ctx, self.beacon),
            CommitScheduler(ctx),
            RevealScheduler(ctx),
        ]
        self._stop = asyncio.Event()

    async def start(self) -> int:
        """Sync the nonce. Raises NonceSyncError if the chain cannot be read."""

        address = str(self.chain.address)
        nonce = await self.nonces.sync(self.chain, address)
        logger.info("relay_ready", extra={"address": address, "nonce": nonce})
        return nonce

    async def run(self) -> None:
        """Start (if needed) and run all schedulers until ``stop()``.

        A ``stop()`` that lands before or during startup is honoured: the
        schedulers exit without firing a tick.
        """

        if not self.nonces.initialized:
            await self.start()
        await asyncio.gather(*(task.run(self._stop) for task in self.tasks))
        logger.info("relay_stopped", extra=self.status())

    def stop(self) -> None:
        self._stop.set()

    def status(self) -> dict[str, Any]:
        return {
            "next_nonce": self.nonces.next_nonce if self.nonces.initialized else None,
            "commit_queue_depth": len(self.commits),
            "pending_submissions": len(self.pending),
            "metrics": self.metrics.snapshot(),
        }


def build_service(config: Config, *, metrics: MetricsRegistry | None = None) -> tuple[RelayService, list[DataClient]]:
    """Construct a service with real HTTP collaborators.

    Returns the service and the HTTP clients the caller must close.
    """

    private_key = config.require_signer()
    beacon_http = DataClient(ClientConfig(max_retries=0, timeout_s=config.beacon.timeout_s))
    chain_http = DataClient(ClientConfig(max_retries=0, timeout_s=config.chain.timeout_s))

    chain = ChainClient(
        chain_http,
        rpc_url=config.chain.rpc_url,
        private_key=private_key,
        chain_id=config.chain.chain_id,
        gas_limit=config.chain.gas_limit,
    )
    beacon = DrandClient(beacon_http, url=config.beacon.url, max_bytes=config.beacon.max_bytes)
    service = RelayService(config=config, chain=chain, beacon=beacon, metrics=metrics or REGISTRY)
    return service, [beacon_http, chain_http]
