"""randrelay.schedulers.commit

Commit scheduler: every tick, pick a fresh secret, publish its hash with a
target timestamp ``precommit_delay_s`` in the future, and remember the secret
for the reveal scheduler.

Only commitments the chain accepted are queued. A refused commitment was
never published, so there is nothing to reveal later.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable

from eth_utils import keccak

from randrelay.core.types import CommitRecord
from randrelay.integrations.chain import set_sequencer_commitment
from randrelay.schedulers.base import PeriodicTask, SchedulerContext


def make_commit(target_timestamp: int, secret: bytes, *, hash_fn: Callable[[bytes], bytes] = keccak) -> CommitRecord:
    return CommitRecord(target_timestamp=int(target_timestamp), secret=bytes(secret), commitment=bytes(hash_fn(secret)))


class CommitScheduler(PeriodicTask):
    name = "commit"

    def __init__(
        self,
        ctx: SchedulerContext,
        *,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        hash_fn: Callable[[bytes], bytes] = keccak,
    ) -> None:
        super().__init__(ctx)
        self.random_bytes = random_bytes
        self.hash_fn = hash_fn

    @property
    def interval_s(self) -> float:
        return self.ctx.config.sequencer.tick_interval_s

    def generate(self) -> CommitRecord:
        seq = self.ctx.config.sequencer
        target = self.ctx.clock() + int(seq.precommit_delay_s)
        return make_commit(target, self.random_bytes(seq.secret_bytes), hash_fn=self.hash_fn)

    async def tick(self) -> CommitRecord | None:
        record = self.generate()
        call = set_sequencer_commitment(
            self.ctx.config.chain.sequencer_oracle_address,
            record.target_timestamp,
            record.commitment,
        )
        # Still revealable if the commitment only lands late.
        deadline = record.target_timestamp + int(self.ctx.config.sequencer.expiry_window_s)
        tx_hash = await self.submit(call, deadline=deadline)
        if tx_hash is None:
            return None

        self.ctx.commits.append(record)
        return record
