"""randrelay.schedulers.reveal

Reveal scheduler: publish committed secrets once their target time arrives.

Per commitment: Committed -> Revealed | Expired. Both are terminal.

- head not due yet (target > now): leave it, try next tick
- target + expiry_window_s <= now: expired, dropped, never revealed
- otherwise: removed from the queue and revealed

A failed reveal is not retried from the queue; it only lives on in the
pending log. A reveal whose window closes while it waits for the nonce lock is
dropped unsent.
"""

from __future__ import annotations

from randrelay.core.types import RevealOutcome
from randrelay.integrations.chain import reveal_sequencer_random
from randrelay.schedulers.base import PeriodicTask, SchedulerContext


class RevealScheduler(PeriodicTask):
    name = "reveal"

    def __init__(self, ctx: SchedulerContext) -> None:
        super().__init__(ctx)
        self.initial_delay_s = ctx.config.sequencer.reveal_startup_delay_s

    @property
    def interval_s(self) -> float:
        return self.ctx.config.sequencer.tick_interval_s

    async def tick(self) -> RevealOutcome:
        now = self.ctx.clock()
        window = int(self.ctx.config.sequencer.expiry_window_s)

        head = self.ctx.commits.peek()
        if head is None:
            return RevealOutcome()
        if not head.is_due(now):
            self.ctx.logger.debug(
                "reveal_not_due",
                extra={"target_timestamp": head.target_timestamp, "now": now},
            )
            return RevealOutcome()

        record, expired = self.ctx.commits.take_revealable(now, window)
        if expired:
            self.ctx.metrics.counter("reveal.expired").inc(len(expired))
            self.ctx.logger.warning(
                "commitments_expired",
                extra={"count": len(expired), "targets": [r.target_timestamp for r in expired], "now": now},
            )
        if record is None:
            return RevealOutcome(expired=tuple(expired))

        call = reveal_sequencer_random(
            self.ctx.config.chain.sequencer_oracle_address,
            record.target_timestamp,
            record.secret,
        )
        # The window may close while the reveal waits behind earlier submissions.
        tx_hash = await self.submit(call, deadline=record.target_timestamp + window)
        return RevealOutcome(revealed=record, expired=tuple(expired), submitted=tx_hash is not None)
