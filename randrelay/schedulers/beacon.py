"""randrelay.schedulers.beacon

Beacon poller: fetch the latest drand value and push it on-chain.

At most one poll is ever outstanding. A timer tick that finds the previous
poll still running is dropped, not queued. There is no content dedup: every
fetched value with non-empty randomness is submitted, tagged with the wall
clock at submission time.
"""

from __future__ import annotations

from typing import Protocol

from randrelay.core.exceptions import BeaconError
from randrelay.core.types import BeaconValue
from randrelay.integrations.chain import set_drand_value
from randrelay.schedulers.base import PeriodicTask, SchedulerContext


class BeaconSource(Protocol):
    async def fetch_latest(self) -> BeaconValue: ...


class RandomnessBeaconPoller(PeriodicTask):
    name = "beacon"

    def __init__(self, ctx: SchedulerContext, beacon: BeaconSource) -> None:
        super().__init__(ctx)
        self.beacon = beacon
        self._polling = False

    @property
    def interval_s(self) -> float:
        return self.ctx.config.beacon.poll_interval_s

    @property
    def polling(self) -> bool:
        return self._polling

    async def tick(self) -> BeaconValue | None:
        return await self.poll()

    async def poll(self) -> BeaconValue | None:
        """Fetch once and submit. Returns the value fetched, or None if skipped."""

        if self._polling:
            self.ctx.metrics.counter("beacon.ticks_skipped").inc()
            self.ctx.logger.debug("beacon_tick_skipped", extra={"scheduler": self.name})
            return None

        self._polling = True
        try:
            try:
                value = await self.beacon.fetch_latest()
            except BeaconError as e:
                self.ctx.metrics.counter("beacon.fetch_errors").inc()
                self.ctx.logger.warning(
                    "beacon_fetch_failed",
                    extra={"scheduler": self.name, "error_kind": type(e).__name__, "error": str(e)},
                )
                return None

            if not value.randomness:
                self.ctx.logger.debug("beacon_empty_randomness", extra={"round": value.round})
                return None

            call = set_drand_value(
                self.ctx.config.chain.beacon_oracle_address,
                self.ctx.clock(),
                value.randomness,
            )
            await self.submit(call)
            return value
        finally:
            self._polling = False
