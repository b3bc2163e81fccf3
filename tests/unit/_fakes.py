from __future__ import annotations

import asyncio

from randrelay.core.exceptions import SubmissionError
from randrelay.core.types import BeaconValue, ContractCall

# anvil account #0 (DO NOT USE IN PRODUCTION)
ANVIL_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ANVIL_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeChain:
    """Records submissions; fails the ones a test asks it to."""

    address = ANVIL_ADDRESS

    def __init__(self, *, account_nonce: int = 0) -> None:
        self.account_nonce: int | Exception = account_nonce
        self.submitted: list[tuple[ContractCall, int]] = []
        self.fail_methods: set[str] = set()
        self.fail_all = False
        # When set, submissions block until the event fires (a stalled node).
        self.gate: asyncio.Event | None = None

    async def get_account_nonce(self, address: str) -> int:
        if isinstance(self.account_nonce, Exception):
            raise self.account_nonce
        return self.account_nonce

    async def submit(self, call: ContractCall, nonce: int) -> str:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_all or call.method in self.fail_methods:
            raise SubmissionError(f"{call.method} nonce={nonce}: rejected")
        self.submitted.append((call, nonce))
        return "0x" + f"{len(self.submitted):064x}"

    def methods(self) -> list[str]:
        return [c.method for c, _ in self.submitted]


class FakeBeacon:
    def __init__(self, values: list[BeaconValue | Exception] | None = None) -> None:
        self.values = list(values or [])
        self.calls = 0

    async def fetch_latest(self) -> BeaconValue:
        self.calls += 1
        item = self.values.pop(0)
        if isinstance(item, Exception):
            raise item
        return item
