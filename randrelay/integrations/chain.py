"""randrelay.integrations.chain

Minimal EVM client for the two randomness oracles.

Design goals:
- Lightweight: raw JSON-RPC over httpx, no web3 dependency.
- Legacy transactions signed locally with eth-account.
- The caller owns the nonce. This client never reads or guesses one while
  submitting.

Every oracle method has the shape ``method(uint256 timestamp, bytes32 value)``.
"""

from __future__ import annotations

import itertools
from typing import Any

from eth_abi import encode as abi_encode
from eth_account import Account
from eth_utils import keccak, to_checksum_address

from randrelay.core.client import DataClient
from randrelay.core.exceptions import ChainError, SubmissionError
from randrelay.core.types import ContractCall, SubmissionKind


def set_drand_value(contract: str, timestamp: int, randomness: bytes) -> ContractCall:
    return ContractCall(SubmissionKind.BEACON, "setDrandValue", contract, int(timestamp), bytes(randomness))


def set_sequencer_commitment(contract: str, timestamp: int, commitment: bytes) -> ContractCall:
    return ContractCall(SubmissionKind.COMMIT, "setSequencerCommitment", contract, int(timestamp), bytes(commitment))


def reveal_sequencer_random(contract: str, timestamp: int, secret: bytes) -> ContractCall:
    return ContractCall(SubmissionKind.REVEAL, "revealSequencerRandom", contract, int(timestamp), bytes(secret))


def selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def encode_call(call: ContractCall) -> bytes:
    if len(call.value) != 32:
        raise ValueError(f"{call.method}: value must be 32 bytes, got {len(call.value)}")
    return selector(call.signature) + abi_encode(["uint256", "bytes32"], [call.timestamp, call.value])


class ChainClient:
    """JSON-RPC client bound to one signing account."""

    def __init__(
        self,
        client: DataClient,
        *,
        rpc_url: str,
        private_key: str,
        chain_id: int | None = None,
        gas_limit: int = 200_000,
    ) -> None:
        self._client = client
        self._rpc_url = str(rpc_url)
        self._account = Account.from_key(private_key)
        self._chain_id = chain_id
        self.gas_limit = int(gas_limit)
        self._ids = itertools.count(1)

    @property
    def address(self) -> str:
        return str(self._account.address)

    async def rpc_call(self, method: str, params: list[object]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": str(method), "params": list(params)}
        out = await self._client.request_json("POST", self._rpc_url, expected=dict, json=payload)
        if out.get("error") is not None:
            err = out["error"]
            msg = err.get("message") if isinstance(err, dict) else err
            raise ChainError(f"{method}: {msg}")
        return out.get("result")

    @staticmethod
    def _quantity(value: Any, *, what: str) -> int:
        if not isinstance(value, str) or not value.startswith("0x"):
            raise ChainError(f"{what}: expected hex quantity, got {value!r}")
        return int(value, 16)

    async def get_account_nonce(self, address: str) -> int:
        result = await self.rpc_call("eth_getTransactionCount", [address, "latest"])
        return self._quantity(result, what="eth_getTransactionCount")

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            result = await self.rpc_call("eth_chainId", [])
            self._chain_id = self._quantity(result, what="eth_chainId")
        return self._chain_id

    async def get_gas_price(self) -> int:
        result = await self.rpc_call("eth_gasPrice", [])
        return self._quantity(result, what="eth_gasPrice")

    def build_transaction(self, call: ContractCall, *, nonce: int, gas_price: int, chain_id: int) -> dict[str, Any]:
        return {
            "to": to_checksum_address(call.contract),
            "value": 0,
            "gas": self.gas_limit,
            "gasPrice": int(gas_price),
            "nonce": int(nonce),
            "chainId": int(chain_id),
            "data": "0x" + encode_call(call).hex(),
        }

    async def submit(self, call: ContractCall, nonce: int) -> str:
        """Sign and broadcast ``call`` with ``nonce``. Returns the tx hash.

        Raises:
            SubmissionError: the transaction was not built, signed or accepted.
                Every failure on this path is mapped, so the nonce reservation
                and the pending log see exactly one error kind.
        """

        try:
            chain_id = await self.get_chain_id()
            gas_price = await self.get_gas_price()
            tx = self.build_transaction(call, nonce=nonce, gas_price=gas_price, chain_id=chain_id)
            signed = self._account.sign_transaction(tx)
            tx_hash = await self.rpc_call("eth_sendRawTransaction", ["0x" + bytes(signed.raw_transaction).hex()])
        except Exception as e:  # noqa: BLE001 - every failure here is a refused submission
            raise SubmissionError(f"{call.method} nonce={nonce}: {e}") from e

        if not isinstance(tx_hash, str):
            raise SubmissionError(f"{call.method} nonce={nonce}: node returned no tx hash")
        return tx_hash
