"""randrelay.integrations.drand

drand HTTP beacon client.

``GET <url>`` returns ``{"round": int, "randomness": hex, ...}``. Only the
round and randomness are kept; signatures are the chain contract's business.
"""

from __future__ import annotations

from typing import Any

import httpx

from randrelay.core.client import DataClient
from randrelay.core.exceptions import BeaconNetworkError, BeaconParseError
from randrelay.core.types import BeaconValue

DRAND_LATEST_URL = "https://api.drand.sh/public/latest"


def parse_randomness(value: Any) -> bytes:
    """Decode a hex randomness field (``0x`` optional). Empty input yields ``b""``."""

    if not isinstance(value, str):
        raise BeaconParseError(f"randomness must be a hex string, got {type(value).__name__}")
    s = value.strip().removeprefix("0x")
    if not s:
        return b""
    try:
        raw = bytes.fromhex(s)
    except ValueError as e:
        raise BeaconParseError(f"randomness is not hex: {value!r}") from e
    if len(raw) != 32:
        raise BeaconParseError(f"randomness must be 32 bytes, got {len(raw)}")
    return raw


def parse_beacon(data: Any) -> BeaconValue:
    if not isinstance(data, dict):
        raise BeaconParseError("beacon response must be a JSON object")
    rnd = data.get("round")
    if isinstance(rnd, bool) or not isinstance(rnd, int):
        raise BeaconParseError(f"beacon round must be an integer, got {rnd!r}")
    return BeaconValue(round=rnd, randomness=parse_randomness(data.get("randomness", "")))


class DrandClient:
    def __init__(self, client: DataClient, *, url: str = DRAND_LATEST_URL, max_bytes: int = 64 * 1024) -> None:
        self._client = client
        self.url = url
        self.max_bytes = int(max_bytes)

    async def fetch_latest(self) -> BeaconValue:
        try:
            data = await self._client.request_json("GET", self.url, max_bytes=self.max_bytes)
        except httpx.HTTPError as e:
            raise BeaconNetworkError(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise BeaconParseError(f"beacon response is not JSON: {e}") from e
        return parse_beacon(data)
