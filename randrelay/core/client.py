"""randrelay.core.client

Shared async HTTP client with:
- per-request timeout
- optional retries (exponential backoff)
- response size and shape caps

The beacon poller runs with zero retries: a missed tick is retried by the
next tick, not by the client.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx


@dataclass(frozen=True, slots=True)
class ClientConfig:
    max_retries: int = 0
    timeout_s: float = 10.0


class DataClient:
    def __init__(self, config: ClientConfig | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config or ClientConfig()
        self._client = httpx.AsyncClient(timeout=self.config.timeout_s, transport=transport)

    @staticmethod
    def _enforce_max_bytes(resp: httpx.Response, *, max_bytes: int) -> None:
        size = len(resp.content)
        if size > int(max_bytes):
            raise httpx.TransportError(f"response_too_large:{size}")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        last_exc: Exception | None = None
        for attempt in range(self.config.max_retries + 1):
            try:
                resp = await self._client.request(method, url, **kwargs)
                resp.raise_for_status()
                await resp.aread()
                return resp
            except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError, httpx.TransportError) as e:
                last_exc = e
                if attempt >= self.config.max_retries:
                    break
                await asyncio.sleep(min(2**attempt, 8))

        assert last_exc is not None
        raise last_exc

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        expected: type | tuple[type, ...] | None = None,
        max_bytes: int = 512 * 1024,
        **kwargs: Any,
    ) -> Any:
        """Request and parse JSON with basic safety caps.

        - max_bytes: hard cap on response body
        - expected: required top-level JSON type

        Raises ``ValueError`` when the body is not JSON.
        """

        resp = await self.request(method, url, **kwargs)
        self._enforce_max_bytes(resp, max_bytes=max_bytes)
        data: Any = resp.json()
        if expected is not None and not isinstance(data, expected):
            raise httpx.TransportError("response_schema_mismatch")
        return data
