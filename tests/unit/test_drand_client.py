from __future__ import annotations

import httpx
import pytest

from randrelay.core.client import DataClient
from randrelay.core.exceptions import BeaconNetworkError, BeaconParseError
from randrelay.integrations.drand import DrandClient, parse_beacon, parse_randomness

URL = "https://api.drand.sh/public/latest"
RAND_HEX = "cd" * 32


def _client(handler) -> DrandClient:
    return DrandClient(DataClient(transport=httpx.MockTransport(handler)), url=URL)


@pytest.mark.anyio
async def test_fetch_latest_parses_round_and_randomness() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert str(request.url) == URL
        return httpx.Response(200, json={"round": 5, "randomness": RAND_HEX, "signature": "ff"})

    value = await _client(handler).fetch_latest()
    assert value.round == 5
    assert value.randomness == bytes.fromhex(RAND_HEX)


@pytest.mark.anyio
async def test_http_error_status_is_network_error() -> None:
    client = _client(lambda request: httpx.Response(503, text="unavailable"))
    with pytest.raises(BeaconNetworkError):
        await client.fetch_latest()


@pytest.mark.anyio
async def test_connection_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(BeaconNetworkError):
        await _client(handler).fetch_latest()


@pytest.mark.anyio
async def test_non_json_body_is_parse_error() -> None:
    client = _client(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(BeaconParseError):
        await client.fetch_latest()


def test_parse_beacon_rejects_missing_round() -> None:
    with pytest.raises(BeaconParseError):
        parse_beacon({"randomness": RAND_HEX})


def test_parse_beacon_rejects_non_object() -> None:
    with pytest.raises(BeaconParseError):
        parse_beacon([1, 2, 3])


def test_parse_randomness_accepts_prefix_and_empty() -> None:
    assert parse_randomness("0x" + RAND_HEX) == bytes.fromhex(RAND_HEX)
    assert parse_randomness("") == b""


@pytest.mark.parametrize("bad", ["zz" * 32, "ab" * 16, 42])
def test_parse_randomness_rejects_garbage(bad) -> None:
    with pytest.raises(BeaconParseError):
        parse_randomness(bad)


def test_missing_randomness_field_reads_as_empty() -> None:
    assert parse_beacon({"round": 3}).randomness == b""
