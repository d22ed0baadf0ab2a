"""Jupiter client tests — retries with fixed delay over httpx.MockTransport."""

import httpx
import pytest

from shipyard.core.errors import SwapAggregatorError
from shipyard.infrastructure.jupiter_client import JupiterClient

QUOTE_URL = "https://jup.test/quote"
SWAP_URL = "https://jup.test/swap"


def _client(handler, sleeps):
    async def _sleep(seconds):
        sleeps.append(seconds)
    return JupiterClient(
        QUOTE_URL, SWAP_URL, slippage_bps=50, max_attempts=3, retry_delay_seconds=1.5,
        http=httpx.AsyncClient(transport=httpx.MockTransport(handler)), sleep=_sleep,
    )


async def test_quote_retries_then_succeeds():
    calls = []
    sleeps = []

    def handler(request: httpx.Request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"outAmount": "4200"})

    client = _client(handler, sleeps)
    quote = await client.get_quote("So111", "MintX", 1_000_000)

    assert quote["outAmount"] == "4200"
    assert len(calls) == 3
    assert sleeps == [1.5, 1.5]
    params = calls[0].url.params
    assert params["amount"] == "1000000"
    assert params["slippageBps"] == "50"


async def test_quote_missing_out_amount_exhausts():
    sleeps = []
    client = _client(lambda request: httpx.Response(200, json={"error": "no route"}), sleeps)
    with pytest.raises(SwapAggregatorError) as exc:
        await client.get_quote("So111", "MintX", 1)
    assert exc.value.stage == "quote"
    assert len(sleeps) == 2


async def test_quote_with_unparseable_out_amount_exhausts():
    calls = []

    def handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(200, json={"outAmount": "not-a-number"})

    client = _client(handler, [])
    with pytest.raises(SwapAggregatorError) as exc:
        await client.get_quote("So111", "MintX", 1)
    assert exc.value.stage == "quote"
    assert len(calls) == 3


async def test_build_swap_returns_transaction():
    seen = {}

    def handler(request: httpx.Request):
        seen["body"] = request.content
        return httpx.Response(200, json={"swapTransaction": "AQID"})

    client = _client(handler, [])
    tx = await client.build_swap({"outAmount": "1"}, "Wallet111")

    assert tx == "AQID"
    assert b'"userPublicKey":"Wallet111"' in seen["body"].replace(b" ", b"")


async def test_build_swap_missing_transaction():
    client = _client(lambda request: httpx.Response(200, json={}), [])
    with pytest.raises(SwapAggregatorError, match="swap failed"):
        await client.build_swap({"outAmount": "1"}, "Wallet111")
