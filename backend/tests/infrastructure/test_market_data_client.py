"""Market data client tests — payload shaping and MarketDataError mapping."""

import httpx
import pytest

from shipyard.core.errors import MarketDataError
from shipyard.infrastructure.market_data_client import MarketDataClient


def _client(handler):
    return MarketDataClient(http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


async def test_funding_rate_in_percent():
    client = _client(lambda request: httpx.Response(200, json={"data": [{"fundingRate": "0.0001"}]}))
    assert await client.funding_rate("BTC-USDT-SWAP") == pytest.approx(0.01)


async def test_funding_rate_empty_payload_is_zero():
    client = _client(lambda request: httpx.Response(200, json={"data": []}))
    assert await client.funding_rate("BTC-USDT-SWAP") == 0.0


async def test_http_error_maps_to_market_data_error():
    client = _client(lambda request: httpx.Response(429))
    with pytest.raises(MarketDataError) as exc:
        await client.simple_prices(["bitcoin"])
    assert exc.value.source == "coingecko"


async def test_fear_greed_requires_data():
    client = _client(lambda request: httpx.Response(200, json={"name": "Fear and Greed"}))
    with pytest.raises(MarketDataError):
        await client.fear_greed(7)


async def test_trending_pools():
    client = _client(lambda request: httpx.Response(200, json={"data": [{"id": "p1"}]}))
    assert await client.trending_pools("solana") == [{"id": "p1"}]


async def test_simple_prices_params():
    seen = {}

    def handler(request: httpx.Request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"bitcoin": {"usd": 1}})

    await _client(handler).simple_prices(["bitcoin", "ethereum"])
    assert seen["params"]["ids"] == "bitcoin,ethereum"
    assert seen["params"]["include_24hr_change"] == "true"
