"""Market Data Client — public sentiment, price, funding and trending-pool APIs.

Invariants:
    - Every method raises MarketDataError(source, ...) on transport, status or shape errors
    - Funding rates are returned in percent (raw rate x 100)
    - One shared httpx.AsyncClient with a per-request timeout
"""

import logging

import httpx

from shipyard.core.errors import MarketDataError

logger = logging.getLogger(__name__)

FEAR_GREED_URL = "https://api.alternative.me/fng/"
COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"
OKX_FUNDING_URL = "https://www.okx.com/api/v5/public/funding-rate"
GECKOTERMINAL_URL = "https://api.geckoterminal.com/api/v2/networks/{network}/trending_pools"


class MarketDataClient:
    def __init__(self, timeout_seconds: float = 10.0, http: httpx.AsyncClient | None = None):
        self._http = http or httpx.AsyncClient(timeout=timeout_seconds)

    async def close(self):
        await self._http.aclose()

    async def _get_json(self, source: str, url: str, params: dict | None = None):
        try:
            resp = await self._http.get(url, params=params)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"{source} request failed: {e}")
            raise MarketDataError(source, str(e)) from e

    async def fear_greed(self, limit: int = 7) -> dict:
        data = await self._get_json("alternative.me", FEAR_GREED_URL, {"limit": limit})
        if not isinstance(data, dict) or "data" not in data:
            raise MarketDataError("alternative.me", "missing data field")
        return data

    async def simple_prices(self, ids: list[str]) -> dict:
        return await self._get_json("coingecko", COINGECKO_PRICE_URL, {
            "ids": ",".join(ids),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
        })

    async def funding_rate(self, instrument: str) -> float:
        data = await self._get_json("okx", OKX_FUNDING_URL, {"instId": instrument})
        try:
            return float((data.get("data") or [{}])[0].get("fundingRate") or 0) * 100
        except (TypeError, ValueError, AttributeError) as e:
            raise MarketDataError("okx", f"bad funding payload: {e}") from e

    async def trending_pools(self, network: str = "solana") -> list[dict]:
        data = await self._get_json("geckoterminal", GECKOTERMINAL_URL.format(network=network))
        if not isinstance(data, dict):
            raise MarketDataError("geckoterminal", "unexpected payload")
        return data.get("data") or []
