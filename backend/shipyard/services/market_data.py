"""Market Data — read-through caches over public market APIs plus live pool stats.

Invariants:
    - The primary source of each endpoint (fear & greed, trending pools) failing
      raises MarketDataError; secondary sources (prices, funding) degrade to zeros
    - Successful responses are cached for the configured TTL; failures are never cached
    - Pool stats are read live (no cache): raw vault amounts are scaled by
      6 (token) and 9 (SOL) decimals

Design Decisions:
    - Funding rates fetched concurrently with asyncio.gather: they are independent
    - SOL raised is estimated from tokens sold when the quote vault reads empty,
      inverting tokens = CURVE * (sol / 85) ** 0.65
"""

import asyncio
import logging

from solders.pubkey import Pubkey

from shipyard.core.domain_types import (
    CURVE_TOKEN_SUPPLY, MIGRATION_THRESHOLD_SOL, TOTAL_TOKEN_SUPPLY, WSOL_MINT,
)
from shipyard.core.errors import ErrorContext, MarketDataError, ResourceNotFoundError, ShipyardError
from shipyard.core.repository_protocols import (
    BondingCurveProgram, ChainGateway, MarketDataSource,
)
from shipyard.core.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

RADAR_TOP_N = 5
TOKEN_DECIMALS = 6
SOL_DECIMALS = 9
CURVE_EXPONENT = 0.65


def _float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def radar_entry(pool: dict) -> dict:
    attrs = pool.get("attributes") or {}
    volume = _float((attrs.get("volume_usd") or {}).get("h24"))
    token_name = (attrs.get("name") or "").split(" / ")[0] or "Unknown"
    base_id = (((pool.get("relationships") or {}).get("base_token") or {}).get("data") or {}).get("id") or ""
    txns = (attrs.get("transactions") or {}).get("h24") or {}
    return {
        "symbol": token_name,
        "name": token_name,
        "address": base_id.replace("solana_", ""),
        "price": _float(attrs.get("base_token_price_usd")),
        "price_change_24h": _float((attrs.get("price_change_percentage") or {}).get("h24")),
        "volume_24h": volume,
        "txns_24h": int(txns.get("buys") or 0) + int(txns.get("sells") or 0),
        "chain_id": "solana",
    }


def pool_progress(token_balance: float, sol_balance: float) -> dict:
    """Curve progress from the pool's vault balances (whole tokens and SOL)."""
    tokens_sold = TOTAL_TOKEN_SUPPLY - token_balance
    curve_sold = max(0.0, CURVE_TOKEN_SUPPLY - (token_balance - (TOTAL_TOKEN_SUPPLY - CURVE_TOKEN_SUPPLY)))
    sol_raised = sol_balance
    if sol_balance == 0 and tokens_sold > 0:
        sol_raised = MIGRATION_THRESHOLD_SOL * (tokens_sold / CURVE_TOKEN_SUPPLY) ** (1 / CURVE_EXPONENT)
    return {
        "tokens_sold": tokens_sold,
        "tokens_remaining": token_balance,
        "percent_sold": tokens_sold / TOTAL_TOKEN_SUPPLY * 100,
        "percent_remaining": token_balance / TOTAL_TOKEN_SUPPLY * 100,
        "curve_progress": min(curve_sold / CURVE_TOKEN_SUPPLY, 1.0),
        "sol_raised": sol_raised,
        "sol_to_migration": max(0.0, MIGRATION_THRESHOLD_SOL - sol_raised),
    }


class MarketDataService:
    def __init__(
        self,
        source: MarketDataSource,
        weather_cache: TTLCache,
        radar_cache: TTLCache,
    ):
        self.source = source
        self.weather_cache = weather_cache
        self.radar_cache = radar_cache

    async def weather(self) -> dict:
        cached = self.weather_cache.get("weather")
        if cached is not None:
            return cached

        fear_greed = await self.source.fear_greed(7)
        try:
            prices = await self.source.simple_prices(["bitcoin", "ethereum"])
        except MarketDataError as e:
            logger.warning(f"Price feed unavailable: {e.detail}")
            prices = {}
        try:
            btc_funding, eth_funding = await asyncio.gather(
                self.source.funding_rate("BTC-USDT-SWAP"),
                self.source.funding_rate("ETH-USDT-SWAP"),
            )
        except MarketDataError as e:
            logger.warning(f"Funding rates unavailable: {e.detail}")
            btc_funding = eth_funding = 0.0

        bitcoin = prices.get("bitcoin") or {}
        ethereum = prices.get("ethereum") or {}
        result = {
            "fear_greed": fear_greed,
            "prices": {
                "btc_price": _float(bitcoin.get("usd")),
                "btc_change_24h": _float(bitcoin.get("usd_24h_change")),
                "eth_change_24h": _float(ethereum.get("usd_24h_change")),
            },
            "funding": {
                "btc_funding_rate": btc_funding,
                "eth_funding_rate": eth_funding,
            },
        }
        self.weather_cache.set("weather", result)
        return result

    async def volume_radar(self) -> dict:
        cached = self.radar_cache.get("radar")
        if cached is not None:
            return cached
        pools = await self.source.trending_pools("solana")
        tokens = [radar_entry(p) for p in pools[:RADAR_TOP_N]]
        result = {
            "tokens": tokens,
            "total_volume": sum(t["volume_24h"] for t in tokens),
        }
        self.radar_cache.set("radar", result)
        return result


class PoolStatsReader:
    def __init__(self, chain: ChainGateway, dbc: BondingCurveProgram):
        self.chain = chain
        self.dbc = dbc

    async def _balances(self, base_vault: Pubkey, quote_vault: Pubkey) -> tuple[int, int]:
        return (
            await self.chain.get_token_balance(base_vault),
            await self.chain.get_token_balance(quote_vault),
        )

    async def pool_stats(self, pool_address: str, token_mint: str) -> dict:
        pool = Pubkey.from_string(pool_address)
        mint = Pubkey.from_string(token_mint)
        context = ErrorContext(pool_address=pool_address, token_mint=token_mint)
        if await self.chain.get_account(pool) is None:
            raise ResourceNotFoundError("Pool account", pool_address, context)

        base_vault = self.dbc.derive_vault_address(mint, pool)
        quote_vault = self.dbc.derive_vault_address(Pubkey.from_string(WSOL_MINT), pool)
        raw_tokens, raw_sol = await self._balances(base_vault, quote_vault)

        if raw_tokens == 0 and raw_sol == 0:
            try:
                state = await self.dbc.get_pool(pool)
            except ShipyardError as e:
                logger.warning(f"Pool state unreadable: {e.message}", extra={"pool_address": pool_address})
            else:
                base_vault = Pubkey.from_string(state.base_vault)
                quote_vault = Pubkey.from_string(state.quote_vault)
                raw_tokens, raw_sol = await self._balances(base_vault, quote_vault)

        tokens = raw_tokens / 10 ** TOKEN_DECIMALS
        sol = raw_sol / 10 ** SOL_DECIMALS
        found = raw_tokens > 0 or raw_sol > 0
        return {
            "pool": pool_address,
            "token_mint": token_mint,
            "vaults": {
                "base": str(base_vault) if found else "not found",
                "quote": str(quote_vault) if found else "not found",
            },
            "balances": {"sol": sol, "tokens": tokens},
            "stats": pool_progress(tokens, sol),
        }
