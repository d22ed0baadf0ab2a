"""External Clients — process-wide singletons for chain, swap and market-data access.

Invariants:
    - init_clients() runs once in the FastAPI lifespan; close_clients() on shutdown
    - Accessors raise RuntimeError before init (same contract as get_db)
"""

import logging

from shipyard.config import Settings
from shipyard.infrastructure.dbc_program import DbcProgram
from shipyard.infrastructure.jupiter_client import JupiterClient
from shipyard.infrastructure.market_data_client import MarketDataClient
from shipyard.infrastructure.solana_rpc import SolanaGateway

logger = logging.getLogger(__name__)

chain: SolanaGateway | None = None
dbc: DbcProgram | None = None
jupiter: JupiterClient | None = None
market_data: MarketDataClient | None = None


def init_clients(settings: Settings):
    global chain, dbc, jupiter, market_data
    chain = SolanaGateway(settings.solana_rpc_url)
    dbc = DbcProgram(chain)
    jupiter = JupiterClient(
        settings.jupiter_quote_url,
        settings.jupiter_swap_url,
        slippage_bps=settings.swap_slippage_bps,
        max_attempts=settings.swap_max_attempts,
        retry_delay_seconds=settings.swap_retry_delay_seconds,
        timeout_seconds=settings.http_timeout_seconds,
    )
    market_data = MarketDataClient(settings.http_timeout_seconds)
    logger.info("External clients initialized")


async def close_clients():
    global chain, dbc, jupiter, market_data
    for client in (chain, jupiter, market_data):
        if client is not None:
            await client.close()
    chain = dbc = jupiter = market_data = None


def _require(client, name: str):
    if client is None:
        raise RuntimeError(f"{name} client not initialized")
    return client


def get_chain_client() -> SolanaGateway:
    return _require(chain, "Solana")


def get_dbc_client() -> DbcProgram:
    return _require(dbc, "Bonding curve")


def get_jupiter_client() -> JupiterClient:
    return _require(jupiter, "Jupiter")


def get_market_data_client() -> MarketDataClient:
    return _require(market_data, "Market data")
