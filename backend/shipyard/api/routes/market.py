"""Market Data — sentiment, trending volume and live bonding-curve pool stats."""

import logging

from fastapi import APIRouter, Depends, Query
from solders.pubkey import Pubkey

from shipyard.api.dependencies import get_market_data_service, get_pool_stats_reader
from shipyard.core.errors import InvalidAddressError
from shipyard.services.market_data import MarketDataService, PoolStatsReader

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["market"])


@router.get("/market-weather")
async def market_weather(service: MarketDataService = Depends(get_market_data_service)):
    return await service.weather()


@router.get("/volume-radar")
async def volume_radar(service: MarketDataService = Depends(get_market_data_service)):
    return await service.volume_radar()


@router.get("/pool-stats/{pool_address}")
async def pool_stats(
    pool_address: str,
    token_mint: str = Query(...),
    reader: PoolStatsReader = Depends(get_pool_stats_reader),
):
    for label, value in (("pool", pool_address), ("token mint", token_mint)):
        try:
            Pubkey.from_string(value)
        except ValueError as e:
            raise InvalidAddressError(label, value) from e
    return {"success": True, **(await reader.pool_stats(pool_address, token_mint))}
