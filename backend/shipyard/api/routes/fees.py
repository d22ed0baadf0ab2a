"""Fee Claims — inspect pool fee configuration and claim trading fees.

Invariants:
    - GET without ?pool= reports every registered launch; one pool failing is
      reported inline and does not fail the listing
    - POST claims into the Shipyard wallet and returns an explorer link
"""

import logging

from fastapi import APIRouter, Depends, Query
from solders.pubkey import Pubkey

from shipyard.api.dependencies import get_dbc, get_fee_claimer, get_launch_registry
from shipyard.config import Settings, get_settings
from shipyard.core.errors import BondingCurveError, ErrorContext, InvalidAddressError, ShipyardError
from shipyard.core.repository_protocols import BondingCurveProgram
from shipyard.schemas.flywheel import ClaimFeesRequest
from shipyard.services.fee_claimer import FeeClaimer, describe_pool
from shipyard.services.launch_registry import LaunchRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/claim-fees", tags=["fees"])


async def _pool_info(dbc: BondingCurveProgram, pool_address: str) -> dict:
    pool = await dbc.get_pool(Pubkey.from_string(pool_address))
    config = await dbc.get_pool_config(Pubkey.from_string(pool.config))
    return describe_pool(pool, config)


@router.get("")
async def get_fee_info(
    pool: str | None = Query(None),
    dbc: BondingCurveProgram = Depends(get_dbc),
    registry: LaunchRegistry = Depends(get_launch_registry),
):
    if pool:
        try:
            Pubkey.from_string(pool)
        except ValueError as e:
            raise InvalidAddressError("pool", pool) from e
        try:
            info = await _pool_info(dbc, pool)
        except ShipyardError as e:
            raise BondingCurveError(
                f"Failed to get pool info: {e.message}", ErrorContext(pool_address=pool),
            ) from e
        return {"success": True, "pool": pool, **info}

    pools = []
    for launch in await registry.list_launches():
        if not launch.pool_address:
            continue
        entry = {
            "id": launch.id,
            "symbol": launch.symbol,
            "pool_address": launch.pool_address,
            "token_mint": launch.token_mint,
        }
        try:
            entry.update(await _pool_info(dbc, launch.pool_address))
        except ShipyardError as e:
            entry["error"] = e.message
        pools.append(entry)
    return {"success": True, "total_pools": len(pools), "pools": pools}


@router.post("")
async def claim_fees(
    body: ClaimFeesRequest,
    claimer: FeeClaimer = Depends(get_fee_claimer),
    settings: Settings = Depends(get_settings),
):
    outcome = await claimer.claim(body.pool_address, body.claim_type)
    label = "Creator trading fee claim" if body.claim_type.value == "creator" else "Partner trading fee claim"
    return {
        "success": True,
        "message": f"{label} successful",
        "signature": outcome.signature,
        "pool_address": body.pool_address,
        "claimed_lamports": outcome.lamports,
        "explorer": f"{settings.explorer_tx_url}{outcome.signature}",
    }
