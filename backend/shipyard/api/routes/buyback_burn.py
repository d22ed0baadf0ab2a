"""Buyback & Burn — post-migration buybacks, manual pool buybacks and cleanup burns.

Invariants:
    - POST /buyback-burn runs at most once per launch (executed flag is terminal)
    - A burn failing after a confirmed swap answers 500 with buyback_signature and
      tokens_received so the operator can finish with /burn-tokens
"""

import logging

from fastapi import APIRouter, Depends

from shipyard.api.dependencies import get_buyback_executor, get_dbc, get_launch_registry
from shipyard.config import Settings, get_settings
from shipyard.core.repository_protocols import BondingCurveProgram
from shipyard.schemas.flywheel import BuybackBurnRequest, BurnTokensRequest, ManualBuybackRequest
from shipyard.services.buyback import (
    BuybackExecutor, completed_buyback_view, pending_buyback_view, run_launch_buyback,
)
from shipyard.services.launch_registry import LaunchRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["buyback-burn"])


@router.get("/buyback-burn")
async def list_buybacks(registry: LaunchRegistry = Depends(get_launch_registry)):
    launches = await registry.list_launches()
    pending = [
        pending_buyback_view(l) for l in launches
        if l.buyback_burn_enabled and l.migrated and not l.buyback_burn_executed
    ]
    completed = [completed_buyback_view(l) for l in launches if l.buyback_burn_executed]
    return {"success": True, "pending": pending, "completed": completed}


@router.post("/buyback-burn")
async def execute_buyback(
    body: BuybackBurnRequest,
    registry: LaunchRegistry = Depends(get_launch_registry),
    executor: BuybackExecutor = Depends(get_buyback_executor),
    settings: Settings = Depends(get_settings),
):
    launch, sol_amount, outcome = await run_launch_buyback(registry, executor, body.token_mint)
    return {
        "success": True,
        "message": f"Buyback-burn executed for {launch.symbol}",
        "buyback_signature": outcome.buyback_signature,
        "burn_signature": outcome.burn_signature,
        "sol_used": sol_amount,
        "tokens_burned": str(outcome.tokens_burned),
        "explorer": f"{settings.explorer_tx_url}{outcome.burn_signature}",
    }


@router.post("/buyback-burn/manual")
async def manual_buyback(
    body: ManualBuybackRequest,
    executor: BuybackExecutor = Depends(get_buyback_executor),
    dbc: BondingCurveProgram = Depends(get_dbc),
    registry: LaunchRegistry = Depends(get_launch_registry),
):
    outcome = await executor.pool_buyback_and_burn(
        dbc, body.token_mint, body.pool_address, body.sol_amount,
    )
    launch = await registry.find_by_mint(body.token_mint)
    if launch is not None:
        await registry.add_tokens_burned(launch, outcome.tokens_burned)
    return {
        "success": True,
        "message": f"Bought and burned {outcome.tokens_burned} tokens",
        "buyback_signature": outcome.buyback_signature,
        "burn_signature": outcome.burn_signature,
        "sol_used": body.sol_amount,
        "tokens_burned": str(outcome.tokens_burned),
    }


@router.post("/burn-tokens")
async def burn_tokens(
    body: BurnTokensRequest,
    executor: BuybackExecutor = Depends(get_buyback_executor),
):
    signature, amount = await executor.burn_all(body.token_mint)
    return {
        "success": True,
        "message": f"Burned {amount} tokens",
        "signature": signature,
        "tokens_burned": str(amount),
    }
