"""Token Launch — curve summary, launch preview, paid pool creation, buyer swaps, vanity mints.

Invariants:
    - Preview never touches the chain
    - Pool creation only after the fee payment verifies (see services/token_launcher.py)
    - Vanity grinding is bounded by settings.vanity_max_attempts per request
"""

import logging

from fastapi import APIRouter, Depends

from shipyard.api.dependencies import get_chain, get_dbc, get_token_launcher
from shipyard.config import Settings, get_settings
from shipyard.core.errors import ErrorContext, VanityNotFoundError
from shipyard.core.repository_protocols import BondingCurveProgram, ChainGateway
from shipyard.core.vanity import estimate_attempts
from shipyard.schemas.launch import LaunchCreate, LaunchPreviewRequest, SwapBuild, VanityRequest
from shipyard.services.token_launcher import (
    LaunchRequest, TokenLauncher, build_buy_transaction, launch_overview, launch_preview,
)
from shipyard.services.vanity_grinder import grind_vanity_keypair_async

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/launch-token", tags=["launch-token"])


@router.get("")
async def get_launch_config(settings: Settings = Depends(get_settings)):
    return launch_overview(settings.sol_price_usd)


@router.post("")
async def preview_launch(body: LaunchPreviewRequest, settings: Settings = Depends(get_settings)):
    preview = launch_preview(
        name=body.name,
        symbol=body.symbol,
        creator_wallet=body.creator_wallet,
        sol_price_usd=settings.sol_price_usd,
        description=body.description,
        image_url=body.image_url,
        lp_percent=body.lp_compound_percent,
        burn_percent=body.buyback_burn_percent,
    )
    return {"success": True, "preview": preview}


@router.post("/create")
async def create_launch(
    body: LaunchCreate, launcher: TokenLauncher = Depends(get_token_launcher),
):
    result = await launcher.create(LaunchRequest(**body.model_dump()))
    return {"success": True, **result}


@router.post("/swap")
async def build_swap(
    body: SwapBuild,
    chain: ChainGateway = Depends(get_chain),
    dbc: BondingCurveProgram = Depends(get_dbc),
):
    transaction = await build_buy_transaction(
        chain, dbc, body.pool_address, body.amount_lamports, body.buyer_wallet,
    )
    return {"success": True, "transaction": transaction}


@router.post("/vanity")
async def grind_vanity(body: VanityRequest, settings: Settings = Depends(get_settings)):
    suffix = body.suffix or settings.vanity_suffix
    max_attempts = min(body.max_attempts or settings.vanity_max_attempts, settings.vanity_max_attempts)
    keypair, attempts = await grind_vanity_keypair_async(
        suffix, max_attempts, case_sensitive=body.case_sensitive,
    )
    if keypair is None:
        raise VanityNotFoundError(
            suffix, attempts,
            ErrorContext(debug_info={"expected_attempts": estimate_attempts(len(suffix))}),
        )
    return {
        "success": True,
        "public_key": str(keypair.pubkey()),
        "secret_key": list(bytes(keypair)),
        "attempts": attempts,
    }
