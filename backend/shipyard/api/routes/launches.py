"""Launches — list, register, fetch and update launch records.

Invariants:
    - Launches are keyed by token mint; there is no delete endpoint
    - Manual registration defaults to the lighthouse engine (id 2)
"""

import logging

from fastapi import APIRouter, Depends, status

from shipyard.api.dependencies import get_launch_registry
from shipyard.core.domain_types import Engine
from shipyard.core.errors import InvalidRequestError
from shipyard.schemas.launch import LaunchRegister, LaunchUpdate
from shipyard.services.launch_registry import (
    DEFAULT_ENGINE, LaunchRegistry, serialize_launch, summarize_launches,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/launches", tags=["launches"])


@router.get("")
async def list_launches(registry: LaunchRegistry = Depends(get_launch_registry)):
    launches = await registry.list_launches()
    return {
        "success": True,
        **summarize_launches(launches),
        "launches": [serialize_launch(l) for l in launches],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_launch(
    body: LaunchRegister, registry: LaunchRegistry = Depends(get_launch_registry),
):
    engine = DEFAULT_ENGINE
    if body.engine is not None:
        try:
            engine = Engine.parse(body.engine)
        except ValueError as e:
            raise InvalidRequestError(str(e), field="engine") from e
    launch = await registry.register(
        token_mint=body.token_mint,
        pool_address=body.pool_address,
        name=body.name,
        symbol=body.symbol,
        creator=body.creator,
        engine=engine,
        description=body.description,
        image_url=body.image_url,
        config_address=body.config_address,
        dev_buy_amount=body.dev_buy_amount,
        dev_buy_percent=body.dev_buy_percent,
        tx_signature=body.tx_signature,
    )
    return {"success": True, "launch": serialize_launch(launch)}


@router.get("/{address}")
async def get_launch(address: str, registry: LaunchRegistry = Depends(get_launch_registry)):
    launch = await registry.get_by_mint(address)
    return {"success": True, "launch": serialize_launch(launch)}


@router.patch("/{address}")
async def update_launch(
    address: str,
    body: LaunchUpdate,
    registry: LaunchRegistry = Depends(get_launch_registry),
):
    """Market-state feed from the migration monitor."""
    launch = await registry.update_market_state(address, body.sol_raised, body.migrated)
    logger.info(
        f"Launch updated: sol_raised={launch.sol_raised} migrated={launch.migrated}",
        extra={"token_mint": address},
    )
    return {"success": True, "launch": serialize_launch(launch)}
