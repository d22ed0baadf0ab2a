"""Fee Flywheel — scheduled and single-pool flywheel runs plus public stats.

Invariants:
    - The scheduled GET is guarded by the cron secret when one is configured
    - A single-pool POST answers 404 when the pool is not a registered launch
    - success on the single-pool POST mirrors the pool result (no error)
"""

import logging

from fastapi import APIRouter, Depends, Query

from shipyard.api.dependencies import (
    get_fee_flywheel, get_flywheel_history, get_launch_registry, require_cron_secret,
)
from shipyard.core.errors import ErrorContext, ResourceNotFoundError
from shipyard.schemas.flywheel import FlywheelPoolRequest
from shipyard.services.fee_flywheel import FeeFlywheel
from shipyard.services.flywheel_history import FlywheelHistory
from shipyard.services.launch_registry import LaunchRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["flywheel"])


@router.get("/cron/fee-flywheel", dependencies=[Depends(require_cron_secret)])
async def run_flywheel(
    pool: str | None = Query(None),
    engine: str | None = Query(None),
    flywheel: FeeFlywheel = Depends(get_fee_flywheel),
):
    outcome = await flywheel.run(pool=pool, engine=engine)
    return {"success": True, **outcome}


@router.post("/cron/fee-flywheel")
async def run_flywheel_for_pool(
    body: FlywheelPoolRequest,
    registry: LaunchRegistry = Depends(get_launch_registry),
    flywheel: FeeFlywheel = Depends(get_fee_flywheel),
):
    launch = await registry.find_by_pool(body.pool_address)
    if launch is None:
        raise ResourceNotFoundError(
            "Pool", body.pool_address, ErrorContext(pool_address=body.pool_address),
        )
    result = await flywheel.run_single(launch)
    return {"success": result.succeeded, "result": result.to_dict()}


@router.get("/flywheel-stats")
async def flywheel_stats(history: FlywheelHistory = Depends(get_flywheel_history)):
    return {"success": True, **(await history.stats())}
