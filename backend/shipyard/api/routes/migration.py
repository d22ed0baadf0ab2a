"""Migration Monitor — on-chain graduation scan and manual migration override.

Invariants:
    - The scan GET is guarded by the cron secret when one is configured
    - The manual POST answers 404 when neither the mint nor the pool is a known launch
    - buyback_result is null unless trigger_buyback was asked for and the launch qualifies
"""

import logging

from fastapi import APIRouter, Depends

from shipyard.api.dependencies import get_migration_monitor, require_cron_secret
from shipyard.schemas.launch import MigrationMarkRequest
from shipyard.services.launch_registry import serialize_launch
from shipyard.services.migration_monitor import MigrationMonitor

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/migration-monitor", tags=["migration"])


@router.get("", dependencies=[Depends(require_cron_secret)])
async def scan_migrations(monitor: MigrationMonitor = Depends(get_migration_monitor)):
    report = await monitor.scan()
    return {"success": True, **report.to_dict()}


@router.post("")
async def mark_migrated(
    body: MigrationMarkRequest, monitor: MigrationMonitor = Depends(get_migration_monitor),
):
    launch, buyback = await monitor.mark_migrated(
        body.token_mint, body.pool_address, body.sol_raised, body.trigger_buyback,
    )
    return {
        "success": True,
        "message": f"Marked {launch.symbol} as migrated",
        "launch": serialize_launch(launch),
        "buyback_result": buyback,
    }
