"""Flywheel Ledger — counters and per-pool run rows for flywheel accounting.

Invariants:
    - The stats row is created on first use (id=1) and only incremented
    - One FlywheelRun row per processed pool, written even when the pool failed
    - Counters include only successful claims and burns
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shipyard.core.flywheel_plan import PoolResult
from shipyard.models.flywheel_run import FlywheelRun
from shipyard.models.flywheel_stats import FlywheelStats, STATS_ROW_ID

logger = logging.getLogger(__name__)


class FlywheelLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(self) -> FlywheelStats:
        stats = await self.db.get(FlywheelStats, STATS_ROW_ID)
        if stats is None:
            stats = FlywheelStats(
                id=STATS_ROW_ID,
                total_fees_collected_lamports=0,
                total_tokens_burned="0",
                total_executions=0,
            )
            self.db.add(stats)
            await self.db.flush()
        return stats

    async def record(self, result: PoolResult, buyback_lamports: int):
        self.db.add(FlywheelRun(
            pool_address=result.pool,
            token_mint=result.token_mint,
            engine=result.engine,
            fees_claimed_lamports=result.fees_claimed,
            buyback_lamports=buyback_lamports,
            tokens_burned=str(result.tokens_burned if result.burn_signature else 0),
            claim_signature=result.claim_signature,
            buyback_signature=result.buyback_signature,
            burn_signature=result.burn_signature,
            success=result.succeeded,
            error=result.error,
            created_at=datetime.now(timezone.utc),
        ))
        stats = await self.get_stats()
        stats.total_fees_collected_lamports += result.fees_claimed
        if result.burn_signature:
            stats.total_tokens_burned = str(
                int(stats.total_tokens_burned) + result.tokens_burned,
            )
        stats.total_executions += 1
        stats.last_execution = datetime.now(timezone.utc)
        await self.db.commit()

    async def recent_runs(self, limit: int = 10) -> list[FlywheelRun]:
        result = await self.db.execute(
            select(FlywheelRun)
            .where(FlywheelRun.burn_signature.is_not(None))
            .order_by(FlywheelRun.created_at.desc())
            .limit(limit),
        )
        return list(result.scalars().all())
