"""Fee Flywheel — claim → split → buyback → burn, one pool at a time.

Invariants:
    - Pools run sequentially with pool_delay_seconds between them
    - A failing step stops only its own pool; the error lands in PoolResult.error
      prefixed with the step name ("Claim failed: ...", "Buyback failed: ...")
    - Unexpected exceptions are caught per pool as well; the step is inferred from
      how far the result got
    - Fees under the threshold, or engines with no burn share, end the pool
      successfully without a buyback
    - Every processed pool is written to the ledger, success or not
    - One run at a time per process: a second concurrent run raises ConcurrencyError

Design Decisions:
    - Module-level asyncio.Lock: the cron endpoint and the single-pool endpoint share it
    - No rollback of partial pipelines: a swap that confirmed stays confirmed and the
      result reports how far the pool got
"""

import asyncio
import logging
from typing import Awaitable, Callable

from shipyard.core.domain_types import ClaimType, Engine, LAMPORTS_PER_SOL
from shipyard.core.errors import ConcurrencyError, ShipyardError
from shipyard.core.fee_split import compute_fee_split, meets_threshold
from shipyard.core.flywheel_plan import PoolResult, select_launches, summarize_results
from shipyard.models.launch import Launch
from shipyard.services.buyback import BuybackExecutor
from shipyard.services.fee_claimer import FeeClaimer
from shipyard.services.flywheel_ledger import FlywheelLedger
from shipyard.services.launch_registry import LaunchRegistry

logger = logging.getLogger(__name__)

_RUN_LOCK = asyncio.Lock()


class FeeFlywheel:
    def __init__(
        self,
        registry: LaunchRegistry,
        ledger: FlywheelLedger,
        claimer: FeeClaimer,
        executor: BuybackExecutor,
        min_fee_threshold_lamports: int = 10_000_000,
        min_buyback_lamports: int = 1_000_000,
        pool_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.registry = registry
        self.ledger = ledger
        self.claimer = claimer
        self.executor = executor
        self.min_fee_threshold_lamports = min_fee_threshold_lamports
        self.min_buyback_lamports = min_buyback_lamports
        self.pool_delay_seconds = pool_delay_seconds
        self._sleep = sleep

    async def run(self, pool: str | None = None, engine: str | None = None) -> dict:
        """Process every eligible launch; returns summary plus per-pool results."""
        async with self._exclusive():
            launches = select_launches(await self.registry.list_launches(), pool, engine)
            logger.info(f"Flywheel run starting: {len(launches)} pools")
            results = []
            for launch in launches:
                results.append(await self._process_and_record(launch))
                await self._sleep(self.pool_delay_seconds)
            summary = summarize_results(results)
            logger.info(
                f"Flywheel run complete: {summary['success_count']}/{summary['pools_processed']} "
                f"pools, {summary['total_fees_claimed_sol']} SOL claimed",
            )
            return {"summary": summary, "results": [r.to_dict() for r in results]}

    async def run_single(self, launch: Launch) -> PoolResult:
        async with self._exclusive():
            return await self._process_and_record(launch)

    def _exclusive(self):
        if _RUN_LOCK.locked():
            raise ConcurrencyError("Flywheel run already in progress")
        return _RUN_LOCK

    async def _process_and_record(self, launch: Launch) -> PoolResult:
        result, buyback_lamports = await self.process_pool(launch)
        await self.ledger.record(result, buyback_lamports)
        if result.burn_signature and result.tokens_burned:
            await self.registry.add_tokens_burned(launch, result.tokens_burned)
        return result

    async def process_pool(self, launch: Launch) -> tuple[PoolResult, int]:
        """Run the pipeline for one launch; returns the result and SOL spent on buyback."""
        result = PoolResult(
            pool=launch.pool_address,
            token_mint=launch.token_mint,
            symbol=launch.symbol,
            engine=launch.engine_name,
        )
        log_extra = {"pool_address": launch.pool_address, "token_mint": launch.token_mint,
                     "engine": launch.engine_name}
        try:
            return await self._pipeline(launch, result, log_extra)
        except Exception as e:
            result.error = f"{_failed_step(result)} failed: {str(e) or e.__class__.__name__}"
            logger.error(result.error, exc_info=True, extra=log_extra)
            spent = result.burn_amount if result.buyback_signature else 0
            return result, spent

    async def _pipeline(
        self, launch: Launch, result: PoolResult, log_extra: dict,
    ) -> tuple[PoolResult, int]:
        try:
            claim = await self.claimer.claim(launch.pool_address, ClaimType.PARTNER)
        except ShipyardError as e:
            result.error = f"Claim failed: {e.message}"
            logger.warning(result.error, extra={**log_extra, "error_code": e.code})
            return result, 0
        result.record_claim(claim.lamports, claim.signature)

        if not meets_threshold(result.fees_claimed, self.min_fee_threshold_lamports):
            logger.info(
                f"Fees below threshold ({self.min_fee_threshold_lamports / LAMPORTS_PER_SOL} SOL), "
                "skipping buyback",
                extra={**log_extra, "lamports": result.fees_claimed},
            )
            return result, 0

        split = compute_fee_split(result.fees_claimed, Engine.parse(launch.engine_name))
        if split.burn == 0:
            logger.info(f"{launch.engine_name} engine has no burn, skipping buyback", extra=log_extra)
            return result, 0
        result.burn_amount = split.burn

        if split.burn < self.min_buyback_lamports:
            result.error = "Buyback failed: Amount too small"
            return result, 0
        try:
            swap = await self.executor.swap_via_aggregator(launch.token_mint, split.burn)
        except ShipyardError as e:
            result.error = f"Buyback failed: {e.message}"
            logger.warning(result.error, extra={**log_extra, "error_code": e.code})
            return result, 0
        result.buyback_signature = swap.signature
        result.tokens_burned = swap.tokens_received

        await self._sleep(self.executor.settle_delay_seconds)
        try:
            result.burn_signature = await self.executor.burn(
                launch.token_mint, swap.tokens_received,
            )
        except ShipyardError as e:
            result.error = f"Burn failed: {e.message}"
            logger.error(result.error, extra={**log_extra, "error_code": e.code})
            return result, split.burn

        logger.info(f"Burned {result.tokens_burned} {launch.symbol}", extra=log_extra)
        return result, split.burn


def _failed_step(result: PoolResult) -> str:
    if result.claim_signature is None:
        return "Claim"
    if result.buyback_signature is None:
        return "Buyback"
    return "Burn"
