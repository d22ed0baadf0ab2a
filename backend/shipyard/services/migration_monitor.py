"""Migration Monitor — detect graduated bonding-curve pools and fire their one-shot buyback.

Invariants:
    - Only launches that are not yet migrated (and have a pool) are checked
    - Migration is read from the decoded pool account (is_migrated); sol_raised is
      taken from the pool's quote reserve when it is non-zero
    - A newly migrated launch with buyback-burn enabled and not executed gets its
      buyback-burn attempted once per scan; failures land in errors, never abort the scan
    - A failing pool check stops only that pool
    - check_delay_seconds separates pool checks (RPC rate limits)

Design Decisions:
    - executor is optional: without SHIPYARD_PRIVATE_KEY the monitor still records
      migrations and reports the skipped buybacks
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from solders.pubkey import Pubkey

from shipyard.core.domain_types import LAMPORTS_PER_SOL
from shipyard.core.errors import ErrorContext, ResourceNotFoundError, ShipyardError
from shipyard.core.repository_protocols import BondingCurveProgram
from shipyard.models.launch import Launch
from shipyard.services.buyback import BuybackExecutor, run_launch_buyback
from shipyard.services.launch_registry import LaunchRegistry

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    checked: int = 0
    migrated: int = 0
    buybacks_triggered: int = 0
    errors: list[str] = field(default_factory=list)
    details: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "message": f"Checked {self.checked} pools" if self.checked else "No pending pools to check",
            "checked": self.checked,
            "migrated": self.migrated,
            "buybacks_triggered": self.buybacks_triggered,
            "errors": self.errors,
            "details": self.details,
        }


def _error_text(e: Exception) -> str:
    if isinstance(e, ShipyardError):
        return e.message
    return str(e) or e.__class__.__name__


class MigrationMonitor:
    def __init__(
        self,
        registry: LaunchRegistry,
        dbc: BondingCurveProgram,
        executor: BuybackExecutor | None,
        check_delay_seconds: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.registry = registry
        self.dbc = dbc
        self.executor = executor
        self.check_delay_seconds = check_delay_seconds
        self._sleep = sleep

    async def scan(self) -> MigrationReport:
        """Check every pending pool on chain and record the ones that graduated."""
        report = MigrationReport()
        pending = [
            l for l in await self.registry.list_launches()
            if not l.migrated and l.pool_address
        ]
        logger.info(f"Migration scan starting: {len(pending)} pending pools")
        for launch in pending:
            report.checked += 1
            await self._check(launch, report)
            await self._sleep(self.check_delay_seconds)
        logger.info(
            f"Migration scan complete: {report.migrated}/{report.checked} migrated, "
            f"{report.buybacks_triggered} buybacks",
        )
        return report

    async def _check(self, launch: Launch, report: MigrationReport):
        log_extra = {"token_mint": launch.token_mint, "pool_address": launch.pool_address}
        try:
            pool = await self.dbc.get_pool(Pubkey.from_string(launch.pool_address))
        except Exception as e:
            report.errors.append(f"Pool check failed for {launch.symbol}: {_error_text(e)}")
            logger.warning(
                f"Pool check failed: {_error_text(e)}",
                exc_info=not isinstance(e, ShipyardError), extra=log_extra,
            )
            return
        if not pool.is_migrated:
            return

        sol_raised = pool.quote_reserve / LAMPORTS_PER_SOL if pool.quote_reserve > 0 else None
        await self.registry.update_market_state(launch.token_mint, sol_raised, True)
        report.migrated += 1
        logger.info(f"Pool {launch.symbol} has migrated", extra=log_extra)

        detail = {"symbol": launch.symbol, "token_mint": launch.token_mint, "migrated": True}
        if launch.buyback_burn_enabled and not launch.buyback_burn_executed:
            outcome = await self.trigger_buyback(launch)
            detail["buyback_triggered"] = outcome["success"]
            if outcome["success"]:
                report.buybacks_triggered += 1
            else:
                report.errors.append(f"Buyback-burn failed for {launch.symbol}: {outcome['error']}")
        report.details.append(detail)

    async def trigger_buyback(self, launch: Launch) -> dict:
        if self.executor is None:
            return {"success": False, "error": "SHIPYARD_PRIVATE_KEY not configured"}
        try:
            _, sol_amount, outcome = await run_launch_buyback(
                self.registry, self.executor, launch.token_mint,
            )
        except Exception as e:
            logger.error(
                f"Migration buyback failed: {_error_text(e)}",
                exc_info=not isinstance(e, ShipyardError),
                extra={"token_mint": launch.token_mint},
            )
            return {"success": False, "error": _error_text(e)}
        return {
            "success": True,
            "signature": outcome.burn_signature,
            "sol_used": sol_amount,
            "tokens_burned": str(outcome.tokens_burned),
        }

    async def mark_migrated(
        self,
        token_mint: str | None,
        pool_address: str | None,
        sol_raised: float | None = None,
        trigger_buyback: bool = False,
    ) -> tuple[Launch, dict | None]:
        """Manual override: mark a launch migrated, optionally running its buyback."""
        launch = None
        if token_mint:
            launch = await self.registry.find_by_mint(token_mint)
        if launch is None and pool_address:
            launch = await self.registry.find_by_pool(pool_address)
        if launch is None:
            raise ResourceNotFoundError(
                "Launch", token_mint or pool_address,
                ErrorContext(token_mint=token_mint, pool_address=pool_address),
            )

        launch = await self.registry.update_market_state(launch.token_mint, sol_raised, True)
        logger.info(f"Launch {launch.symbol} marked migrated", extra={"token_mint": launch.token_mint})

        buyback = None
        if trigger_buyback and launch.buyback_burn_enabled and not launch.buyback_burn_executed:
            buyback = await self.trigger_buyback(launch)
        return launch, buyback
