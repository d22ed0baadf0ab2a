"""Flywheel History — public flywheel totals rebuilt from the wallet's burns.

Invariants:
    - The chain scan reads the wallet's last SCAN_LIMIT signatures only
    - A scan that finds burns is cached for the TTL and served with cached=false
    - Without a configured wallet the scan is skipped
    - A failing or empty scan falls back to the ledger (counters + recorded runs)
      and is served with cached=true
    - Fees collected always come from the ledger; the chain scan cannot see them

Design Decisions:
    - Burns are re-derived from chain rather than trusted from the ledger: the
      ledger only knows runs this deployment made
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from solders.pubkey import Pubkey

from shipyard.core.burn_history import BurnEntry, extract_burns, summarize_burns
from shipyard.core.domain_types import LAMPORTS_PER_SOL
from shipyard.core.errors import ShipyardError
from shipyard.core.repository_protocols import ChainGateway
from shipyard.core.ttl_cache import TTLCache
from shipyard.services.flywheel_ledger import FlywheelLedger

logger = logging.getLogger(__name__)

SCAN_LIMIT = 20
CACHE_KEY = "flywheel_burns"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlywheelHistory:
    def __init__(
        self,
        chain: ChainGateway,
        ledger: FlywheelLedger,
        wallet: Pubkey | None,
        cache: TTLCache,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.chain = chain
        self.ledger = ledger
        self.wallet = wallet
        self.cache = cache
        self._now = now

    async def scan_burns(self) -> list[BurnEntry]:
        if self.wallet is None:
            return []
        signatures = await self.chain.get_recent_signatures(self.wallet, SCAN_LIMIT)
        burns: list[BurnEntry] = []
        for entry in signatures:
            if entry.get("failed"):
                continue
            tx = await self.chain.get_parsed_transaction(entry["signature"])
            burns.extend(extract_burns(entry["signature"], entry.get("block_time"), tx))
        return burns

    async def _ledger_burns(self) -> list[BurnEntry]:
        burns = []
        for run in await self.ledger.recent_runs():
            created = run.created_at
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            burns.append(BurnEntry(
                signature=run.burn_signature,
                tokens_burned=run.tokens_burned,
                mint=run.token_mint,
                timestamp=created.isoformat(),
                block_time=int(created.timestamp()),
            ))
        return burns

    async def stats(self) -> dict:
        cached_burns = self.cache.get(CACHE_KEY)
        if cached_burns is not None:
            return await self._build(cached_burns, cached=True)

        try:
            burns = await self.scan_burns()
        except ShipyardError as e:
            logger.warning(f"Burn scan failed, using ledger: {e.message}",
                           extra={"error_code": e.code})
            burns = []
        if burns:
            self.cache.set(CACHE_KEY, burns)
            return await self._build(burns, cached=False)
        return await self._build(await self._ledger_burns(), cached=True, from_ledger=True)

    async def _build(self, burns: list[BurnEntry], cached: bool, from_ledger: bool = False) -> dict:
        summary = summarize_burns(burns, self._now())
        stats = await self.ledger.get_stats()
        fees = stats.total_fees_collected_lamports
        tokens_burned = summary["tokens_burned"]
        execution_count = summary["execution_count"]
        last_execution = summary["last_execution"]
        if from_ledger:
            tokens_burned = stats.total_tokens_burned
            execution_count = stats.total_executions
            if stats.last_execution:
                last_execution = stats.last_execution.isoformat()
        return {
            "totals": {
                "fees_collected_sol": fees / LAMPORTS_PER_SOL,
                "fees_collected_lamports": fees,
                "tokens_burned": tokens_burned,
                "lp_compounded_sol": 0,
                "lp_compounded_lamports": 0,
                "execution_count": execution_count,
                "last_execution": last_execution,
            },
            "recent_activity": summary["recent_activity"],
            "cached": cached,
        }
