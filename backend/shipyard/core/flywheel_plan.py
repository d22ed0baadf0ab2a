"""Flywheel Plan — pure selection and summary logic for a flywheel run.

Invariants:
    - Only launches with a pool address are selected
    - Lighthouse (no burn share) is skipped unless the engine filter names it
    - The engine filter is case-insensitive
    - A pool result counts as successful iff error is None
    - Summary totals are sums over per-pool results (no other source)

Design Decisions:
    - PoolResult is a mutable dataclass filled step by step by the service;
      a failing step sets error and the service stops filling
"""

from dataclasses import dataclass, asdict

from shipyard.core.domain_types import Engine, LAMPORTS_PER_SOL
from shipyard.core.repository_protocols import LaunchLike


@dataclass
class PoolResult:
    pool: str
    token_mint: str
    symbol: str
    engine: str
    fees_claimed: int = 0
    fees_claimed_sol: float = 0.0
    burn_amount: int = 0
    tokens_burned: int = 0
    claim_signature: str | None = None
    buyback_signature: str | None = None
    burn_signature: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def record_claim(self, lamports: int, signature: str):
        self.fees_claimed = lamports
        self.fees_claimed_sol = lamports / LAMPORTS_PER_SOL
        self.claim_signature = signature

    def to_dict(self) -> dict:
        return asdict(self)


def select_launches(
    launches: list[LaunchLike],
    pool: str | None = None,
    engine: str | None = None,
) -> list[LaunchLike]:
    """Launches a scheduled run should process, in input order."""
    engine = engine.strip().lower() if engine else None
    selected = []
    for launch in launches:
        if not launch.pool_address:
            continue
        if pool and launch.pool_address != pool:
            continue
        if engine and launch.engine_name != engine:
            continue
        if not engine and launch.engine_name == Engine.LIGHTHOUSE.value:
            continue
        selected.append(launch)
    return selected


def summarize_results(results: list[PoolResult]) -> dict:
    total_fees = sum(r.fees_claimed for r in results)
    return {
        "pools_processed": len(results),
        "success_count": sum(1 for r in results if r.succeeded),
        "total_fees_claimed_sol": total_fees / LAMPORTS_PER_SOL,
        "total_tokens_burned": sum(r.tokens_burned for r in results),
    }
