"""Fee Split — static engine split table and the pure arithmetic around it.

Invariants:
    - Each engine's split sums to 100 percent
    - compute_fee_split parts always sum to the input (lp absorbs rounding)
    - All inputs are lamports (int); no float in the split itself

Design Decisions:
    - Table lives in code, not settings: on-chain pool configs are created per
      engine and cannot change after launch
"""

from dataclasses import dataclass

from shipyard.core.domain_types import Engine, TOTAL_TOKEN_SUPPLY


@dataclass(frozen=True)
class EngineSplit:
    lp: int
    burn: int
    creator: int


ENGINE_SPLITS: dict[Engine, EngineSplit] = {
    Engine.NAVIGATOR: EngineSplit(lp=80, burn=20, creator=0),
    Engine.LIGHTHOUSE: EngineSplit(lp=50, burn=0, creator=50),
    Engine.SUPERNOVA: EngineSplit(lp=25, burn=75, creator=0),
}


@dataclass(frozen=True)
class FeeSplit:
    burn: int
    lp: int
    creator: int


def burn_percent(engine: Engine) -> int:
    return ENGINE_SPLITS[engine].burn


def compute_fee_split(fees_lamports: int, engine: Engine) -> FeeSplit:
    """Split claimed fees by engine. Pure, no IO."""
    if fees_lamports < 0:
        raise ValueError("fees_lamports must be non-negative")
    split = ENGINE_SPLITS[engine]
    burn = fees_lamports * split.burn // 100
    creator = fees_lamports * split.creator // 100
    return FeeSplit(burn=burn, lp=fees_lamports - burn - creator, creator=creator)


def meets_threshold(fees_lamports: int, threshold_lamports: int) -> bool:
    return fees_lamports >= threshold_lamports


def buyback_sol_for_launch(sol_raised: float, percent: float) -> float:
    """SOL to spend on a one-shot post-migration buyback."""
    return sol_raised * percent / 100


def estimate_buyback_impact(
    daily_volume_usd: float,
    trading_fee_bps: int,
    buyback_percent: float,
    token_price_usd: float,
) -> dict:
    """Project daily and annual burn from trading volume (1B supply)."""
    if token_price_usd <= 0:
        raise ValueError("token_price_usd must be positive")
    daily_fees = daily_volume_usd * trading_fee_bps / 10_000
    daily_buyback = daily_fees * buyback_percent / 100
    daily_burned = daily_buyback / token_price_usd
    annual_burned = daily_burned * 365
    return {
        "daily_fees_usd": daily_fees,
        "daily_buyback_usd": daily_buyback,
        "daily_tokens_burned": daily_burned,
        "annual_tokens_burned": annual_burned,
        "annual_burn_percent_of_supply": annual_burned / TOTAL_TOKEN_SUPPLY * 100,
    }
