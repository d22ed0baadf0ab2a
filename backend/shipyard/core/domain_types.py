"""Domain Types — enums, constants and value objects shared across the codebase.

Invariants:
    - Engine ids are 1 (navigator), 2 (lighthouse), 3 (supernova) — stored as ints in launches
    - Lamport and token amounts are ints; SOL amounts are floats at the API boundary only
    - Addresses travel through core as base58 strings; solders types live in the shell

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
    - Frozen dataclasses for chain snapshots: the shell builds them, core only reads them
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

TokenMint = NewType("TokenMint", str)
PoolAddress = NewType("PoolAddress", str)
LaunchId = NewType("LaunchId", str)


# ─── Constants ───────────────────────────────────────────────────

LAMPORTS_PER_SOL = 1_000_000_000
U64_MAX = 18_446_744_073_709_551_615
WSOL_MINT = "So11111111111111111111111111111111111111112"
TOTAL_TOKEN_SUPPLY = 1_000_000_000
CURVE_TOKEN_SUPPLY = 800_000_000
MIGRATION_THRESHOLD_SOL = 85
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


# ─── Enums ───────────────────────────────────────────────────────

class Engine(str, Enum):
    """Fee-split tier chosen at launch."""
    NAVIGATOR = "navigator"
    LIGHTHOUSE = "lighthouse"
    SUPERNOVA = "supernova"

    @property
    def engine_id(self) -> int:
        return _ENGINE_IDS[self]

    @classmethod
    def from_id(cls, engine_id: int) -> "Engine":
        for engine, eid in _ENGINE_IDS.items():
            if eid == engine_id:
                return engine
        raise ValueError(f"Unknown engine id: {engine_id}")

    @classmethod
    def parse(cls, value: "str | int | Engine | None", default: "Engine | None" = None) -> "Engine":
        """Accept an engine name, id, or Engine; fall back to default when given."""
        if isinstance(value, Engine):
            return value
        try:
            if isinstance(value, int):
                return cls.from_id(value)
            if isinstance(value, str):
                if value.isdigit():
                    return cls.from_id(int(value))
                return cls(value.lower())
        except ValueError:
            if default is None:
                raise
            return default
        if default is None:
            raise ValueError("Engine is required")
        return default


_ENGINE_IDS = {
    Engine.NAVIGATOR: 1,
    Engine.LIGHTHOUSE: 2,
    Engine.SUPERNOVA: 3,
}


class ClaimType(str, Enum):
    """Which side of the pool's fee split is being claimed."""
    PARTNER = "partner"
    CREATOR = "creator"


# ─── Chain snapshots ─────────────────────────────────────────────

@dataclass(frozen=True)
class PoolState:
    """Decoded bonding-curve pool account (subset the service uses)."""
    address: str
    config: str
    creator: str
    base_mint: str
    base_vault: str
    quote_vault: str
    base_reserve: int
    quote_reserve: int
    partner_quote_fee: int
    is_migrated: bool
    token_2022: bool = False


@dataclass(frozen=True)
class PoolConfigState:
    """Decoded bonding-curve pool config account (subset the service uses)."""
    address: str
    quote_mint: str
    fee_claimer: str | None


@dataclass(frozen=True)
class AccountSnapshot:
    """Raw account as returned by the RPC."""
    owner: str
    lamports: int
    data: bytes
