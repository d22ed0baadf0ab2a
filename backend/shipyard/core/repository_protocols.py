"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Chain, swap and market-data IO accessed through Protocol types
    - Implementations provided by shell via dependency injection (api/dependencies.py)

Design Decisions:
    - Protocol over ABC: structural subtyping, so test fakes need no inheritance
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE their results are never async themselves
"""

from typing import Protocol, Any

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from shipyard.core.domain_types import AccountSnapshot, PoolState, PoolConfigState
from shipyard.core.errors import ErrorContext


class LaunchLike(Protocol):
    """Structural contract for launch records passed into core planning."""
    token_mint: str
    pool_address: str | None
    symbol: str
    engine: int
    engine_name: str


class ChainGateway(Protocol):
    """Solana RPC boundary — implemented by infrastructure/solana_rpc.py."""
    async def get_balance(self, owner: Pubkey) -> int: ...
    async def get_account(self, address: Pubkey) -> AccountSnapshot | None: ...
    async def get_token_balance(self, token_account: Pubkey) -> int: ...
    async def token_program_for_mint(self, mint: Pubkey) -> Pubkey: ...
    async def send_instructions(
        self, instructions: list[Instruction], signers: list[Keypair],
    ) -> str: ...
    async def send_serialized(self, tx_base64: str, signer: Keypair) -> str: ...
    async def get_parsed_transaction(self, signature: str) -> dict | None: ...
    async def get_recent_signatures(self, address: Pubkey, limit: int) -> list[dict]: ...
    async def build_unsigned_transaction(
        self, instructions: list[Instruction], payer: Pubkey,
    ) -> str: ...


class BondingCurveProgram(Protocol):
    """Bonding-curve program boundary — implemented by infrastructure/dbc_program.py."""
    async def get_pool(self, pool: Pubkey) -> PoolState: ...
    async def get_pool_config(self, config: Pubkey) -> PoolConfigState: ...
    def derive_pool_address(self, base_mint: Pubkey, quote_mint: Pubkey, config: Pubkey) -> Pubkey: ...
    def derive_vault_address(self, mint: Pubkey, pool: Pubkey) -> Pubkey: ...
    def claim_partner_fee_instruction(
        self, pool: PoolState, config: PoolConfigState, fee_claimer: Pubkey, receiver: Pubkey,
    ) -> list[Instruction]: ...
    def claim_creator_fee_instruction(
        self, pool: PoolState, config: PoolConfigState, creator: Pubkey, receiver: Pubkey,
    ) -> list[Instruction]: ...
    def create_pool_instructions(
        self, config: Pubkey, base_mint: Pubkey, creator: Pubkey, payer: Pubkey,
        name: str, symbol: str, uri: str,
    ) -> list[Instruction]: ...
    def buy_instructions(
        self, pool: PoolState, config: PoolConfigState, buyer: Pubkey,
        amount_in: int, minimum_amount_out: int,
    ) -> list[Instruction]: ...
    def first_buy_instructions(
        self, pool_address: Pubkey, config: Pubkey, base_mint: Pubkey, buyer: Pubkey,
        amount_in: int,
    ) -> list[Instruction]: ...


class SwapAggregator(Protocol):
    """Swap aggregator boundary — implemented by infrastructure/jupiter_client.py."""
    async def get_quote(
        self, input_mint: str, output_mint: str, amount: int,
        context: ErrorContext | None = None,
    ) -> dict: ...
    async def build_swap(
        self, quote: dict, user_public_key: str, context: ErrorContext | None = None,
    ) -> str: ...


class MarketDataSource(Protocol):
    """Public market-data boundary — implemented by infrastructure/market_data_client.py."""
    async def fear_greed(self, limit: int) -> dict[str, Any]: ...
    async def simple_prices(self, ids: list[str]) -> dict[str, Any]: ...
    async def funding_rate(self, instrument: str) -> float: ...
    async def trending_pools(self, network: str) -> list[dict[str, Any]]: ...
