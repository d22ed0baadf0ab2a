"""Buyback & Burn — buy the launched token with SOL and burn what was bought.

Invariants:
    - Aggregator buybacks burn exactly the quoted outAmount; pool buybacks burn the
      measured ATA balance delta
    - The burn waits settle_delay_seconds after the swap confirms
    - A burn failing after a confirmed swap raises BurnAfterSwapError carrying the
      swap signature; nothing is rolled back
    - The wallet must hold the spend plus a fee reserve before any swap is sent

Design Decisions:
    - One executor for the flywheel, the launch buyback and the manual endpoints:
      they differ only in where the SOL amount comes from
    - sleep is injectable so tests run without waiting
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.instructions import BurnParams, burn, get_associated_token_address

from shipyard.core.domain_types import LAMPORTS_PER_SOL, WSOL_MINT
from shipyard.core.errors import (
    BurnAfterSwapError, BuybackNotEligibleError, ErrorContext,
    InsufficientBalanceError, ShipyardError,
)
from shipyard.core.fee_split import buyback_sol_for_launch
from shipyard.core.repository_protocols import (
    BondingCurveProgram, ChainGateway, SwapAggregator,
)
from shipyard.models.launch import Launch
from shipyard.services.launch_registry import LaunchRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapOutcome:
    signature: str
    tokens_received: int


@dataclass(frozen=True)
class BuybackOutcome:
    buyback_signature: str
    burn_signature: str
    tokens_burned: int


class BuybackExecutor:
    def __init__(
        self,
        chain: ChainGateway,
        jupiter: SwapAggregator,
        keypair: Keypair,
        settle_delay_seconds: float = 2.0,
        fee_reserve_lamports: int = 10_000_000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.chain = chain
        self.jupiter = jupiter
        self.keypair = keypair
        self.settle_delay_seconds = settle_delay_seconds
        self.fee_reserve_lamports = fee_reserve_lamports
        self._sleep = sleep

    @property
    def wallet(self) -> Pubkey:
        return self.keypair.pubkey()

    async def ensure_balance(self, spend_lamports: int, context: ErrorContext | None = None):
        balance = await self.chain.get_balance(self.wallet)
        required = spend_lamports + self.fee_reserve_lamports
        if balance < required:
            raise InsufficientBalanceError(
                f"Insufficient SOL in Shipyard wallet. Need {required / LAMPORTS_PER_SOL} SOL, "
                f"have {balance / LAMPORTS_PER_SOL} SOL",
                context,
            )

    async def swap_via_aggregator(self, token_mint: str, lamports: int) -> SwapOutcome:
        context = ErrorContext(token_mint=token_mint)
        quote = await self.jupiter.get_quote(WSOL_MINT, token_mint, lamports, context=context)
        tokens = int(quote["outAmount"])
        swap_tx = await self.jupiter.build_swap(quote, str(self.wallet), context=context)
        signature = await self.chain.send_serialized(swap_tx, self.keypair)
        logger.info(
            f"Buyback swap confirmed, {tokens} tokens expected",
            extra={"token_mint": token_mint, "signature": signature, "lamports": lamports},
        )
        return SwapOutcome(signature=signature, tokens_received=tokens)

    async def _token_account(self, token_mint: str) -> tuple[Pubkey, Pubkey, Pubkey]:
        mint = Pubkey.from_string(token_mint)
        program = await self.chain.token_program_for_mint(mint)
        return mint, program, get_associated_token_address(self.wallet, mint, program)

    async def burn(self, token_mint: str, amount: int) -> str:
        mint, program, ata = await self._token_account(token_mint)
        ix = burn(BurnParams(
            program_id=program, account=ata, mint=mint, owner=self.wallet, amount=amount,
        ))
        signature = await self.chain.send_instructions([ix], [self.keypair])
        logger.info(
            f"Burned {amount} tokens",
            extra={"token_mint": token_mint, "signature": signature},
        )
        return signature

    async def buyback_and_burn(self, token_mint: str, lamports: int) -> BuybackOutcome:
        swap = await self.swap_via_aggregator(token_mint, lamports)
        await self._sleep(self.settle_delay_seconds)
        try:
            burn_signature = await self.burn(token_mint, swap.tokens_received)
        except ShipyardError as e:
            logger.error(
                f"Burn failed after swap: {e.message}",
                extra={"token_mint": token_mint, "signature": swap.signature,
                       "error_code": e.code},
            )
            raise BurnAfterSwapError(
                swap.signature, swap.tokens_received, ErrorContext(token_mint=token_mint),
            ) from e
        return BuybackOutcome(swap.signature, burn_signature, swap.tokens_received)

    async def pool_buyback_and_burn(
        self, dbc: BondingCurveProgram, token_mint: str, pool_address: str, sol_amount: float,
    ) -> BuybackOutcome:
        """Buy directly on the bonding-curve pool, then burn the measured delta."""
        lamports = int(sol_amount * LAMPORTS_PER_SOL)
        context = ErrorContext(token_mint=token_mint, pool_address=pool_address)
        await self.ensure_balance(lamports, context)

        pool = await dbc.get_pool(Pubkey.from_string(pool_address))
        if pool.base_mint != token_mint:
            raise BuybackNotEligibleError("Pool does not trade this token", context)
        config = await dbc.get_pool_config(Pubkey.from_string(pool.config))
        _, _, ata = await self._token_account(token_mint)

        before = await self.chain.get_token_balance(ata)
        swap_signature = await self.chain.send_instructions(
            dbc.buy_instructions(pool, config, self.wallet, lamports, 0), [self.keypair],
        )
        await self._sleep(self.settle_delay_seconds)
        received = await self.chain.get_token_balance(ata) - before
        if received <= 0:
            raise BurnAfterSwapError(swap_signature, 0, context)
        try:
            burn_signature = await self.burn(token_mint, received)
        except ShipyardError as e:
            raise BurnAfterSwapError(swap_signature, received, context) from e
        return BuybackOutcome(swap_signature, burn_signature, received)

    async def burn_all(self, token_mint: str) -> tuple[str, int]:
        """Burn the wallet's whole balance of a mint (cleanup after failed runs)."""
        _, _, ata = await self._token_account(token_mint)
        amount = await self.chain.get_token_balance(ata)
        if amount <= 0:
            raise InsufficientBalanceError(
                "No tokens to burn", ErrorContext(token_mint=token_mint),
            )
        return await self.burn(token_mint, amount), amount


# ─── Launch buyback (post-migration, one shot) ───────────────────

def pending_buyback_view(launch: Launch) -> dict:
    return {
        "id": launch.id,
        "token_mint": launch.token_mint,
        "symbol": launch.symbol,
        "sol_raised": launch.sol_raised,
        "buyback_amount": buyback_sol_for_launch(launch.sol_raised, launch.buyback_burn_percent),
    }


def completed_buyback_view(launch: Launch) -> dict:
    return {
        "id": launch.id,
        "token_mint": launch.token_mint,
        "symbol": launch.symbol,
        "buyback_burn_tx_signature": launch.buyback_burn_tx_signature,
        "buyback_burn_amount": launch.buyback_burn_amount,
        "tokens_burned": launch.tokens_burned,
    }


def check_launch_eligible(launch: Launch) -> float:
    """SOL to spend on this launch's buyback, or raise why it cannot run."""
    context = ErrorContext(token_mint=launch.token_mint)
    if not launch.buyback_burn_enabled:
        raise BuybackNotEligibleError(
            "Buyback-burn not enabled for this launch (engine has no burn share)", context,
        )
    if not launch.migrated:
        raise BuybackNotEligibleError("Pool has not migrated yet", context)
    if launch.buyback_burn_executed:
        error = BuybackNotEligibleError("Buyback-burn already executed", context)
        error.extra = {"tx_signature": launch.buyback_burn_tx_signature}
        raise error
    sol_amount = buyback_sol_for_launch(launch.sol_raised, launch.buyback_burn_percent)
    if sol_amount <= 0:
        raise BuybackNotEligibleError("No SOL to use for buyback", context)
    return sol_amount


async def run_launch_buyback(
    registry: LaunchRegistry, executor: BuybackExecutor, token_mint: str,
) -> tuple[Launch, float, BuybackOutcome]:
    launch = await registry.get_by_mint(token_mint)
    sol_amount = check_launch_eligible(launch)
    lamports = int(sol_amount * LAMPORTS_PER_SOL)
    await executor.ensure_balance(lamports, ErrorContext(token_mint=token_mint))
    outcome = await executor.buyback_and_burn(token_mint, lamports)
    await registry.mark_buyback_executed(
        launch, outcome.burn_signature, sol_amount, outcome.tokens_burned,
    )
    return launch, sol_amount, outcome
