"""Fee Claimer — claim bonding-curve trading fees into the Shipyard wallet.

Invariants:
    - Claims request u64::MAX on both sides; the receiver is always the Shipyard wallet
    - Claimed SOL is inferred from the wallet balance delta and clamped at 0
    - Partner claims need a configured fee claimer; both claim types need the
      signer to be the Shipyard wallet (the only key the service holds)
"""

import logging
from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from shipyard.core.domain_types import ClaimType, PoolState, PoolConfigState
from shipyard.core.errors import BondingCurveError, ErrorContext
from shipyard.core.repository_protocols import ChainGateway, BondingCurveProgram

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimOutcome:
    signature: str
    lamports: int


def describe_pool(pool: PoolState, config: PoolConfigState) -> dict:
    return {
        "pool_state": {
            "config": pool.config,
            "creator": pool.creator,
            "base_mint": pool.base_mint,
            "quote_mint": config.quote_mint,
            "migrated": pool.is_migrated,
            "partner_quote_fee": pool.partner_quote_fee,
        },
        "config_state": {
            "fee_claimer": config.fee_claimer,
        },
    }


class FeeClaimer:
    def __init__(self, chain: ChainGateway, dbc: BondingCurveProgram, keypair: Keypair):
        self.chain = chain
        self.dbc = dbc
        self.keypair = keypair

    async def load(self, pool_address: str) -> tuple[PoolState, PoolConfigState]:
        pool = await self.dbc.get_pool(Pubkey.from_string(pool_address))
        config = await self.dbc.get_pool_config(Pubkey.from_string(pool.config))
        return pool, config

    def _instructions(self, pool: PoolState, config: PoolConfigState, claim_type: ClaimType):
        wallet = self.keypair.pubkey()
        context = ErrorContext(pool_address=pool.address)
        if claim_type == ClaimType.CREATOR:
            if pool.creator != str(wallet):
                raise BondingCurveError("Pool creator is not the Shipyard wallet", context)
            return self.dbc.claim_creator_fee_instruction(pool, config, wallet, wallet)
        if not config.fee_claimer:
            raise BondingCurveError("Pool config has no fee claimer set", context)
        if config.fee_claimer != str(wallet):
            raise BondingCurveError("Fee claimer is not the Shipyard wallet", context)
        return self.dbc.claim_partner_fee_instruction(pool, config, wallet, wallet)

    async def claim(
        self, pool_address: str, claim_type: ClaimType = ClaimType.PARTNER,
    ) -> ClaimOutcome:
        pool, config = await self.load(pool_address)
        instructions = self._instructions(pool, config, claim_type)
        wallet = self.keypair.pubkey()

        before = await self.chain.get_balance(wallet)
        signature = await self.chain.send_instructions(instructions, [self.keypair])
        after = await self.chain.get_balance(wallet)
        lamports = max(0, after - before)

        logger.info(
            f"{claim_type.value} fee claim confirmed",
            extra={"pool_address": pool_address, "signature": signature, "lamports": lamports},
        )
        return ClaimOutcome(signature=signature, lamports=lamports)
