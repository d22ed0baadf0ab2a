"""Bonding Curve Program — Meteora Dynamic Bonding Curve accounts and instructions.

Invariants:
    - Pool accounts must be owned by the DBC program and carry the VirtualPool discriminator
    - Quote side is always wrapped SOL; WSOL token accounts are opened and closed
      inside the same transaction so claimed/spent SOL shows up as native balance
    - Fee claims request u64::MAX for both sides (program clamps to what is owed)

Design Decisions:
    - Instructions built by hand with solders + construct (no Python SDK for DBC):
      Anchor discriminators are sha256("global:<name>")[:8] / sha256("account:<Name>")[:8]
    - Pool PDA seeds follow the program: ["pool", config, max(mint), min(mint)]
    - Account decoding reads only the fields services use (prefix of the layout)
"""

import hashlib
import logging

from construct import Bytes, BytesInteger, Int8ul, Int32ul, Int64ul, PascalString, Struct
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID, TransferParams, transfer
from spl.token.constants import (
    TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID, WRAPPED_SOL_MINT,
)
from spl.token.instructions import (
    CloseAccountParams, SyncNativeParams, close_account, sync_native,
    create_idempotent_associated_token_account, get_associated_token_address,
)

from shipyard.core.domain_types import PoolState, PoolConfigState, U64_MAX
from shipyard.core.errors import BondingCurveError, ErrorContext
from shipyard.infrastructure.solana_rpc import SolanaGateway

logger = logging.getLogger(__name__)

DBC_PROGRAM_ID = Pubkey.from_string("dbcij3LWUppWqq96dh6gJWwBifmcGfLSB5D4DuSMaqN")
METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
VIRTUAL_POOL_DISCRIMINATOR = bytes([213, 224, 5, 209, 98, 69, 119, 92])


def anchor_discriminator(namespace: str, name: str) -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode()).digest()[:8]


POOL_CONFIG_DISCRIMINATOR = anchor_discriminator("account", "PoolConfig")
CLAIM_TRADING_FEE = anchor_discriminator("global", "claim_trading_fee")
CLAIM_CREATOR_TRADING_FEE = anchor_discriminator("global", "claim_creator_trading_fee")
INITIALIZE_POOL = anchor_discriminator("global", "initialize_virtual_pool_with_spl_token")
SWAP = anchor_discriminator("global", "swap")

# ─── Layouts ─────────────────────────────────────────────────────

VIRTUAL_POOL_LAYOUT = Struct(
    "discriminator" / Bytes(8),
    "volatility_tracker" / Bytes(64),
    "config" / Bytes(32),
    "creator" / Bytes(32),
    "base_mint" / Bytes(32),
    "base_vault" / Bytes(32),
    "quote_vault" / Bytes(32),
    "base_reserve" / Int64ul,
    "quote_reserve" / Int64ul,
    "protocol_base_fee" / Int64ul,
    "protocol_quote_fee" / Int64ul,
    "partner_base_fee" / Int64ul,
    "partner_quote_fee" / Int64ul,
    "sqrt_price" / BytesInteger(16, swapped=True),
    "activation_point" / Int64ul,
    "pool_type" / Int8ul,
    "is_migrated" / Int8ul,
)

POOL_CONFIG_LAYOUT = Struct(
    "discriminator" / Bytes(8),
    "quote_mint" / Bytes(32),
    "fee_claimer" / Bytes(32),
    "leftover_receiver" / Bytes(32),
)

CLAIM_ARGS = Struct(
    "discriminator" / Bytes(8),
    "max_amount_a" / Int64ul,
    "max_amount_b" / Int64ul,
)

SWAP_ARGS = Struct(
    "discriminator" / Bytes(8),
    "amount_in" / Int64ul,
    "minimum_amount_out" / Int64ul,
)

INITIALIZE_POOL_ARGS = Struct(
    "discriminator" / Bytes(8),
    "name" / PascalString(Int32ul, "utf8"),
    "symbol" / PascalString(Int32ul, "utf8"),
    "uri" / PascalString(Int32ul, "utf8"),
)

_SPL_POOL_TYPE = 0


def _key(raw: bytes) -> str:
    return str(Pubkey.from_bytes(raw))


def decode_pool(address: str, data: bytes) -> PoolState:
    if data[:8] != VIRTUAL_POOL_DISCRIMINATOR:
        raise BondingCurveError("Account is not a bonding-curve pool",
                                ErrorContext(pool_address=address))
    try:
        parsed = VIRTUAL_POOL_LAYOUT.parse(data)
    except Exception as e:
        raise BondingCurveError(f"Malformed pool account: {e}",
                                ErrorContext(pool_address=address)) from e
    return PoolState(
        address=address,
        config=_key(parsed.config),
        creator=_key(parsed.creator),
        base_mint=_key(parsed.base_mint),
        base_vault=_key(parsed.base_vault),
        quote_vault=_key(parsed.quote_vault),
        base_reserve=parsed.base_reserve,
        quote_reserve=parsed.quote_reserve,
        partner_quote_fee=parsed.partner_quote_fee,
        is_migrated=bool(parsed.is_migrated),
        token_2022=parsed.pool_type != _SPL_POOL_TYPE,
    )


def decode_pool_config(address: str, data: bytes) -> PoolConfigState:
    if data[:8] != POOL_CONFIG_DISCRIMINATOR:
        raise BondingCurveError("Account is not a bonding-curve config")
    try:
        parsed = POOL_CONFIG_LAYOUT.parse(data)
    except Exception as e:
        raise BondingCurveError(f"Malformed config account: {e}") from e
    fee_claimer = Pubkey.from_bytes(parsed.fee_claimer)
    return PoolConfigState(
        address=address,
        quote_mint=_key(parsed.quote_mint),
        fee_claimer=None if fee_claimer == Pubkey.default() else str(fee_claimer),
    )


class DbcProgram:
    """Reads pool/config accounts and builds DBC instructions."""

    def __init__(self, chain: SolanaGateway, program_id: Pubkey = DBC_PROGRAM_ID):
        self.chain = chain
        self.program_id = program_id
        self.pool_authority = Pubkey.find_program_address([b"pool_authority"], program_id)[0]
        self.event_authority = Pubkey.find_program_address([b"__event_authority"], program_id)[0]

    # ─── Accounts ───────────────────────────────────────────────

    async def get_pool(self, pool: Pubkey) -> PoolState:
        account = await self.chain.get_account(pool)
        if account is None:
            raise BondingCurveError("Pool not found", ErrorContext(pool_address=str(pool)))
        if account.owner != str(self.program_id):
            raise BondingCurveError("Pool is not owned by the bonding-curve program",
                                    ErrorContext(pool_address=str(pool)))
        return decode_pool(str(pool), account.data)

    async def get_pool_config(self, config: Pubkey) -> PoolConfigState:
        account = await self.chain.get_account(config)
        if account is None:
            raise BondingCurveError("Pool config not found")
        return decode_pool_config(str(config), account.data)

    def derive_pool_address(self, base_mint: Pubkey, quote_mint: Pubkey, config: Pubkey) -> Pubkey:
        first, second = sorted([bytes(base_mint), bytes(quote_mint)], reverse=True)
        return Pubkey.find_program_address(
            [b"pool", bytes(config), first, second], self.program_id,
        )[0]

    def derive_vault_address(self, mint: Pubkey, pool: Pubkey) -> Pubkey:
        return Pubkey.find_program_address(
            [b"token_vault", bytes(mint), bytes(pool)], self.program_id,
        )[0]

    def derive_metadata_address(self, mint: Pubkey) -> Pubkey:
        return Pubkey.find_program_address(
            [b"metadata", bytes(METADATA_PROGRAM_ID), bytes(mint)], METADATA_PROGRAM_ID,
        )[0]

    # ─── Instruction helpers ────────────────────────────────────

    def _base_token_program(self, pool: PoolState) -> Pubkey:
        return TOKEN_2022_PROGRAM_ID if pool.token_2022 else TOKEN_PROGRAM_ID

    def _wsol_open(self, owner: Pubkey, lamports: int = 0) -> tuple[Pubkey, list[Instruction]]:
        wsol_ata = get_associated_token_address(owner, WRAPPED_SOL_MINT)
        ixs = [create_idempotent_associated_token_account(owner, owner, WRAPPED_SOL_MINT)]
        if lamports > 0:
            ixs.append(transfer(TransferParams(
                from_pubkey=owner, to_pubkey=wsol_ata, lamports=lamports,
            )))
            ixs.append(sync_native(SyncNativeParams(TOKEN_PROGRAM_ID, wsol_ata)))
        return wsol_ata, ixs

    def _wsol_close(self, owner: Pubkey, wsol_ata: Pubkey) -> Instruction:
        return close_account(CloseAccountParams(
            program_id=TOKEN_PROGRAM_ID, account=wsol_ata, dest=owner, owner=owner,
        ))

    def _claim_accounts(
        self, pool: PoolState, receiver: Pubkey, signer: Pubkey, include_config: bool,
    ) -> tuple[list[AccountMeta], list[Instruction], Pubkey]:
        base_mint = Pubkey.from_string(pool.base_mint)
        base_program = self._base_token_program(pool)
        base_ata = get_associated_token_address(receiver, base_mint, base_program)
        wsol_ata, setup = self._wsol_open(receiver)
        setup.insert(0, create_idempotent_associated_token_account(
            receiver, receiver, base_mint, base_program,
        ))
        accounts = [AccountMeta(self.pool_authority, False, False)]
        if include_config:
            accounts.append(AccountMeta(Pubkey.from_string(pool.config), False, False))
        accounts += [
            AccountMeta(Pubkey.from_string(pool.address), False, True),
            AccountMeta(base_ata, False, True),
            AccountMeta(wsol_ata, False, True),
            AccountMeta(Pubkey.from_string(pool.base_vault), False, True),
            AccountMeta(Pubkey.from_string(pool.quote_vault), False, True),
            AccountMeta(base_mint, False, False),
            AccountMeta(WRAPPED_SOL_MINT, False, False),
            AccountMeta(signer, True, False),
            AccountMeta(base_program, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
            AccountMeta(self.event_authority, False, False),
            AccountMeta(self.program_id, False, False),
        ]
        return accounts, setup, wsol_ata

    # ─── Instructions ───────────────────────────────────────────

    def claim_partner_fee_instruction(
        self, pool: PoolState, config: PoolConfigState, fee_claimer: Pubkey, receiver: Pubkey,
    ) -> list[Instruction]:
        accounts, setup, wsol_ata = self._claim_accounts(pool, receiver, fee_claimer, True)
        data = CLAIM_ARGS.build({
            "discriminator": CLAIM_TRADING_FEE,
            "max_amount_a": U64_MAX,
            "max_amount_b": U64_MAX,
        })
        claim = Instruction(self.program_id, data, accounts)
        return [*setup, claim, self._wsol_close(receiver, wsol_ata)]

    def claim_creator_fee_instruction(
        self, pool: PoolState, config: PoolConfigState, creator: Pubkey, receiver: Pubkey,
    ) -> list[Instruction]:
        accounts, setup, wsol_ata = self._claim_accounts(pool, receiver, creator, False)
        data = CLAIM_ARGS.build({
            "discriminator": CLAIM_CREATOR_TRADING_FEE,
            "max_amount_a": U64_MAX,
            "max_amount_b": U64_MAX,
        })
        claim = Instruction(self.program_id, data, accounts)
        return [*setup, claim, self._wsol_close(receiver, wsol_ata)]

    def create_pool_instructions(
        self, config: Pubkey, base_mint: Pubkey, creator: Pubkey, payer: Pubkey,
        name: str, symbol: str, uri: str,
    ) -> list[Instruction]:
        pool = self.derive_pool_address(base_mint, WRAPPED_SOL_MINT, config)
        accounts = [
            AccountMeta(config, False, False),
            AccountMeta(self.pool_authority, False, False),
            AccountMeta(creator, True, False),
            AccountMeta(base_mint, True, True),
            AccountMeta(WRAPPED_SOL_MINT, False, False),
            AccountMeta(pool, False, True),
            AccountMeta(self.derive_vault_address(base_mint, pool), False, True),
            AccountMeta(self.derive_vault_address(WRAPPED_SOL_MINT, pool), False, True),
            AccountMeta(self.derive_metadata_address(base_mint), False, True),
            AccountMeta(METADATA_PROGRAM_ID, False, False),
            AccountMeta(payer, True, True),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
            AccountMeta(SYSTEM_PROGRAM_ID, False, False),
            AccountMeta(self.event_authority, False, False),
            AccountMeta(self.program_id, False, False),
        ]
        data = INITIALIZE_POOL_ARGS.build({
            "discriminator": INITIALIZE_POOL, "name": name, "symbol": symbol, "uri": uri,
        })
        return [Instruction(self.program_id, data, accounts)]

    def _swap_instruction(
        self, pool: Pubkey, config: Pubkey, base_mint: Pubkey, base_vault: Pubkey,
        quote_vault: Pubkey, base_program: Pubkey, buyer: Pubkey,
        amount_in: int, minimum_amount_out: int,
    ) -> tuple[list[Instruction], Instruction, Pubkey]:
        wsol_ata, setup = self._wsol_open(buyer, amount_in)
        base_ata = get_associated_token_address(buyer, base_mint, base_program)
        setup.append(create_idempotent_associated_token_account(
            buyer, buyer, base_mint, base_program,
        ))
        accounts = [
            AccountMeta(self.pool_authority, False, False),
            AccountMeta(config, False, False),
            AccountMeta(pool, False, True),
            AccountMeta(wsol_ata, False, True),
            AccountMeta(base_ata, False, True),
            AccountMeta(base_vault, False, True),
            AccountMeta(quote_vault, False, True),
            AccountMeta(base_mint, False, False),
            AccountMeta(WRAPPED_SOL_MINT, False, False),
            AccountMeta(buyer, True, True),
            AccountMeta(base_program, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
            AccountMeta(self.program_id, False, False),
            AccountMeta(self.event_authority, False, False),
            AccountMeta(self.program_id, False, False),
        ]
        data = SWAP_ARGS.build({
            "discriminator": SWAP,
            "amount_in": amount_in,
            "minimum_amount_out": minimum_amount_out,
        })
        return setup, Instruction(self.program_id, data, accounts), wsol_ata

    def buy_instructions(
        self, pool: PoolState, config: PoolConfigState, buyer: Pubkey,
        amount_in: int, minimum_amount_out: int,
    ) -> list[Instruction]:
        """Quote (SOL) -> base swap on an existing pool."""
        if pool.is_migrated:
            raise BondingCurveError("Pool has migrated; trade on the graduated pool",
                                    ErrorContext(pool_address=pool.address))
        setup, swap, wsol_ata = self._swap_instruction(
            Pubkey.from_string(pool.address), Pubkey.from_string(pool.config),
            Pubkey.from_string(pool.base_mint), Pubkey.from_string(pool.base_vault),
            Pubkey.from_string(pool.quote_vault), self._base_token_program(pool),
            buyer, amount_in, minimum_amount_out,
        )
        return [*setup, swap, self._wsol_close(buyer, wsol_ata)]

    def first_buy_instructions(
        self, pool_address: Pubkey, config: Pubkey, base_mint: Pubkey, buyer: Pubkey,
        amount_in: int,
    ) -> list[Instruction]:
        """Buy appended to a pool-creation transaction (pool state not on chain yet)."""
        setup, swap, wsol_ata = self._swap_instruction(
            pool_address, config, base_mint,
            self.derive_vault_address(base_mint, pool_address),
            self.derive_vault_address(WRAPPED_SOL_MINT, pool_address),
            TOKEN_PROGRAM_ID, buyer, amount_in, 0,
        )
        return [*setup, swap, self._wsol_close(buyer, wsol_ata)]
