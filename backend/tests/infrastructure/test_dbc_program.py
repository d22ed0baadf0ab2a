"""Bonding-curve program tests — PDA derivation, account decoding, instruction data.

Invariants:
    - Pool PDA seeds are ["pool", config, max(mint), min(mint)] regardless of argument order
    - Pool accounts need the VirtualPool discriminator and the program as owner
    - Claims request u64::MAX on both sides
"""

import pytest
from solders.pubkey import Pubkey
from spl.token.constants import WRAPPED_SOL_MINT

from shipyard.core.domain_types import AccountSnapshot, U64_MAX
from shipyard.core.errors import BondingCurveError
from shipyard.infrastructure.dbc_program import (
    CLAIM_ARGS,
    CLAIM_TRADING_FEE,
    DBC_PROGRAM_ID,
    INITIALIZE_POOL_ARGS,
    POOL_CONFIG_DISCRIMINATOR,
    POOL_CONFIG_LAYOUT,
    SWAP_ARGS,
    VIRTUAL_POOL_DISCRIMINATOR,
    VIRTUAL_POOL_LAYOUT,
    DbcProgram,
    decode_pool,
    decode_pool_config,
)

from tests.services.fakes import FakeChain, make_pool


def _pool_bytes(config, creator, base_mint, migrated=0, partner_quote_fee=0, discriminator=VIRTUAL_POOL_DISCRIMINATOR):
    return VIRTUAL_POOL_LAYOUT.build({
        "discriminator": discriminator,
        "volatility_tracker": bytes(64),
        "config": bytes(config),
        "creator": bytes(creator),
        "base_mint": bytes(base_mint),
        "base_vault": bytes(Pubkey.new_unique()),
        "quote_vault": bytes(Pubkey.new_unique()),
        "base_reserve": 800_000_000_000_000,
        "quote_reserve": 1_000,
        "protocol_base_fee": 0,
        "protocol_quote_fee": 0,
        "partner_base_fee": 0,
        "partner_quote_fee": partner_quote_fee,
        "sqrt_price": 2 ** 70,
        "activation_point": 0,
        "pool_type": 0,
        "is_migrated": migrated,
    })


@pytest.fixture
def program():
    return DbcProgram(FakeChain())


def test_pool_pda_uses_sorted_mints(program):
    config = Pubkey.new_unique()
    mint = Pubkey.new_unique()
    first, second = sorted([bytes(mint), bytes(WRAPPED_SOL_MINT)], reverse=True)
    expected = Pubkey.find_program_address([b"pool", bytes(config), first, second], DBC_PROGRAM_ID)[0]
    assert program.derive_pool_address(mint, WRAPPED_SOL_MINT, config) == expected
    assert program.derive_pool_address(WRAPPED_SOL_MINT, mint, config) == expected


def test_decode_pool():
    config, creator, mint = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
    pool = decode_pool("PoolAddr", _pool_bytes(config, creator, mint, migrated=1, partner_quote_fee=42))
    assert pool.config == str(config)
    assert pool.creator == str(creator)
    assert pool.base_mint == str(mint)
    assert pool.partner_quote_fee == 42
    assert pool.is_migrated is True
    assert pool.token_2022 is False


def test_decode_pool_rejects_wrong_discriminator():
    data = _pool_bytes(Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique(), discriminator=bytes(8))
    with pytest.raises(BondingCurveError, match="not a bonding-curve pool"):
        decode_pool("PoolAddr", data)


def test_decode_pool_rejects_truncated():
    data = _pool_bytes(Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique())[:100]
    with pytest.raises(BondingCurveError, match="Malformed"):
        decode_pool("PoolAddr", data)


def test_decode_pool_config_unset_claimer():
    data = POOL_CONFIG_LAYOUT.build({
        "discriminator": POOL_CONFIG_DISCRIMINATOR,
        "quote_mint": bytes(WRAPPED_SOL_MINT),
        "fee_claimer": bytes(32),
        "leftover_receiver": bytes(32),
    })
    config = decode_pool_config("ConfigAddr", data)
    assert config.quote_mint == str(WRAPPED_SOL_MINT)
    assert config.fee_claimer is None


async def test_get_pool_checks_owner(program):
    pool_key = Pubkey.new_unique()
    data = _pool_bytes(Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique())
    program.chain.accounts[str(pool_key)] = AccountSnapshot(owner=str(Pubkey.new_unique()), lamports=1, data=data)
    with pytest.raises(BondingCurveError, match="not owned"):
        await program.get_pool(pool_key)

    program.chain.accounts[str(pool_key)] = AccountSnapshot(owner=str(DBC_PROGRAM_ID), lamports=1, data=data)
    assert (await program.get_pool(pool_key)).address == str(pool_key)


async def test_get_pool_missing(program):
    with pytest.raises(BondingCurveError, match="Pool not found"):
        await program.get_pool(Pubkey.new_unique())


def test_claim_partner_requests_everything(program):
    wallet = Pubkey.new_unique()
    pool, config = make_pool(fee_claimer=wallet)
    instructions = program.claim_partner_fee_instruction(pool, config, wallet, wallet)
    claim = next(ix for ix in instructions if ix.program_id == DBC_PROGRAM_ID)
    args = CLAIM_ARGS.parse(bytes(claim.data))
    assert args.discriminator == CLAIM_TRADING_FEE
    assert args.max_amount_a == U64_MAX
    assert args.max_amount_b == U64_MAX
    assert any(meta.pubkey == wallet and meta.is_signer for meta in claim.accounts)


def test_buy_instruction_amounts(program):
    buyer = Pubkey.new_unique()
    pool, config = make_pool()
    instructions = program.buy_instructions(pool, config, buyer, 123_456, 7)
    swap = next(ix for ix in instructions if ix.program_id == DBC_PROGRAM_ID)
    args = SWAP_ARGS.parse(bytes(swap.data))
    assert args.amount_in == 123_456
    assert args.minimum_amount_out == 7


def test_buy_rejects_migrated_pool(program):
    pool, config = make_pool(migrated=True)
    with pytest.raises(BondingCurveError, match="migrated"):
        program.buy_instructions(pool, config, Pubkey.new_unique(), 1, 0)


def test_create_pool_metadata(program):
    config, mint, payer = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
    (ix,) = program.create_pool_instructions(config, mint, payer, payer, "Shipyard", "SHIP", "https://x.io")
    args = INITIALIZE_POOL_ARGS.parse(bytes(ix.data))
    assert (args.name, args.symbol, args.uri) == ("Shipyard", "SHIP", "https://x.io")
    pool = program.derive_pool_address(mint, WRAPPED_SOL_MINT, config)
    assert any(meta.pubkey == pool for meta in ix.accounts)
