"""Buyback & Burn — aggregator and pool buybacks, burns, and launch eligibility.

Invariants:
    - Aggregator buybacks burn the quoted outAmount after the settle delay
    - Pool buybacks burn the measured token-account delta
    - A burn failing after a confirmed swap raises BurnAfterSwapError with the swap signature
    - Launch buybacks need burn share, migration, not-yet-executed and SOL raised
"""

import pytest
from solders.pubkey import Pubkey

from shipyard.core.domain_types import Engine, WSOL_MINT
from shipyard.core.errors import (
    BurnAfterSwapError, BuybackNotEligibleError, InsufficientBalanceError,
)
from shipyard.services.buyback import (
    BuybackExecutor,
    check_launch_eligible,
    completed_buyback_view,
    pending_buyback_view,
    run_launch_buyback,
)
from shipyard.services.launch_registry import LaunchRegistry

from tests.services.fakes import FakeDbc, ata, burn_amount, has_data, is_burn, make_pool


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def executor(chain, jupiter, wallet, sleeps):
    async def _sleep(seconds):
        sleeps.append(seconds)
    return BuybackExecutor(
        chain, jupiter, wallet, settle_delay_seconds=2.0, fee_reserve_lamports=10_000_000, sleep=_sleep,
    )


# -- aggregator buyback ----------------------------------------------------------

async def test_buyback_and_burn_burns_quoted_amount(executor, chain, jupiter, sleeps):
    mint = str(Pubkey.new_unique())
    jupiter.out_amount = 4_200_000

    outcome = await executor.buyback_and_burn(mint, 200_000_000)

    assert jupiter.quotes == [(WSOL_MINT, mint, 200_000_000)]
    assert outcome.buyback_signature.startswith("swap_sig")
    assert outcome.tokens_burned == 4_200_000
    assert burn_amount(chain.sent[-1]) == 4_200_000
    assert sleeps == [2.0]


async def test_burn_failure_after_swap_keeps_swap_signature(executor, chain):
    chain.fail_on = is_burn
    with pytest.raises(BurnAfterSwapError) as exc:
        await executor.buyback_and_burn(str(Pubkey.new_unique()), 100_000_000)
    body = exc.value.to_response()
    assert body["buyback_signature"].startswith("swap_sig")
    assert body["tokens_received"] == "5000000"


async def test_ensure_balance_includes_fee_reserve(executor, chain, wallet):
    chain.balances[str(wallet.pubkey())] = 1_005_000_000
    with pytest.raises(InsufficientBalanceError, match="Need 1.01 SOL, have 1.005 SOL"):
        await executor.ensure_balance(1_000_000_000)
    chain.balances[str(wallet.pubkey())] = 1_010_000_000
    await executor.ensure_balance(1_000_000_000)


# -- pool buyback ----------------------------------------------------------------

async def test_pool_buyback_burns_measured_delta(executor, chain, wallet):
    dbc = FakeDbc()
    pool, config = make_pool()
    dbc.add(pool, config)
    account = ata(wallet.pubkey(), pool.base_mint)
    chain.balances[str(wallet.pubkey())] = 10 * 10 ** 9
    chain.token_balances[str(account)] = 100

    def _fill(c, instructions):
        if has_data(instructions, FakeDbc.BUY):
            c.token_balances[str(account)] += 777

    chain.on_send = _fill
    outcome = await executor.pool_buyback_and_burn(dbc, pool.base_mint, pool.address, 0.5)

    assert outcome.tokens_burned == 777
    assert burn_amount(chain.sent[-1]) == 777
    assert ("buy", pool.address, str(wallet.pubkey()), 500_000_000, 0) in dbc.calls


async def test_pool_buyback_rejects_other_token(executor, chain, wallet):
    dbc = FakeDbc()
    pool, config = make_pool()
    dbc.add(pool, config)
    chain.balances[str(wallet.pubkey())] = 10 * 10 ** 9
    with pytest.raises(BuybackNotEligibleError, match="does not trade"):
        await executor.pool_buyback_and_burn(dbc, str(Pubkey.new_unique()), pool.address, 0.5)


async def test_pool_buyback_without_tokens_received(executor, chain, wallet):
    dbc = FakeDbc()
    pool, config = make_pool()
    dbc.add(pool, config)
    chain.balances[str(wallet.pubkey())] = 10 * 10 ** 9
    with pytest.raises(BurnAfterSwapError) as exc:
        await executor.pool_buyback_and_burn(dbc, pool.base_mint, pool.address, 0.5)
    assert exc.value.extra["tokens_received"] == "0"
    assert not any(is_burn(sent) for sent in chain.sent)


# -- burn all --------------------------------------------------------------------

async def test_burn_all(executor, chain, wallet):
    mint = str(Pubkey.new_unique())
    chain.token_balances[str(ata(wallet.pubkey(), mint))] = 12_345
    signature, amount = await executor.burn_all(mint)
    assert amount == 12_345
    assert signature.startswith("burn_sig")


async def test_burn_all_empty_account(executor):
    with pytest.raises(InsufficientBalanceError, match="No tokens to burn"):
        await executor.burn_all(str(Pubkey.new_unique()))


# -- launch buyback --------------------------------------------------------------

async def test_check_eligible_requires_burn_share(make_launch):
    launch = await make_launch("MintL1", engine=Engine.LIGHTHOUSE, sol_raised=85, migrated=True)
    with pytest.raises(BuybackNotEligibleError, match="not enabled"):
        check_launch_eligible(launch)


async def test_check_eligible_requires_migration(make_launch):
    launch = await make_launch("MintN1", sol_raised=40)
    with pytest.raises(BuybackNotEligibleError, match="not migrated"):
        check_launch_eligible(launch)


async def test_check_eligible_requires_sol(make_launch):
    launch = await make_launch("MintN2", migrated=True)
    with pytest.raises(BuybackNotEligibleError, match="No SOL"):
        check_launch_eligible(launch)


async def test_check_eligible_amount(make_launch):
    launch = await make_launch("MintS1", engine=Engine.SUPERNOVA, sol_raised=80, migrated=True)
    assert check_launch_eligible(launch) == pytest.approx(60.0)


async def test_run_launch_buyback_marks_executed(make_launch, test_db, executor, chain, wallet):
    mint = str(Pubkey.new_unique())
    await make_launch(mint, sol_raised=85, migrated=True)
    chain.balances[str(wallet.pubkey())] = 20 * 10 ** 9
    registry = LaunchRegistry(test_db)

    launch, sol_amount, outcome = await run_launch_buyback(registry, executor, mint)

    assert sol_amount == pytest.approx(17.0)
    assert launch.buyback_burn_executed is True
    assert launch.buyback_burn_tx_signature == outcome.burn_signature
    assert launch.tokens_burned == "5000000"
    assert completed_buyback_view(launch)["buyback_burn_amount"] == pytest.approx(17.0)

    with pytest.raises(BuybackNotEligibleError, match="already executed") as exc:
        check_launch_eligible(launch)
    assert exc.value.extra == {"tx_signature": outcome.burn_signature}


async def test_pending_view(make_launch):
    launch = await make_launch("MintN3", sol_raised=50, migrated=True)
    view = pending_buyback_view(launch)
    assert view["buyback_amount"] == pytest.approx(10.0)
    assert view["symbol"] == "SHIP"
