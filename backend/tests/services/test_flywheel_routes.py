"""Flywheel routes — scheduled run, single-pool run and public stats.

Invariants:
    - Cron GET requires "Bearer <CRON_SECRET>" only when a secret is configured
    - Single-pool POST for an unregistered pool returns 404
    - flywheel-stats always answers with totals and recent_activity
"""

from solders.pubkey import Pubkey

from shipyard.api import dependencies as deps
from shipyard.core.domain_types import Engine
from shipyard.main import app

from tests.services.fakes import credit_on_claim, make_pool


async def _claimable(make_launch, dbc, wallet, engine=Engine.NAVIGATOR):
    mint = Pubkey.new_unique()
    pool, config = make_pool(fee_claimer=wallet.pubkey(), base_mint=mint)
    dbc.add(pool, config)
    return await make_launch(str(mint), pool_address=pool.address, engine=engine)


async def test_cron_run(client, make_launch, dbc, chain, wallet):
    await _claimable(make_launch, dbc, wallet)
    chain.on_send = credit_on_claim(wallet.pubkey(), 500_000_000)

    res = await client.get("/api/v1/cron/fee-flywheel")

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["summary"]["pools_processed"] == 1
    assert body["summary"]["success_count"] == 1
    assert body["results"][0]["burn_signature"] is not None


async def test_cron_secret_enforced(client, settings):
    settings.cron_secret = "s3cret"
    assert (await client.get("/api/v1/cron/fee-flywheel")).status_code == 401
    res = await client.get("/api/v1/cron/fee-flywheel", headers={"Authorization": "Bearer wrong"})
    assert res.status_code == 401
    res = await client.get("/api/v1/cron/fee-flywheel", headers={"Authorization": "Bearer s3cret"})
    assert res.status_code == 200
    assert res.json()["summary"]["pools_processed"] == 0


async def test_single_pool_run(client, make_launch, dbc, chain, wallet):
    launch = await _claimable(make_launch, dbc, wallet)
    chain.on_send = credit_on_claim(wallet.pubkey(), 1_000)

    res = await client.post("/api/v1/cron/fee-flywheel", json={"pool_address": launch.pool_address})

    body = res.json()
    assert body["success"] is True
    assert body["result"]["fees_claimed"] == 1_000
    assert body["result"]["buyback_signature"] is None


async def test_single_pool_failure_reports_success_false(client, make_launch, dbc, wallet):
    mint = Pubkey.new_unique()
    pool, config = make_pool(fee_claimer=None, base_mint=mint)
    dbc.add(pool, config)
    await make_launch(str(mint), pool_address=pool.address)

    res = await client.post("/api/v1/cron/fee-flywheel", json={"pool_address": pool.address})

    assert res.status_code == 200
    assert res.json()["success"] is False
    assert res.json()["result"]["error"].startswith("Claim failed:")


async def test_single_pool_unknown(client):
    res = await client.post("/api/v1/cron/fee-flywheel", json={"pool_address": str(Pubkey.new_unique())})
    assert res.status_code == 404
    assert res.json()["error"] == "Pool not found"


async def test_flywheel_stats_empty(client):
    res = await client.get("/api/v1/flywheel-stats")
    body = res.json()
    assert body["success"] is True
    assert body["totals"]["execution_count"] == 0
    assert body["totals"]["fees_collected_lamports"] == 0
    assert body["recent_activity"] == []


async def test_flywheel_stats_without_keypair(client):
    app.dependency_overrides[deps.get_optional_shipyard_keypair] = lambda: None
    res = await client.get("/api/v1/flywheel-stats")
    assert res.status_code == 200
    assert res.json()["cached"] is True


async def test_flywheel_stats_after_run(client, make_launch, dbc, chain, wallet):
    await _claimable(make_launch, dbc, wallet)
    chain.on_send = credit_on_claim(wallet.pubkey(), 500_000_000)
    await client.get("/api/v1/cron/fee-flywheel")

    body = (await client.get("/api/v1/flywheel-stats")).json()

    assert body["totals"]["fees_collected_sol"] == 0.5
    assert body["totals"]["tokens_burned"] == "5000000"
    assert len(body["recent_activity"]) == 1
