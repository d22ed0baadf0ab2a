"""Market routes — weather, volume radar and pool stats."""

from solders.pubkey import Pubkey

from shipyard.core.domain_types import AccountSnapshot


async def test_market_weather(client):
    body = (await client.get("/api/v1/market-weather")).json()
    assert body["prices"]["btc_price"] == 65000
    assert body["funding"]["eth_funding_rate"] == 0.02


async def test_market_weather_upstream_down(client, market):
    market.fail = {"fear_greed"}
    res = await client.get("/api/v1/market-weather")
    assert res.status_code == 502
    assert res.json()["error"] == "Failed to fetch data"


async def test_volume_radar_cached_between_requests(client, market):
    await client.get("/api/v1/volume-radar")
    await client.get("/api/v1/volume-radar")
    assert market.calls.count("trending") == 1


async def test_pool_stats(client, chain):
    pool = Pubkey.new_unique()
    chain.accounts[str(pool)] = AccountSnapshot(owner="x", lamports=1, data=b"")
    res = await client.get(f"/api/v1/pool-stats/{pool}", params={"token_mint": str(Pubkey.new_unique())})
    body = res.json()
    assert body["success"] is True
    assert body["pool"] == str(pool)


async def test_pool_stats_invalid_mint(client):
    res = await client.get(f"/api/v1/pool-stats/{Pubkey.new_unique()}", params={"token_mint": "bad"})
    assert res.status_code == 400
    assert res.json()["error"] == "Invalid token mint address"


async def test_pool_stats_requires_mint(client):
    res = await client.get(f"/api/v1/pool-stats/{Pubkey.new_unique()}")
    assert res.status_code == 400


async def test_pool_stats_unknown_pool(client):
    res = await client.get(f"/api/v1/pool-stats/{Pubkey.new_unique()}", params={"token_mint": str(Pubkey.new_unique())})
    assert res.status_code == 404
