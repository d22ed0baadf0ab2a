"""Service test fixtures — async DB, chain fakes and the FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - shipyard_db points at the test database so the readiness probe sees it
    - Chain, bonding-curve, Jupiter and market-data providers replaced by fakes
    - Settings overridden with zero delays and no cron secret
    - Process-wide TTL caches cleared before and after each test

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
    - A fresh Keypair per test stands in for SHIPYARD_PRIVATE_KEY
"""

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from httpx import ASGITransport, AsyncClient

from shipyard.api import dependencies as deps
from shipyard.config import Settings, get_settings
from shipyard.db.base import Base
from shipyard.infrastructure.database import ShipyardDatabase, get_db
import shipyard.infrastructure.database as db_module
import shipyard.models  # noqa: F401  (registers tables on Base.metadata)
from shipyard.core.domain_types import Engine
from shipyard.main import app
from shipyard.services.launch_registry import LaunchRegistry

from tests.services.fakes import FakeChain, FakeDbc, FakeJupiter, FakeMarketData

DEFAULT_POOL = str(Pubkey.new_unique())


@pytest.fixture
async def test_database():
    database = ShipyardDatabase("sqlite+aiosqlite:///:memory:")
    await database.create_tables()
    yield database
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await database.dispose()


@pytest.fixture
async def test_session_factory(test_database):
    return test_database.sessions


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        cron_secret=None,
        burn_settle_delay_seconds=0,
        pool_delay_seconds=0,
        swap_retry_delay_seconds=0,
        migration_check_delay_seconds=0,
    )


@pytest.fixture
def wallet():
    return Keypair()


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def dbc():
    return FakeDbc()


@pytest.fixture
def jupiter():
    return FakeJupiter()


@pytest.fixture
def market():
    return FakeMarketData()


@pytest.fixture
async def client(
    test_database, settings, wallet, chain, dbc, jupiter, market,
):
    """FastAPI test client with DB and chain dependencies overridden."""
    async def override_get_db():
        async with test_database.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[deps.get_chain] = lambda: chain
    app.dependency_overrides[deps.get_dbc] = lambda: dbc
    app.dependency_overrides[deps.get_jupiter] = lambda: jupiter
    app.dependency_overrides[deps.get_market_data] = lambda: market
    app.dependency_overrides[deps.get_shipyard_keypair] = lambda: wallet
    app.dependency_overrides[deps.get_optional_shipyard_keypair] = lambda: wallet
    deps.reset_caches()

    original_db = db_module.shipyard_db
    db_module.shipyard_db = test_database

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    deps.reset_caches()
    db_module.shipyard_db = original_db


@pytest.fixture
def make_launch(test_db):
    """Register a launch straight through the registry; returns the ORM row."""
    async def _make(
        token_mint: str,
        pool_address: str | None = DEFAULT_POOL,
        engine: Engine = Engine.NAVIGATOR,
        symbol: str = "SHIP",
        sol_raised: float = 0.0,
        migrated: bool = False,
    ):
        registry = LaunchRegistry(test_db)
        launch = await registry.register(
            token_mint=token_mint, pool_address=pool_address, name="Shipyard Token",
            symbol=symbol, creator="Creator111111111111111111111111111111111111", engine=engine,
        )
        if sol_raised or migrated:
            launch = await registry.update_market_state(token_mint, sol_raised, migrated)
        return launch
    return _make
