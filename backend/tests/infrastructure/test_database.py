"""Shipyard database tests — engine options, error mapping, rollback and lifecycle."""

import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

import shipyard.infrastructure.database as db_module
import shipyard.models  # noqa: F401
from shipyard.config import Settings
from shipyard.core.errors import DatabaseError, DuplicateLaunchError
from shipyard.infrastructure.database import (
    ShipyardDatabase, close_database, engine_options, get_db, open_database, to_database_error,
)
from shipyard.models.flywheel_stats import FlywheelStats

_INSERT_STATS = text(
    "INSERT INTO flywheel_stats (id, total_fees_collected_lamports, total_tokens_burned, total_executions) "
    "VALUES (1, 0, '0', 0)"
)


@pytest.fixture
async def database():
    db = ShipyardDatabase("sqlite+aiosqlite:///:memory:")
    await db.create_tables()
    yield db
    await db.dispose()


def test_memory_sqlite_shares_one_connection():
    options = engine_options("sqlite+aiosqlite:///:memory:", 20, 10)
    assert options["poolclass"] is StaticPool


def test_server_database_gets_pool_sizing():
    options = engine_options("postgresql+asyncpg://u:p@db/shipyard", 5, 2)
    assert options["pool_size"] == 5
    assert options["max_overflow"] == 2
    assert options["pool_pre_ping"] is True


def test_error_mapping_prefers_specific_types():
    integrity = IntegrityError("INSERT", {}, Exception("unique"))
    operational = OperationalError("SELECT", {}, Exception("gone"))
    assert to_database_error(integrity).operation == "commit"
    assert to_database_error(operational).operation == "execute"
    assert to_database_error(SQLAlchemyError("boom")).operation == "unknown"
    assert to_database_error(integrity).http_status == 503


async def test_session_rolls_back_and_maps_errors(database):
    with pytest.raises(DatabaseError) as exc:
        async with database.session() as db:
            await db.execute(_INSERT_STATS)
            await db.execute(_INSERT_STATS)
    assert exc.value.operation == "commit"

    async with database.session() as db:
        rows = (await db.execute(select(FlywheelStats))).scalars().all()
    assert rows == []


async def test_shipyard_errors_pass_through(database):
    with pytest.raises(DuplicateLaunchError):
        async with database.session():
            raise DuplicateLaunchError("MintA")


async def test_ping(database):
    assert await database.ping() is True


async def test_open_and_close_lifecycle():
    settings = Settings(database_url="sqlite+aiosqlite:///:memory:")
    db = open_database(settings)
    assert db_module.shipyard_db is db
    await close_database()
    assert db_module.shipyard_db is None


async def test_get_db_requires_open_database():
    with pytest.raises(DatabaseError):
        await anext(get_db())
