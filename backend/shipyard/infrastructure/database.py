"""Shipyard Database — the engine and sessions behind the launch registry and flywheel ledger.

Invariants:
    - One ShipyardDatabase per process: lifespan opens it (open_database) and closes it
    - A session that raises rolls back before the exception leaves session()
    - SQLAlchemy exceptions leave as DatabaseError; ShipyardErrors raised inside a
      session (DuplicateLaunchError, ConcurrencyError...) pass through unchanged
    - In-memory SQLite runs on a single shared connection so every session sees one schema

Design Decisions:
    - expire_on_commit=False: registry and ledger hand ORM rows back to routes after commit
    - Pool sizing only for server databases; aiosqlite ignores it
    - create_tables() is for local SQLite runs and tests; deployed schemas come from Alembic
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shipyard.config import Settings
from shipyard.core.errors import DatabaseError
from shipyard.db.base import Base
import shipyard.models  # noqa: F401  (tables for create_tables)

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors.
_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
)


def to_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for error_type, message, operation in _ERROR_MAP:
        if isinstance(exc, error_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


def engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url:
            return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_recycle": 1800,
    }


class ShipyardDatabase:
    def __init__(self, database_url: str, pool_size: int = 20, max_overflow: int = 10):
        self.engine = create_async_engine(
            database_url, **engine_options(database_url, pool_size, max_overflow),
        )
        self.sessions = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShipyardDatabase":
        return cls(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.sessions() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                error = to_database_error(e)
                logger.error(
                    f"{error.message}: {e}", extra={"error_code": error.code},
                )
                raise error from e
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Readiness: can we run a trivial query?"""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        return True

    async def dispose(self):
        await self.engine.dispose()


# ─── Process-wide instance ───────────────────────────────────────

shipyard_db: ShipyardDatabase | None = None


def open_database(settings: Settings) -> ShipyardDatabase:
    global shipyard_db
    shipyard_db = ShipyardDatabase.from_settings(settings)
    logger.info(f"Database engine created for {shipyard_db.engine.url.render_as_string()}")
    return shipyard_db


async def close_database():
    global shipyard_db
    if shipyard_db is not None:
        await shipyard_db.dispose()
        shipyard_db = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if shipyard_db is None:
        raise DatabaseError("database not initialized", "connect")
    async with shipyard_db.session() as session:
        yield session
