"""Shipyard API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ShipyardError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and external clients initialized on startup, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - The Shipyard keypair is loaded lazily per request (get_shipyard_keypair) so the
      read-only endpoints work without SHIPYARD_PRIVATE_KEY
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shipyard.api.error_handlers import register_error_handlers
from shipyard.api.routes import (
    buyback_burn, fees, flywheel, health, launch_token, launches, market, migration,
)
from shipyard.config import get_settings
from shipyard.infrastructure import database
from shipyard.infrastructure.clients import close_clients, init_clients
from shipyard.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.open_database(settings)
    init_clients(settings)
    logger.info("Shipyard API started")
    yield
    logger.info("Shipyard API shutting down")
    await close_clients()
    await database.close_database()


app = FastAPI(
    title="Shipyard API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(launches.router)
app.include_router(fees.router)
app.include_router(buyback_burn.router)
app.include_router(flywheel.router)
app.include_router(launch_token.router)
app.include_router(market.router)
app.include_router(migration.router)

register_error_handlers(app)
