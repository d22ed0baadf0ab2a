"""API Dependencies — FastAPI providers wiring clients, keypair and services per request.

Invariants:
    - Every external collaborator reaches a route through a provider here, so tests
      swap them with app.dependency_overrides
    - Services are built per request around the request's AsyncSession
    - TTL caches are process-wide (one per endpoint) and survive across requests
    - The cron guard only applies when CRON_SECRET is configured

Design Decisions:
    - Settings flow through get_settings as a dependency (overridable) rather than
      being read at import time
"""

from fastapi import Depends, Header
from solders.keypair import Keypair
from sqlalchemy.ext.asyncio import AsyncSession

from shipyard.config import Settings, get_settings
from shipyard.core.errors import UnauthorizedError
from shipyard.core.repository_protocols import (
    BondingCurveProgram, ChainGateway, MarketDataSource, SwapAggregator,
)
from shipyard.core.ttl_cache import TTLCache
from shipyard.infrastructure import clients
from shipyard.infrastructure.database import get_db
from shipyard.infrastructure.keypair import load_keypair
from shipyard.services.buyback import BuybackExecutor
from shipyard.services.fee_claimer import FeeClaimer
from shipyard.services.fee_flywheel import FeeFlywheel
from shipyard.services.flywheel_history import FlywheelHistory
from shipyard.services.flywheel_ledger import FlywheelLedger
from shipyard.services.launch_registry import LaunchRegistry
from shipyard.services.market_data import MarketDataService, PoolStatsReader
from shipyard.services.migration_monitor import MigrationMonitor
from shipyard.services.token_launcher import TokenLauncher

_caches: dict[str, TTLCache] = {}


def _cache(name: str, ttl_seconds: float) -> TTLCache:
    if name not in _caches:
        _caches[name] = TTLCache(ttl_seconds=ttl_seconds, max_size=16)
    return _caches[name]


def reset_caches():
    _caches.clear()


# ─── Collaborators ───────────────────────────────────────────────

def get_chain() -> ChainGateway:
    return clients.get_chain_client()


def get_dbc() -> BondingCurveProgram:
    return clients.get_dbc_client()


def get_jupiter() -> SwapAggregator:
    return clients.get_jupiter_client()


def get_market_data() -> MarketDataSource:
    return clients.get_market_data_client()


def get_shipyard_keypair(settings: Settings = Depends(get_settings)) -> Keypair:
    return load_keypair(settings.shipyard_private_key)


def get_optional_shipyard_keypair(settings: Settings = Depends(get_settings)) -> Keypair | None:
    """None when SHIPYARD_PRIVATE_KEY is unset."""
    if not settings.shipyard_private_key:
        return None
    return load_keypair(settings.shipyard_private_key)


async def require_cron_secret(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_settings),
):
    if settings.cron_secret and authorization != f"Bearer {settings.cron_secret}":
        raise UnauthorizedError()


# ─── Services ────────────────────────────────────────────────────

def get_launch_registry(db: AsyncSession = Depends(get_db)) -> LaunchRegistry:
    return LaunchRegistry(db)


def get_flywheel_ledger(db: AsyncSession = Depends(get_db)) -> FlywheelLedger:
    return FlywheelLedger(db)


def get_fee_claimer(
    chain: ChainGateway = Depends(get_chain),
    dbc: BondingCurveProgram = Depends(get_dbc),
    keypair: Keypair = Depends(get_shipyard_keypair),
) -> FeeClaimer:
    return FeeClaimer(chain, dbc, keypair)


def get_buyback_executor(
    chain: ChainGateway = Depends(get_chain),
    jupiter: SwapAggregator = Depends(get_jupiter),
    keypair: Keypair = Depends(get_shipyard_keypair),
    settings: Settings = Depends(get_settings),
) -> BuybackExecutor:
    return BuybackExecutor(
        chain, jupiter, keypair,
        settle_delay_seconds=settings.burn_settle_delay_seconds,
        fee_reserve_lamports=settings.burn_fee_reserve_lamports,
    )


def get_fee_flywheel(
    registry: LaunchRegistry = Depends(get_launch_registry),
    ledger: FlywheelLedger = Depends(get_flywheel_ledger),
    claimer: FeeClaimer = Depends(get_fee_claimer),
    executor: BuybackExecutor = Depends(get_buyback_executor),
    settings: Settings = Depends(get_settings),
) -> FeeFlywheel:
    return FeeFlywheel(
        registry, ledger, claimer, executor,
        min_fee_threshold_lamports=settings.min_fee_threshold_lamports,
        min_buyback_lamports=settings.min_buyback_lamports,
        pool_delay_seconds=settings.pool_delay_seconds,
    )


def get_flywheel_history(
    chain: ChainGateway = Depends(get_chain),
    ledger: FlywheelLedger = Depends(get_flywheel_ledger),
    keypair: Keypair | None = Depends(get_optional_shipyard_keypair),
    settings: Settings = Depends(get_settings),
) -> FlywheelHistory:
    return FlywheelHistory(
        chain, ledger, keypair.pubkey() if keypair else None,
        _cache("flywheel_stats", settings.flywheel_stats_ttl_seconds),
    )


def get_token_launcher(
    chain: ChainGateway = Depends(get_chain),
    dbc: BondingCurveProgram = Depends(get_dbc),
    keypair: Keypair = Depends(get_shipyard_keypair),
    registry: LaunchRegistry = Depends(get_launch_registry),
    settings: Settings = Depends(get_settings),
) -> TokenLauncher:
    return TokenLauncher(chain, dbc, keypair, registry, settings)


def get_market_data_service(
    source: MarketDataSource = Depends(get_market_data),
    settings: Settings = Depends(get_settings),
) -> MarketDataService:
    return MarketDataService(
        source,
        _cache("market_weather", settings.market_weather_ttl_seconds),
        _cache("volume_radar", settings.volume_radar_ttl_seconds),
    )


def get_pool_stats_reader(
    chain: ChainGateway = Depends(get_chain),
    dbc: BondingCurveProgram = Depends(get_dbc),
) -> PoolStatsReader:
    return PoolStatsReader(chain, dbc)


def get_migration_monitor(
    registry: LaunchRegistry = Depends(get_launch_registry),
    dbc: BondingCurveProgram = Depends(get_dbc),
    chain: ChainGateway = Depends(get_chain),
    jupiter: SwapAggregator = Depends(get_jupiter),
    keypair: Keypair | None = Depends(get_optional_shipyard_keypair),
    settings: Settings = Depends(get_settings),
) -> MigrationMonitor:
    executor = None
    if keypair is not None:
        executor = BuybackExecutor(
            chain, jupiter, keypair,
            settle_delay_seconds=settings.burn_settle_delay_seconds,
            fee_reserve_lamports=settings.burn_fee_reserve_lamports,
        )
    return MigrationMonitor(
        registry, dbc, executor, check_delay_seconds=settings.migration_check_delay_seconds,
    )
