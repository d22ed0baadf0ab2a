"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Amounts that the chain sees are stored in lamports; user-facing amounts in SOL

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Flywheel timings (retry count, retry delay, settle delay) are settings so tests can zero them
    - Engine config addresses default to the mainnet partner configs
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://shipyard:shipyard@db:5432/shipyard"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Solana
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    shipyard_private_key: str | None = None
    explorer_tx_url: str = "https://solscan.io/tx/"

    # Cron endpoint guard (Authorization: Bearer <secret>)
    cron_secret: str | None = None

    # Swap aggregator (Jupiter)
    jupiter_quote_url: str = "https://quote-api.jup.ag/v6/quote"
    jupiter_swap_url: str = "https://quote-api.jup.ag/v6/swap"
    swap_slippage_bps: int = 100
    swap_max_attempts: int = 3
    swap_retry_delay_seconds: float = 1.0

    # Fee flywheel
    burn_settle_delay_seconds: float = 2.0
    pool_delay_seconds: float = 1.0
    min_fee_threshold_lamports: int = 10_000_000      # 0.01 SOL
    min_buyback_lamports: int = 1_000_000             # 0.001 SOL
    burn_fee_reserve_lamports: int = 10_000_000       # 0.01 SOL kept for tx fees

    # Migration monitor
    migration_check_delay_seconds: float = 0.5

    # Token launch
    launch_fee_sol: float = 0.01
    max_dev_buy_sol: float = 1.0
    max_dev_buy_percent: float = 6.6
    vanity_suffix: str = "SHIP"
    vanity_max_attempts: int = 5_000_000
    engine_config_navigator: str = "Ga4DCnyPHcxfp1k5FRbpn6PHhP9QXaLDczuMJL5RTN6U"
    engine_config_lighthouse: str = "EBiqUqvwEx7k19KZrn8FDPaW8L6tDNmRn1zZG2SsS8VM"
    engine_config_supernova: str = "8jFgQdWHcUbjzP3a4wXZXxHWqh1tvApbiQHHrXUynJcP"

    # Market data
    http_timeout_seconds: float = 10.0
    market_weather_ttl_seconds: int = 300
    volume_radar_ttl_seconds: int = 180
    flywheel_stats_ttl_seconds: int = 300
    sol_price_usd: float = 142.0

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def engine_configs(self) -> dict[str, str]:
        """Engine name → DBC pool config address."""
        return {
            "navigator": self.engine_config_navigator,
            "lighthouse": self.engine_config_lighthouse,
            "supernova": self.engine_config_supernova,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()
