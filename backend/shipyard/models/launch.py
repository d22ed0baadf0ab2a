"""Launch ORM — one row per token launched (or registered) through Shipyard.

Invariants:
    - token_mint is unique; lookups by mint are the only access path the API exposes
    - engine is 1 (navigator), 2 (lighthouse) or 3 (supernova)
    - tokens_burned is a decimal string of raw token units (can exceed int64)
    - buyback_burn_executed flips to True at most once and is never reset

Design Decisions:
    - String primary key (launch_<ms>_<rand>): ids are minted in core/launch_rules.py
    - Float SOL amounts: display values, never used to build transactions
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Float, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from shipyard.db.base import Base


class Launch(Base):
    """Launch aggregate: metadata plus buyback-burn state."""
    __tablename__ = "launches"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    token_mint: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True,
    )
    pool_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    symbol: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    creator: Mapped[str] = mapped_column(String(64), nullable=False)
    engine: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    engine_name: Mapped[str] = mapped_column(
        String(16), nullable=False, default="lighthouse",
    )
    config_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    dev_buy_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    dev_buy_percent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    sol_raised: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    migrated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    migrated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    tx_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # Buyback & burn
    buyback_burn_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    buyback_burn_percent: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    buyback_burn_executed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    buyback_burn_tx_signature: Mapped[str | None] = mapped_column(
        String(128), nullable=True,
    )
    buyback_burn_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    tokens_burned: Mapped[str] = mapped_column(
        String(40), nullable=False, default="0",
    )
