"""FlywheelRun ORM — one row per pool processed by a flywheel run.

Invariants:
    - Rows are append-only; a failed step is recorded with error set and success False
    - Signatures are nullable: a run stops at the first failing step

Design Decisions:
    - Ledger table next to the counters: the stats endpoint can rebuild recent
      activity from it when the chain scan is unavailable
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, BigInteger, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from shipyard.db.base import Base


class FlywheelRun(Base):
    __tablename__ = "flywheel_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pool_address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    token_mint: Mapped[str] = mapped_column(String(64), nullable=False)
    engine: Mapped[str] = mapped_column(String(16), nullable=False)
    fees_claimed_lamports: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    buyback_lamports: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    tokens_burned: Mapped[str] = mapped_column(String(40), nullable=False, default="0")
    claim_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    buyback_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    burn_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
