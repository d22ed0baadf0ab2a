"""FlywheelStats ORM — single-row running counters for the fee flywheel.

Invariants:
    - Exactly one row (id=1), created lazily on first run
    - Counters only grow; total_tokens_burned is a decimal string of raw units
"""

from datetime import datetime

from sqlalchemy import String, Integer, BigInteger, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from shipyard.db.base import Base

STATS_ROW_ID = 1


class FlywheelStats(Base):
    __tablename__ = "flywheel_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=STATS_ROW_ID)
    total_fees_collected_lamports: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    total_tokens_burned: Mapped[str] = mapped_column(
        String(40), nullable=False, default="0",
    )
    total_executions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_execution: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
