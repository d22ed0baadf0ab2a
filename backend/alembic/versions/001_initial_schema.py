"""Initial schema — launches, flywheel_stats, flywheel_runs.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "launches",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("token_mint", sa.String(64), nullable=False),
        sa.Column("pool_address", sa.String(64), nullable=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("symbol", sa.String(16), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("image_url", sa.Text, nullable=False, server_default=""),
        sa.Column("creator", sa.String(64), nullable=False),
        sa.Column("engine", sa.Integer, nullable=False, server_default="2"),
        sa.Column("engine_name", sa.String(16), nullable=False, server_default="lighthouse"),
        sa.Column("config_address", sa.String(64), nullable=True),
        sa.Column("dev_buy_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("dev_buy_percent", sa.Float, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("sol_raised", sa.Float, nullable=False, server_default="0"),
        sa.Column("migrated", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("migrated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tx_signature", sa.String(128), nullable=True),
        sa.Column("buyback_burn_enabled", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("buyback_burn_percent", sa.Integer, nullable=False, server_default="0"),
        sa.Column("buyback_burn_executed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("buyback_burn_tx_signature", sa.String(128), nullable=True),
        sa.Column("buyback_burn_amount", sa.Float, nullable=True),
        sa.Column("tokens_burned", sa.String(40), nullable=False, server_default="0"),
    )
    op.create_index("ix_launches_token_mint", "launches", ["token_mint"], unique=True)

    op.create_table(
        "flywheel_stats",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("total_fees_collected_lamports", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("total_tokens_burned", sa.String(40), nullable=False, server_default="0"),
        sa.Column("total_executions", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_execution", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "flywheel_runs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("pool_address", sa.String(64), nullable=False),
        sa.Column("token_mint", sa.String(64), nullable=False),
        sa.Column("engine", sa.String(16), nullable=False),
        sa.Column("fees_claimed_lamports", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("buyback_lamports", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("tokens_burned", sa.String(40), nullable=False, server_default="0"),
        sa.Column("claim_signature", sa.String(128), nullable=True),
        sa.Column("buyback_signature", sa.String(128), nullable=True),
        sa.Column("burn_signature", sa.String(128), nullable=True),
        sa.Column("success", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_flywheel_runs_pool_address", "flywheel_runs", ["pool_address"])


def downgrade() -> None:
    op.drop_index("ix_flywheel_runs_pool_address", table_name="flywheel_runs")
    op.drop_table("flywheel_runs")
    op.drop_table("flywheel_stats")
    op.drop_index("ix_launches_token_mint", table_name="launches")
    op.drop_table("launches")
