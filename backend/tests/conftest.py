"""Root conftest — shared test configuration."""

import os

# Tests never talk to a real database, RPC or wallet
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("SOLANA_RPC_URL", "http://localhost:8899")
os.environ.pop("SHIPYARD_PRIVATE_KEY", None)
os.environ.pop("CRON_SECRET", None)
os.environ.setdefault("LOG_FORMAT", "text")
