"""ORM Models — SQLAlchemy declarative models for launches and flywheel accounting.

Invariants:
    - All models inherit from Base (db/base.py)
    - Launch is keyed by token_mint for lookups; records are never deleted

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / alembic
"""

from shipyard.models.launch import Launch  # noqa: F401
from shipyard.models.flywheel_stats import FlywheelStats  # noqa: F401
from shipyard.models.flywheel_run import FlywheelRun  # noqa: F401
