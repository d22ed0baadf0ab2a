"""Database Declarations — SQLAlchemy Base shared by models and migrations.

Invariants:
    - Single async engine per process (opened via infrastructure/database.open_database)
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for tests
"""
