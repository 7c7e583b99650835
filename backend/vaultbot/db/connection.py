"""Connection pool and schema migrations for the Postgres store."""

from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

from ..errors import ConfigError
from ..logging import get_logger

logger = get_logger("database")
migration_logger = get_logger("migrations")

POOL_MIN_SIZE = 1
POOL_MAX_SIZE = 5

_pool: Optional[asyncpg.Pool] = None


def _redact(database_url: str) -> str:
    """Drop the credentials part of a DSN for logging."""
    return database_url.rsplit("@", 1)[-1]


async def init_db(database_url: str) -> asyncpg.Pool:
    """Create the process-wide pool (once) and bring the schema up to date."""
    global _pool

    if _pool is not None:
        return _pool
    if not database_url:
        raise ConfigError("DATABASE_URL is not set")

    logger.info(f"Connecting to database at {_redact(database_url)}")
    _pool = await asyncpg.create_pool(database_url, min_size=POOL_MIN_SIZE, max_size=POOL_MAX_SIZE)
    logger.info(f"Connection pool ready (min={POOL_MIN_SIZE}, max={POOL_MAX_SIZE})")

    await run_migrations(_pool)
    return _pool


async def get_db_pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Database pool not initialized; call init_db() first")
    return _pool


async def close_db():
    global _pool
    if _pool is not None:
        logger.info("Closing database connection pool")
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection():
    """Borrow a connection from the global pool."""
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        yield conn


async def run_migrations(pool: asyncpg.Pool) -> list[str]:
    """
    Apply every migration not yet recorded in _migrations.

    Each migration runs in its own transaction together with its
    bookkeeping row, so a failure leaves earlier ones applied and the
    failed one absent. Re-running is a no-op.

    Returns:
        Names of the migrations applied by this call
    """
    async with pool.acquire() as conn:
        await conn.execute(MIGRATIONS_TABLE)
        done = {row["name"] for row in await conn.fetch("SELECT name FROM _migrations")}
        pending = [(name, sql) for name, sql in MIGRATIONS if name not in done]

        if not pending:
            migration_logger.info("Schema up to date")
            return []

        applied = []
        for name, sql in pending:
            migration_logger.info(f"Applying migration {name}")
            try:
                async with conn.transaction():
                    await conn.execute(sql)
                    await conn.execute("INSERT INTO _migrations (name) VALUES ($1)", name)
            except asyncpg.PostgresError as e:
                migration_logger.error(f"Migration {name} failed: {e}")
                raise
            applied.append(name)
        return applied


MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS _migrations (
    id SERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL UNIQUE,
    applied_at TIMESTAMPTZ DEFAULT NOW()
)
"""

MIGRATION_001_CREATE_SECRETS = """
-- One row per saved credential or freeform note
CREATE TABLE IF NOT EXISTS secrets (
    id BIGSERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    site TEXT NOT NULL DEFAULT '',          -- 'raw' marks a freeform record
    account TEXT NOT NULL DEFAULT '',       -- AES-GCM token, empty for raw records
    password TEXT NOT NULL DEFAULT '',      -- AES-GCM token (whole body for raw records)
    extra TEXT,                             -- AES-GCM token
    expires_at DATE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_secrets_created_at ON secrets(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_secrets_expires_at ON secrets(expires_at)
    WHERE expires_at IS NOT NULL;
"""

MIGRATION_002_CREATE_SESSIONS = """
-- Pending guided-save state, one row per user
CREATE TABLE IF NOT EXISTS sessions (
    user_id BIGINT PRIMARY KEY,
    step TEXT NOT NULL,
    data JSONB NOT NULL DEFAULT '{}',
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

MIGRATIONS = [
    ("001_create_secrets", MIGRATION_001_CREATE_SECRETS),
    ("002_create_sessions", MIGRATION_002_CREATE_SESSIONS),
]
