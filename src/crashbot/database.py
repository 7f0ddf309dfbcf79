"""Database connection pool for crashbot.

Uses asyncpg for PostgreSQL connections.
Crash reports are stored in the 'crashbot' schema.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

from .config import CrashbotConfig, config as default_config

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE SCHEMA IF NOT EXISTS crashbot;

CREATE TABLE IF NOT EXISTS crashbot.crash_reports (
    id SERIAL PRIMARY KEY,
    resource_name TEXT NOT NULL UNIQUE,
    cause TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    occurrence_count INTEGER NOT NULL DEFAULT 1 CHECK (occurrence_count >= 1),
    status VARCHAR(16) NOT NULL DEFAULT 'pending',
    created_at TIMESTAMPTZ NOT NULL,
    last_reported_at TIMESTAMPTZ NOT NULL,
    fixed_at TIMESTAMPTZ,
    fixed_by TEXT
);

CREATE INDEX IF NOT EXISTS idx_crash_reports_count
    ON crashbot.crash_reports (occurrence_count DESC);
"""

# Connection pool (singleton)
_pool: Optional[asyncpg.Pool] = None


async def get_pool(config: Optional[CrashbotConfig] = None) -> asyncpg.Pool:
    """Get or create the database connection pool.

    Environment variables (via CrashbotConfig):
        CRASHBOT_DB_HOST: PostgreSQL host (default: localhost)
        CRASHBOT_DB_PORT: PostgreSQL port (default: 5432)
        CRASHBOT_DB_NAME: Database name (default: crashbot)
        CRASHBOT_DB_USER: Database user (default: crashbot)
        CRASHBOT_DB_PASSWORD: Database password
    """
    global _pool
    if _pool is None:
        cfg = config or default_config

        logger.info(f"Creating PostgreSQL connection pool to {cfg.db_host}:{cfg.db_port}/{cfg.db_name}")

        _pool = await asyncpg.create_pool(
            host=cfg.db_host,
            port=cfg.db_port,
            database=cfg.db_name,
            user=cfg.db_user,
            password=cfg.db_password,
            min_size=1,
            max_size=10,
            command_timeout=30,
        )

    return _pool


async def close_pool():
    """Close the database connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Database connection pool closed")


@asynccontextmanager
async def get_connection(config: Optional[CrashbotConfig] = None):
    """Get a connection from the pool."""
    pool = await get_pool(config)
    async with pool.acquire() as conn:
        yield conn


async def ensure_schema(config: Optional[CrashbotConfig] = None):
    """Create the crashbot schema and tables if missing."""
    async with get_connection(config) as conn:
        await conn.execute(SCHEMA_SQL)
    logger.info("crashbot schema ready")
