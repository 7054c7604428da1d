"""
Database connection and pool management
"""

from pathlib import Path

import asyncpg
import logging
from fastapi import Request

from config.settings import DATABASE_URL, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE, DB_COMMAND_TIMEOUT

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


async def init_database(dsn: str = DATABASE_URL) -> asyncpg.Pool:
    """Create the connection pool and verify connectivity"""
    db_pool = await asyncpg.create_pool(
        dsn,
        min_size=DB_POOL_MIN_SIZE,
        max_size=DB_POOL_MAX_SIZE,
        command_timeout=DB_COMMAND_TIMEOUT,
        statement_cache_size=0  # Fix for pgbouncer compatibility
    )

    # Test connection
    async with db_pool.acquire() as conn:
        await conn.fetchval("SELECT 1")

    logger.info("Database initialized successfully")
    return db_pool


async def apply_schema(db_pool: asyncpg.Pool) -> None:
    """Create tables if they do not exist yet"""
    ddl = SCHEMA_PATH.read_text(encoding="utf-8")
    async with db_pool.acquire() as conn:
        await conn.execute(ddl)
    logger.info(f"Database schema applied from {SCHEMA_PATH.name}")


async def close_database(db_pool: asyncpg.Pool) -> None:
    """Close database connection pool"""
    if db_pool:
        await db_pool.close()
    logger.info("Database connections closed")


def get_db_pool(request: Request) -> asyncpg.Pool:
    """FastAPI dependency returning the pool created in the application lifespan"""
    db_pool = getattr(request.app.state, "db_pool", None)
    if db_pool is None:
        raise RuntimeError("Database pool not initialized")
    return db_pool
