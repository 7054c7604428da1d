"""
Health check API route
"""

from datetime import datetime, timezone

import asyncpg
from fastapi import APIRouter, Depends, HTTPException

from database.connection import get_db_pool

router = APIRouter()


@router.get("/health")
async def health_check(db_pool: asyncpg.Pool = Depends(get_db_pool)):
    """Health check - reports unhealthy only when the database is unreachable"""
    try:
        async with db_pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        raise HTTPException(status_code=503, detail=f"Health check failed: {e}")

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected"
    }
