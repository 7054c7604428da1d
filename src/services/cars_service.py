"""
Cars service - standalone car catalogue
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

import asyncpg
from fastapi import Depends

from database.connection import get_db_pool
from database.tables import CAR
from services.base_service import BaseService

logger = logging.getLogger(__name__)


class CarsService(BaseService):
    """Service for car operations"""

    def __init__(self, db_pool: asyncpg.Pool):
        super().__init__(db_pool, CAR)

    async def create_car(self, model: str, release_year: Optional[int] = None) -> Dict[str, Any]:
        """Create a car that is not linked to any user"""
        logger.info(f"Creating car: {model} ({release_year})")
        async with self.transaction() as conn:
            return await self.insert(conn, {
                "id": uuid.uuid4(),
                "model": model,
                "release_year": release_year
            })

    async def get_all_cars(self) -> List[Dict[str, Any]]:
        """All cars, newest release year first"""
        async with self.transaction(readonly=True) as conn:
            query = "SELECT id, model, release_year FROM car ORDER BY release_year DESC NULLS LAST, id"
            rows = await self._execute("READ", conn.fetch, query)
            return [dict(row) for row in rows]


def get_cars_service(db_pool: asyncpg.Pool = Depends(get_db_pool)) -> CarsService:
    """Build the cars service on the application pool"""
    return CarsService(db_pool)
