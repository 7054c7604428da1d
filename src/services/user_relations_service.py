"""
User relations service - users together with their address and cars

Reads assemble the one-to-one address (LEFT JOIN) and the one-to-many cars
(correlated subquery through users_car) in a single statement. Cars are
either aggregated by PostgreSQL with json_agg, or fetched with one extra
batched query for the whole page when json aggregation is disabled.
"""

import json
import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import asyncpg
from fastapi import Depends

from config.settings import RELATIONS_JSON_AGGREGATION
from database.connection import get_db_pool
from database.tables import ADDRESS, USERS, USERS_CAR
from services.base_service import BaseService
from services.cars_service import CarsService
from utils.exceptions import MultipleRowsError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

USER_COLUMNS = "u.id, u.username, u.email, u.first_name, u.age, u.created_at"
ADDRESS_COLUMNS = "a.city, a.build, a.apartment"

CARS_SUBQUERY = """COALESCE((
        SELECT json_agg(json_build_object('id', c.id, 'model', c.model, 'release_year', c.release_year) ORDER BY c.id)
        FROM car c
        JOIN users_car uc ON c.id = uc.car_id
        WHERE uc.user_id = u.id
    ), '[]'::json) AS cars"""

CARS_FOR_USERS_QUERY = """
    SELECT uc.user_id, c.id, c.model, c.release_year
    FROM car c
    JOIN users_car uc ON c.id = uc.car_id
    WHERE uc.user_id = ANY($1::uuid[])
    ORDER BY c.id
"""


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserRelationsService(BaseService):
    """Aggregated user reads and the batched compound create"""

    def __init__(self, db_pool: asyncpg.Pool, json_aggregation: bool = RELATIONS_JSON_AGGREGATION):
        super().__init__(db_pool, USERS)
        self.json_aggregation = json_aggregation
        self.cars = CarsService(db_pool)
        self.addresses = BaseService(db_pool, ADDRESS)
        self.user_cars = BaseService(db_pool, USERS_CAR)

    async def get_users_with_relations(self, page: int, size: int) -> List[Dict[str, Any]]:
        """
        Get one page of users with address and cars

        Paging applies to users only, newest first.
        """
        query, params = self._build_relations_query(limit=size, offset=page * size)
        async with self.transaction(readonly=True) as conn:
            return await self._fetch_relations(conn, query, params)

    async def get_user_with_relations(self, username: str) -> Dict[str, Any]:
        """
        Get a single user with address and cars

        Raises:
            NotFoundError: No user has this username
            MultipleRowsError: The username matched more than one row
        """
        async with self.transaction(readonly=True) as conn:
            return await self._get_user_with_relations(conn, username)

    async def search_users_with_relations(self, username: str, page: int, size: int) -> List[Dict[str, Any]]:
        """
        Case-insensitive substring search on username

        The filter runs in SQL before paging, so every matching user is
        reachable through some page.
        """
        query, params = self._build_relations_query(
            where="u.username ILIKE $1 ESCAPE '\\'",
            where_params=[f"%{escape_like(username)}%"],
            limit=size,
            offset=page * size
        )
        async with self.transaction(readonly=True) as conn:
            return await self._fetch_relations(conn, query, params)

    async def create_user_with_relations(
        self,
        user: Dict[str, Any],
        address: Optional[Dict[str, Any]],
        cars: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Create a user, its address and its cars in one transaction

        Args:
            user: username, email, first_name, age
            address: city, build, apartment; None skips the address row
            cars: model, release_year per car

        Returns:
            The aggregated view of the new user

        Cars and their links are written with two batch statements in total,
        whatever the number of cars.
        """
        user_id = uuid.uuid4()

        try:
            async with self.transaction() as conn:
                await self.insert(conn, {"id": user_id, **user})

                if address is not None:
                    await self.addresses.insert(conn, {"id": uuid.uuid4(), "user_id": user_id, **address})

                if cars:
                    await self._create_user_cars_batch(conn, user_id, cars)

                return await self._get_user_with_relations(conn, user["username"])

        except ServiceError as e:
            logger.error(f"Failed to create user with relations '{user.get('username')}': {e}")
            raise

    async def _create_user_cars_batch(self, conn: asyncpg.Connection, user_id: UUID, cars: List[Dict[str, Any]]) -> None:
        # ids exist before any insert so the link rows can reference them; position ties car to id
        car_ids = [uuid.uuid4() for _ in cars]

        await self.cars.insert_many(conn, [
            {"id": car_id, "model": car["model"], "release_year": car.get("release_year")}
            for car_id, car in zip(car_ids, cars)
        ])

        await self.user_cars.insert_many(conn, [
            {"id": uuid.uuid4(), "user_id": user_id, "car_id": car_id}
            for car_id in car_ids
        ])

    async def _get_user_with_relations(self, conn: asyncpg.Connection, username: str) -> Dict[str, Any]:
        query, params = self._build_relations_query(where="u.username = $1", where_params=[username])
        results = await self._fetch_relations(conn, query, params)

        if not results:
            raise NotFoundError(f"User with username {username} not found")
        if len(results) > 1:
            raise MultipleRowsError(f"Username {username} matched {len(results)} rows")

        return results[0]

    def _build_relations_query(
        self,
        where: Optional[str] = None,
        where_params: Optional[List[Any]] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Tuple[str, List[Any]]:
        """Build the users + address (+ cars) SELECT"""
        params = list(where_params or [])

        select_parts = [USER_COLUMNS, ADDRESS_COLUMNS]
        if self.json_aggregation:
            select_parts.append(CARS_SUBQUERY)

        query = f"SELECT {', '.join(select_parts)} FROM users u LEFT JOIN address a ON u.id = a.user_id"

        if where:
            query += f" WHERE {where}"

        query += " ORDER BY u.created_at DESC, u.id"

        if limit is not None:
            params.append(limit)
            query += f" LIMIT ${len(params)}"
            params.append(offset)
            query += f" OFFSET ${len(params)}"

        return query, params

    async def _fetch_relations(self, conn: asyncpg.Connection, query: str, params: List[Any]) -> List[Dict[str, Any]]:
        rows = await self._execute("READ", conn.fetch, query, *params)

        if self.json_aggregation:
            return [self._to_user_with_relations(row, self._decode_cars(row["cars"])) for row in rows]

        cars_by_user = await self._fetch_cars_for_users(conn, [row["id"] for row in rows])
        return [self._to_user_with_relations(row, cars_by_user.get(row["id"], [])) for row in rows]

    async def _fetch_cars_for_users(self, conn: asyncpg.Connection, user_ids: List[UUID]) -> Dict[UUID, List[Dict[str, Any]]]:
        """Cars of all given users in one query, grouped by user id"""
        if not user_ids:
            return {}

        rows = await self._execute("READ", conn.fetch, CARS_FOR_USERS_QUERY, user_ids)

        cars_by_user: Dict[UUID, List[Dict[str, Any]]] = defaultdict(list)
        for row in rows:
            cars_by_user[row["user_id"]].append({
                "id": row["id"],
                "model": row["model"],
                "release_year": row["release_year"]
            })
        return cars_by_user

    @staticmethod
    def _decode_cars(value: Any) -> List[Dict[str, Any]]:
        # asyncpg hands json columns back as text unless a codec is registered
        if value is None:
            return []
        if isinstance(value, (str, bytes)):
            value = json.loads(value)
        return list(value)

    @staticmethod
    def _to_user_with_relations(row: Any, cars: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "user": {
                "id": row["id"],
                "username": row["username"],
                "email": row["email"],
                "first_name": row["first_name"],
                "age": row["age"],
                "created_at": row["created_at"]
            },
            "address": {
                "city": row["city"],
                "build": row["build"],
                "apartment": row["apartment"]
            },
            "cars": cars
        }


def get_user_relations_service(db_pool: asyncpg.Pool = Depends(get_db_pool)) -> UserRelationsService:
    """Build the user relations service on the application pool"""
    return UserRelationsService(db_pool)
