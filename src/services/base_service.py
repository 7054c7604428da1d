"""
Base service layer: table gateway for unified database operations
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

import asyncpg

from database.tables import Table
from utils.exceptions import ConflictError, MultipleRowsError, StoreFailure

logger = logging.getLogger(__name__)

FieldUpdates = Sequence[Tuple[str, Any]]


class BaseService:
    """Issues SQL against one table on a connection supplied by the caller"""

    def __init__(self, db_pool: asyncpg.Pool, table: Table):
        self.db_pool = db_pool
        self.table = table

    @asynccontextmanager
    async def transaction(self, readonly: bool = False) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a pooled connection and open a transaction on it"""
        if self.db_pool is None:
            raise RuntimeError("Database pool not initialized")

        async with self.db_pool.acquire() as conn:
            async with conn.transaction(readonly=readonly):
                yield conn

    async def insert(self, conn: asyncpg.Connection, values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert one row and return it

        Args:
            conn: Connection the statement runs on
            values: Column values, including the primary key

        Returns:
            The inserted row as a dict
        """
        query, params = self._build_insert_query(values)
        row = await self._execute("INSERT", conn.fetchrow, query, *params)

        if not row:
            raise StoreFailure(f"Insert into {self.table.name} returned no data")

        return dict(row)

    async def insert_many(self, conn: asyncpg.Connection, rows: List[Dict[str, Any]]) -> int:
        """
        Insert all rows in one batched round trip

        Every row must carry the same columns in the same order.
        Returns the number of rows sent.
        """
        if not rows:
            return 0

        columns = list(rows[0].keys())
        for row in rows:
            if list(row.keys()) != columns:
                raise ValueError(f"Batch insert into {self.table.name} requires identical columns per row")

        query = self._build_batch_insert_query(columns)
        args = [tuple(row[column] for column in columns) for row in rows]

        await self._execute("BATCH INSERT", conn.executemany, query, args)
        logger.info(f"Batch inserted {len(args)} rows into {self.table.name}")
        return len(args)

    async def select_one(self, conn: asyncpg.Connection, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Select the single row matching the equality filters

        Returns None when nothing matches and raises MultipleRowsError
        when the filters are not unique.
        """
        query, params = self._build_read_query(filters=filters, limit=2)
        rows = await self._execute("READ", conn.fetch, query, *params)

        if len(rows) > 1:
            raise MultipleRowsError(f"Expected at most one row in {self.table.name} for {sorted(filters)}")

        return dict(rows[0]) if rows else None

    async def select_page(
        self,
        conn: asyncpg.Connection,
        order_by: Optional[List[Tuple[str, str]]] = None,
        limit: int = 100,
        offset: int = 0,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Select one page of rows

        Args:
            order_by: (column, "asc" | "desc") pairs
            limit: Maximum number of rows
            offset: Number of rows to skip
            filters: Optional equality filters
        """
        query, params = self._build_read_query(filters=filters, order_by=order_by, limit=limit, offset=offset)
        rows = await self._execute("READ", conn.fetch, query, *params)
        return [dict(row) for row in rows]

    async def update(self, conn: asyncpg.Connection, record_id: Any, fields: FieldUpdates) -> Optional[Dict[str, Any]]:
        """
        Apply the (column, value) pairs to one row

        Returns the updated row, or None when no row has this id.
        """
        if not fields:
            raise ValueError("Update requires at least one field")

        query, params = self._build_update_query(record_id, fields)
        row = await self._execute("UPDATE", conn.fetchrow, query, *params)
        return dict(row) if row else None

    async def delete(self, conn: asyncpg.Connection, record_id: Any) -> bool:
        """Delete one row by primary key, returning whether it existed"""
        query = f"DELETE FROM {self.table.name} WHERE {self.table.id_field} = $1 RETURNING {self.table.id_field}"
        row = await self._execute("DELETE", conn.fetchrow, query, record_id)
        return row is not None

    async def exists(self, conn: asyncpg.Connection, record_id: Any) -> bool:
        query = f"SELECT EXISTS(SELECT 1 FROM {self.table.name} WHERE {self.table.id_field} = $1)"
        return bool(await self._execute("EXISTS", conn.fetchval, query, record_id))

    async def _execute(self, operation: str, method, query: str, *params: Any) -> Any:
        """Run one statement, translating asyncpg errors into service errors"""
        logger.debug(f"Executing {operation}: {query}")

        try:
            return await method(query, *params)
        except asyncpg.UniqueViolationError as e:
            logger.warning(f"Unique constraint violation on {self.table.name}: {e}")
            raise ConflictError(f"Record already exists in {self.table.name}") from e
        except asyncpg.IntegrityConstraintViolationError as e:
            logger.warning(f"Integrity constraint violation on {self.table.name}: {e}")
            raise StoreFailure(f"Database {operation} failed: {e}", status_code=400) from e
        except asyncpg.PostgresError as e:
            logger.error(f"Database error during {operation} on {self.table.name}: {e}")
            raise StoreFailure(f"Database {operation} failed: {e}") from e

    def _check_column(self, column: str) -> str:
        if not self.table.has_column(column):
            raise ValueError(f"Unknown column for {self.table.name}: {column}")
        return column

    def _build_insert_query(self, values: Dict[str, Any]) -> Tuple[str, List[Any]]:
        """Build SQL INSERT query returning the new row"""
        field_names = [self._check_column(name) for name in values]
        placeholders = [f"${index}" for index in range(1, len(field_names) + 1)]

        query = (
            f"INSERT INTO {self.table.name} ({', '.join(field_names)}) "
            f"VALUES ({', '.join(placeholders)}) RETURNING *"
        )
        return query, list(values.values())

    def _build_batch_insert_query(self, columns: List[str]) -> str:
        field_names = [self._check_column(name) for name in columns]
        placeholders = [f"${index}" for index in range(1, len(field_names) + 1)]
        return f"INSERT INTO {self.table.name} ({', '.join(field_names)}) VALUES ({', '.join(placeholders)})"

    def _build_read_query(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Tuple[str, str]]] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Tuple[str, List[Any]]:
        """Build SQL SELECT query with equality filters, ordering and paging"""
        params: List[Any] = []
        query = f"SELECT * FROM {self.table.name}"

        if filters:
            where_parts = []
            for field_name, value in filters.items():
                params.append(value)
                where_parts.append(f"{self._check_column(field_name)} = ${len(params)}")
            query += f" WHERE {' AND '.join(where_parts)}"

        if order_by:
            order_parts = []
            for field_name, direction in order_by:
                direction = direction.upper()
                if direction not in ("ASC", "DESC"):
                    raise ValueError(f"Unsupported sort direction: {direction}")
                order_parts.append(f"{self._check_column(field_name)} {direction}")
            query += f" ORDER BY {', '.join(order_parts)}"

        if limit is not None:
            params.append(limit)
            query += f" LIMIT ${len(params)}"

        if offset > 0:
            params.append(offset)
            query += f" OFFSET ${len(params)}"

        return query, params

    def _build_update_query(self, record_id: Any, fields: FieldUpdates) -> Tuple[str, List[Any]]:
        """Build SQL UPDATE query for one row returning its post-image"""
        params: List[Any] = []
        set_parts = []

        for field_name, value in fields:
            if field_name == self.table.id_field:
                raise ValueError("Primary key cannot be updated")
            params.append(value)
            set_parts.append(f"{self._check_column(field_name)} = ${len(params)}")

        params.append(record_id)
        query = (
            f"UPDATE {self.table.name} SET {', '.join(set_parts)} "
            f"WHERE {self.table.id_field} = ${len(params)} RETURNING *"
        )
        return query, params
