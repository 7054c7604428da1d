"""
Users service - business logic for user management
"""

import logging
import uuid
from typing import Any, Dict, List, Optional
from uuid import UUID

import asyncpg
from fastapi import Depends

from database.connection import get_db_pool
from database.tables import USERS
from services.base_service import BaseService, FieldUpdates
from utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class UsersService(BaseService):
    """Service for user CRUD operations"""

    def __init__(self, db_pool: asyncpg.Pool):
        super().__init__(db_pool, USERS)

    async def create_user(
        self,
        username: str,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        age: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Create a new user

        Args:
            username: Unique login name
            email: Email address (optional)
            first_name: First name (optional)
            age: Age in years (optional)

        Returns:
            The stored user row
        """
        user_data = {
            "id": uuid.uuid4(),
            "username": username,
            "email": email,
            "first_name": first_name,
            "age": age
        }

        logger.info(f"Creating new user: {username}")
        async with self.transaction() as conn:
            return await self.insert(conn, user_data)

    async def get_user_by_id(self, user_id: UUID) -> Dict[str, Any]:
        """
        Get a user by its ID

        Raises:
            NotFoundError: No user has this ID
        """
        async with self.transaction(readonly=True) as conn:
            user = await self.select_one(conn, {"id": user_id})

        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return user

    async def get_users_page(self, page: int, size: int) -> List[Dict[str, Any]]:
        """Get one page of users, newest first"""
        async with self.transaction(readonly=True) as conn:
            return await self.select_page(
                conn,
                order_by=[("created_at", "desc"), ("id", "asc")],
                limit=size,
                offset=page * size
            )

    async def update_user_partial(self, user_id: UUID, fields: FieldUpdates) -> Dict[str, Any]:
        """
        Update only the supplied fields of a user

        Args:
            user_id: UUID of the user
            fields: (column, value) pairs; columns not listed stay untouched

        Returns:
            The user after the update, or its current state when fields is empty

        Raises:
            NotFoundError: No user has this ID
        """
        async with self.transaction() as conn:
            if not fields:
                user = await self.select_one(conn, {"id": user_id})
            else:
                logger.info(f"Updating user {user_id}: {[name for name, _ in fields]}")
                user = await self.update(conn, user_id, fields)

        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return user

    async def delete_user(self, user_id: UUID) -> None:
        """
        Delete a user; address and car links go with it

        Raises:
            NotFoundError: No user has this ID
        """
        async with self.transaction() as conn:
            deleted = await self.delete(conn, user_id)

        if not deleted:
            raise NotFoundError(f"User with id {user_id} not found")
        logger.info(f"Deleted user {user_id}")


def get_users_service(db_pool: asyncpg.Pool = Depends(get_db_pool)) -> UsersService:
    """Build the users service on the application pool"""
    return UsersService(db_pool)
