"""
User-related Pydantic models
"""

from datetime import datetime
from typing import Any, List, Optional, Tuple
from uuid import UUID

from pydantic import Field, field_validator

from models.base import CamelModel


class UserCreateRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    first_name: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)


class UserUpdateRequest(CamelModel):
    """
    Partial update: only fields present in the request body are applied.

    A field left out is untouched; a field sent as null is set to NULL.
    username cannot be nulled.
    """
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = None
    first_name: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)

    @field_validator("username")
    @classmethod
    def username_not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("username cannot be null")
        return value

    def to_update_fields(self) -> List[Tuple[str, Any]]:
        """(column, value) pairs for the fields the client actually sent"""
        return [
            (name, getattr(self, name))
            for name in type(self).model_fields
            if name in self.model_fields_set
        ]


class UserResponse(CamelModel):
    id: UUID
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    age: Optional[int] = None
    created_at: Optional[datetime] = None
