"""
Pydantic models for users with their address and cars
"""

from typing import List, Optional

from pydantic import Field, field_validator

from models.base import CamelModel
from models.car import CarCreateRequest, CarResponse
from models.user import UserCreateRequest, UserResponse


class AddressCreateRequest(CamelModel):
    city: Optional[str] = None
    build: Optional[str] = None
    apartment: Optional[str] = None


class AddressResponse(CamelModel):
    """All fields are null when the user has no address"""
    city: Optional[str] = None
    build: Optional[str] = None
    apartment: Optional[str] = None


class UserWithRelationsCreateRequest(CamelModel):
    user: UserCreateRequest
    address: Optional[AddressCreateRequest] = None
    cars: List[CarCreateRequest] = Field(default_factory=list)

    @field_validator("cars", mode="before")
    @classmethod
    def null_cars_to_empty(cls, value):
        return [] if value is None else value


class UserWithRelationsResponse(CamelModel):
    user: UserResponse
    address: AddressResponse
    cars: List[CarResponse] = Field(default_factory=list)
