"""
Car-related Pydantic models
"""

from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, Field

from models.base import CamelModel


class CarCreateRequest(CamelModel):
    model: str = Field(..., min_length=1)
    car_year: Optional[int] = Field(None, ge=1886, le=9999)


class CarResponse(CamelModel):
    id: Optional[UUID] = None
    model: str
    # stored as release_year
    car_year: Optional[int] = Field(
        None,
        alias="carYear",
        validation_alias=AliasChoices("release_year", "carYear", "car_year")
    )
