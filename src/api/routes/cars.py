"""
Car catalogue API routes
"""

from typing import List

from fastapi import APIRouter, Depends, status

from models.car import CarCreateRequest, CarResponse
from services.cars_service import CarsService, get_cars_service

router = APIRouter()


@router.post("", response_model=CarResponse, status_code=status.HTTP_201_CREATED)
async def create_car(
    request: CarCreateRequest,
    cars_service: CarsService = Depends(get_cars_service)
):
    """Create a car that is not linked to any user"""
    car = await cars_service.create_car(model=request.model, release_year=request.car_year)
    return CarResponse.model_validate(car)


@router.get("", response_model=List[CarResponse])
async def get_cars(cars_service: CarsService = Depends(get_cars_service)):
    """List all cars, newest release year first"""
    return [CarResponse.model_validate(car) for car in await cars_service.get_all_cars()]
