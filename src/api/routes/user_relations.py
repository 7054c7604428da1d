"""
API routes for users with their address and cars
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status

from config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE
from models.relations import UserWithRelationsCreateRequest, UserWithRelationsResponse
from services.user_relations_service import UserRelationsService, get_user_relations_service

router = APIRouter()


@router.post("", response_model=UserWithRelationsResponse, status_code=status.HTTP_201_CREATED)
async def create_user_with_relations(
    request: UserWithRelationsCreateRequest,
    relations_service: UserRelationsService = Depends(get_user_relations_service)
):
    """Create a user with its address and cars in one transaction"""
    address = request.address.model_dump() if request.address is not None else None
    cars = [{"model": car.model, "release_year": car.car_year} for car in request.cars]

    result = await relations_service.create_user_with_relations(
        user=request.user.model_dump(),
        address=address,
        cars=cars
    )
    return UserWithRelationsResponse.model_validate(result)


@router.get("/full", response_model=List[UserWithRelationsResponse])
async def get_users_with_full_relations(
    page: int = Query(0, ge=0, le=MAX_PAGE, description="Zero-based page number"),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Users per page"),
    relations_service: UserRelationsService = Depends(get_user_relations_service)
):
    """List users with address and cars, newest first"""
    results = await relations_service.get_users_with_relations(page, size)
    return [UserWithRelationsResponse.model_validate(result) for result in results]


@router.get("/search", response_model=List[UserWithRelationsResponse])
async def search_users_with_relations(
    username: str = Query(..., description="Case-insensitive substring of the username"),
    page: int = Query(0, ge=0, le=MAX_PAGE, description="Zero-based page number"),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Users per page"),
    relations_service: UserRelationsService = Depends(get_user_relations_service)
):
    """Search users by username and return them with address and cars"""
    results = await relations_service.search_users_with_relations(username, page, size)
    return [UserWithRelationsResponse.model_validate(result) for result in results]


@router.get("/{username}", response_model=UserWithRelationsResponse)
async def get_user_with_relations(
    username: str,
    relations_service: UserRelationsService = Depends(get_user_relations_service)
):
    """Get one user with address and cars"""
    result = await relations_service.get_user_with_relations(username)
    return UserWithRelationsResponse.model_validate(result)
