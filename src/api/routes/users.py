"""
User management API routes
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE
from models.user import UserCreateRequest, UserResponse, UserUpdateRequest
from services.users_service import UsersService, get_users_service

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreateRequest,
    users_service: UsersService = Depends(get_users_service)
):
    """Create a new user"""
    user = await users_service.create_user(
        username=request.username,
        email=request.email,
        first_name=request.first_name,
        age=request.age
    )
    return UserResponse.model_validate(user)


@router.get("", response_model=List[UserResponse])
async def get_users(
    page: int = Query(0, ge=0, le=MAX_PAGE, description="Zero-based page number"),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Users per page"),
    users_service: UsersService = Depends(get_users_service)
):
    """List users, newest first"""
    users = await users_service.get_users_page(page, size)
    return [UserResponse.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    users_service: UsersService = Depends(get_users_service)
):
    """Get user details"""
    user = await users_service.get_user_by_id(user_id)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    request: UserUpdateRequest,
    users_service: UsersService = Depends(get_users_service)
):
    """Update the fields present in the body; other fields keep their values"""
    user = await users_service.update_user_partial(user_id, request.to_update_fields())
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    users_service: UsersService = Depends(get_users_service)
):
    """Delete a user together with its address and car links"""
    await users_service.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
