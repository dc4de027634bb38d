"""
User routes: own profile for everybody, user administration for ADMIN.
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from ..database.models import UserDB, RoleEnum
from ..middleware.auth import get_current_user, require_role
from ..models.api_validation import UpdateProfileRequest, UpdateRoleRequest
from ..models.responses import UserResponse, paginated, success
from ..services import get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

UserSortField = Literal["createdAt", "firstName", "lastName", "email"]


@router.get("/me")
async def get_me(user: UserDB = Depends(get_current_user)):
    profile = await get_user_service().get_profile(user.id)
    return success(UserResponse.model_validate(profile))


@router.patch("/me")
async def update_me(data: UpdateProfileRequest, user: UserDB = Depends(get_current_user)):
    profile = await get_user_service().update_profile(user.id, data)
    return success(UserResponse.model_validate(profile), "Profile updated successfully.")


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: UserSortField = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    admin: UserDB = Depends(require_role(RoleEnum.ADMIN)),
):
    """All active users, paginated (ADMIN)."""
    users, total = await get_user_service().get_all_users(
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return success(paginated(users, total, page, limit, UserResponse))


@router.patch("/{user_id}/role")
async def update_user_role(
    user_id: str,
    data: UpdateRoleRequest,
    admin: UserDB = Depends(require_role(RoleEnum.ADMIN)),
):
    updated = await get_user_service().update_role(admin, user_id, data.role)
    return success(UserResponse.model_validate(updated), "User role updated successfully.")


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, admin: UserDB = Depends(require_role(RoleEnum.ADMIN))):
    await get_user_service().delete_user(admin, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
