"""
User service: own profile, and the admin user list / role changes / removal.
"""

import logging
from typing import Optional, List, Tuple

from ..database.models import UserDB, RoleEnum
from ..database.repositories import get_user_repository, UserRepository
from ..models.api_validation import UpdateProfileRequest
from ..utils.errors import AppError

logger = logging.getLogger(__name__)


class UserService:
    """Service for user accounts."""

    def __init__(self):
        self.repo: UserRepository = get_user_repository()

    async def get_profile(self, user_id: str) -> UserDB:
        user = await self.repo.get_by_id(user_id)
        if user is None:
            raise AppError.not_found("User not found.")
        return user

    async def update_profile(self, user_id: str, data: UpdateProfileRequest) -> UserDB:
        """
        Update names/email. Email must be unique among active users other
        than the requester, who may re-submit their current address.
        """
        await self.get_profile(user_id)
        changes = data.changes()

        if changes.get("email"):
            if await self.repo.get_by_email(changes["email"], exclude_id=user_id):
                raise AppError.conflict("This email address is already in use.")

        return await self.repo.update(user_id, changes)

    async def get_all_users(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[UserDB], int]:
        return await self.repo.get_all(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    async def update_role(self, requester: UserDB, target_id: str, role: RoleEnum) -> UserDB:
        if requester.id == target_id:
            raise AppError.bad_request("You cannot change your own role.")

        user = await self.repo.get_by_id(target_id)
        if user is None:
            raise AppError.not_found("User not found.")

        if user.role == role:
            return user

        logger.info(f"Role of user {target_id} changed {user.role.value} -> {role.value} by {requester.id}")
        return await self.repo.update(target_id, {"role": role})

    async def delete_user(self, requester: UserDB, target_id: str):
        """Soft delete; admins cannot remove their own account."""
        if requester.id == target_id:
            raise AppError.bad_request("You cannot delete your own account.")

        if not await self.repo.soft_delete(target_id):
            raise AppError.not_found("User not found.")


# Singleton
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Get the user service singleton."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
