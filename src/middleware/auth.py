"""
Authentication dependencies.

get_current_user resolves `Authorization: Bearer <token>` to the stored
user; require_role(...) narrows a route to some roles. Both raise AppError
so failures share the standard error body.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..database.models import UserDB, RoleEnum
from ..database.repositories import get_user_repository
from ..utils.errors import AppError
from ..utils.security import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="JWT from /api/auth/login")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UserDB:
    """
    The authenticated, non-deleted user.

    The role is read from the database rather than the token, so a role
    change or deletion takes effect on the next request.
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AppError.unauthorized("Missing or invalid authorization token.")

    payload = decode_access_token(credentials.credentials)

    user = await get_user_repository().get_by_id(payload["userId"])
    if user is None:
        logger.info(f"Token for unknown or deleted user {payload['userId']} rejected")
        raise AppError.unauthorized("The user belonging to this token no longer exists.")

    return user


def require_role(*roles: RoleEnum):
    """Dependency factory: 403 unless the current user has one of `roles`."""

    async def check_role(user: UserDB = Depends(get_current_user)) -> UserDB:
        if user.role not in roles:
            raise AppError.forbidden("You do not have permission to perform this action.")
        return user

    return check_role
