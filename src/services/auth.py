"""
Auth service: registration and login.

Both return the user (without its password hash) and a signed access
token. Unknown email and wrong password produce the same 401 so the
endpoint does not reveal which accounts exist.
"""

import logging
from typing import Optional, Tuple

from ..database.models import UserDB, RoleEnum
from ..database.repositories import get_user_repository, UserRepository
from ..models.api_validation import RegisterRequest, LoginRequest
from ..monitoring import auth_attempts_total
from ..utils.errors import AppError
from ..utils.security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


class AuthService:
    """Service for account creation and sign-in."""

    def __init__(self):
        self.users: UserRepository = get_user_repository()

    async def register(self, data: RegisterRequest) -> Tuple[UserDB, str]:
        if await self.users.get_by_email(data.email):
            auth_attempts_total.labels(operation="register", outcome="failure").inc()
            raise AppError.conflict("A user with this email already exists.")

        user = await self.users.create(
            email=data.email,
            password_hash=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=RoleEnum.MEMBER,
        )

        auth_attempts_total.labels(operation="register", outcome="success").inc()
        logger.info(f"Registered user {user.id}")
        return user, create_access_token(user.id, user.role.value)

    async def login(self, data: LoginRequest) -> Tuple[UserDB, str]:
        user = await self.users.get_by_email(data.email)

        if user is None or not verify_password(data.password, user.password):
            auth_attempts_total.labels(operation="login", outcome="failure").inc()
            raise AppError.unauthorized(INVALID_CREDENTIALS)

        auth_attempts_total.labels(operation="login", outcome="success").inc()
        return user, create_access_token(user.id, user.role.value)


# Singleton
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
