"""
Auth routes: /api/auth/register and /api/auth/login.
"""

import logging

from fastapi import APIRouter, status

from ..models.api_validation import RegisterRequest, LoginRequest
from ..models.responses import AuthResponse, UserResponse, success
from ..services import get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest):
    """Create a MEMBER account and return it with an access token."""
    user, token = await get_auth_service().register(data)
    payload = AuthResponse(user=UserResponse.model_validate(user), token=token)
    return success(payload, "User registered successfully.")


@router.post("/login")
async def login(data: LoginRequest):
    user, token = await get_auth_service().login(data)
    payload = AuthResponse(user=UserResponse.model_validate(user), token=token)
    return success(payload, "Login successful.")
