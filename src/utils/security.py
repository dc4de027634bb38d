"""
Password hashing and access tokens.

Passwords are hashed with bcrypt (cost from BCRYPT_ROUNDS). Access tokens
are HS256 JWTs signed with JWT_SECRET carrying {userId, role, iat, exp}.
"""

import logging
import re
from datetime import timedelta
from typing import Dict, Any, Optional

import bcrypt
import jwt

from config import settings
from .datetime_utils import utc_now, to_aware_utc
from .errors import AppError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}


def parse_duration(value: str) -> int:
    """
    Parse a token lifetime like "1d", "12h", "30m" or "3600" into seconds.

    Raises:
        ValueError: for anything else, or a zero duration
    """
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")

    seconds = int(match.group(1)) * _DURATION_UNITS[match.group(2).lower()]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds


# ==================== PASSWORDS ====================

def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check; a malformed hash counts as a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


# ==================== TOKENS ====================

def _secret() -> str:
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured")
        raise AppError.internal("Authentication is not configured on this server.")
    return settings.jwt_secret


def create_access_token(user_id: str, role: str, expires_in: Optional[str] = None) -> str:
    """Sign a token for `user_id` valid for JWT_EXPIRES_IN (or `expires_in`)."""
    issued_at = to_aware_utc(utc_now())
    lifetime = parse_duration(expires_in or settings.jwt_expires_in)

    payload = {
        "userId": user_id,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=lifetime),
    }
    return jwt.encode(payload, _secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry.

    Raises:
        AppError: 401 for any invalid, expired or incomplete token
    """
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise AppError.unauthorized("Invalid or expired token.")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        raise AppError.unauthorized("Invalid or expired token.")

    if not payload.get("userId"):
        raise AppError.unauthorized("Invalid or expired token.")
    return payload
