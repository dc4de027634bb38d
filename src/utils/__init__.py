"""Utility modules for the Project Management API."""

from .datetime_utils import (
    utc_now,
    to_naive_utc,
    to_aware_utc,
    start_of_day,
    start_of_week,
    truncate_date,
)

from .errors import AppError

from .security import (
    parse_duration,
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
)

__all__ = [
    # Datetime utilities
    "utc_now",
    "to_naive_utc",
    "to_aware_utc",
    "start_of_day",
    "start_of_week",
    "truncate_date",
    # Errors
    "AppError",
    # Security
    "parse_duration",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_access_token",
]
