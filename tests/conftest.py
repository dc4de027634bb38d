"""
Pytest configuration and shared fixtures.

The environment is pinned before anything under src/ is imported so the
settings singleton sees the test configuration: rate limiting off, NullPool
and cheap bcrypt rounds.
"""

import os
import tempfile

os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-key-for-jwt-signing"
os.environ["JWT_EXPIRES_IN"] = "1h"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REDIS_URL"] = ""
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'pm_api_test.db')}",
)

import pytest

from src.database.models import UserDB, RoleEnum
from src.utils.datetime_utils import utc_now

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


@pytest.fixture
def sample_user():
    """Sample active MEMBER."""
    now = utc_now()
    return UserDB(
        id="6f1c2a52-8a4e-4b0e-9d3c-1f2a3b4c5d6e",
        email="john@example.com",
        password="$2b$04$invalidinvalidinvalidinvalidinvalidinvalidinvalidinv",
        first_name="John",
        last_name="Doe",
        role=RoleEnum.MEMBER,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def sample_admin():
    """Sample active ADMIN."""
    now = utc_now()
    return UserDB(
        id="0b6e0a4c-7f53-4c1e-8a8e-2d7c9e1f4a10",
        email="admin@example.com",
        password="$2b$04$invalidinvalidinvalidinvalidinvalidinvalidinvalidinv",
        first_name="Ada",
        last_name="Admin",
        role=RoleEnum.ADMIN,
        created_at=now,
        updated_at=now,
    )
