"""
Database module for the project management API.

Handles:
- Users, projects and project membership
- Per-project task statuses and tasks
- The append-only activity log
- Dashboard and report aggregations

PostgreSQL through asyncpg in production, SQLite through aiosqlite for
local development and tests.
"""

from .connection import (
    get_database,
    Database,
    init_database,
    close_database,
)
from .models import (
    Base,
    UserDB,
    ProjectDB,
    ProjectMemberDB,
    TaskStatusDB,
    TaskDB,
    ActivityDB,
    RoleEnum,
    ProjectStatusEnum,
    ActivityActionEnum,
)

__all__ = [
    "get_database",
    "Database",
    "init_database",
    "close_database",
    "Base",
    "UserDB",
    "ProjectDB",
    "ProjectMemberDB",
    "TaskStatusDB",
    "TaskDB",
    "ActivityDB",
    "RoleEnum",
    "ProjectStatusEnum",
    "ActivityActionEnum",
]
