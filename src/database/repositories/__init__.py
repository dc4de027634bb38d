"""
Repository classes for database operations.

Each repository handles CRUD and aggregate queries for its entity type
and is reached through a module-level singleton getter.
"""

from .users import UserRepository, get_user_repository
from .projects import ProjectRepository, get_project_repository, project_scope_filter
from .tasks import TaskRepository, get_task_repository
from .activity import ActivityRepository, get_activity_repository
from .reports import ReportRepository, get_report_repository

__all__ = [
    "UserRepository",
    "get_user_repository",
    "ProjectRepository",
    "get_project_repository",
    "project_scope_filter",
    "TaskRepository",
    "get_task_repository",
    "ActivityRepository",
    "get_activity_repository",
    "ReportRepository",
    "get_report_repository",
]
