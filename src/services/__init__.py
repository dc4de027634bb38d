"""
Services for business logic.
"""

from .access import can_view_project, assert_project_access, assert_owner_or_admin
from .activity import ActivityService, get_activity_service
from .auth import AuthService, get_auth_service
from .projects import ProjectService, get_project_service
from .reports import ReportService, get_report_service
from .tasks import TaskService, get_task_service
from .users import UserService, get_user_service

__all__ = [
    "can_view_project",
    "assert_project_access",
    "assert_owner_or_admin",
    "ActivityService",
    "get_activity_service",
    "AuthService",
    "get_auth_service",
    "ProjectService",
    "get_project_service",
    "ReportService",
    "get_report_service",
    "TaskService",
    "get_task_service",
    "UserService",
    "get_user_service",
]
