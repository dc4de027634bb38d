"""
Project access guards shared by the project, task, activity and report
services.

Visibility follows the role:
- ADMIN: every project
- MAINTAINER: projects it owns
- MEMBER: projects it was added to
"""

from ..database.models import ProjectDB, RoleEnum, UserDB
from ..database.repositories import get_project_repository
from ..utils.errors import AppError


async def can_view_project(project: ProjectDB, user: UserDB) -> bool:
    if user.role == RoleEnum.ADMIN:
        return True
    if user.role == RoleEnum.MAINTAINER:
        return project.owner_id == user.id
    return await get_project_repository().is_member(project.id, user.id)


async def assert_project_access(
    project_id: str,
    user: UserDB,
    message: str = "You do not have permission to access this project.",
) -> ProjectDB:
    """Active project visible to `user`; 404 when missing, 403 when hidden."""
    project = await get_project_repository().get_by_id(project_id)
    if project is None:
        raise AppError.not_found("Project not found.")

    if not await can_view_project(project, user):
        raise AppError.forbidden(message)

    return project


def assert_owner_or_admin(
    project: ProjectDB,
    user: UserDB,
    message: str = "You do not have permission to perform this action.",
):
    if project.owner_id != user.id and user.role != RoleEnum.ADMIN:
        raise AppError.forbidden(message)
