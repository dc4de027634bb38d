"""
Project service.

Handles business logic for:
- Project CRUD with role-scoped listing
- Membership management (owner or ADMIN only)
- Activity events for every change
"""

import logging
from typing import Optional, List, Tuple

from ..database.models import (
    ProjectDB,
    ProjectMemberDB,
    UserDB,
    RoleEnum,
    ProjectStatusEnum,
    ActivityActionEnum,
)
from ..database.repositories import (
    get_project_repository,
    get_user_repository,
    ProjectRepository,
    UserRepository,
)
from ..models.api_validation import CreateProjectRequest, UpdateProjectRequest
from ..utils.errors import AppError
from .access import assert_project_access, assert_owner_or_admin
from .activity import get_activity_service, ActivityService

logger = logging.getLogger(__name__)

MODIFY_DENIED = "You do not have permission to modify this project."

# Status transitions with a dedicated activity action
STATUS_ACTIONS = {
    ProjectStatusEnum.ARCHIVED: ActivityActionEnum.PROJECT_ARCHIVED,
    ProjectStatusEnum.COMPLETED: ActivityActionEnum.PROJECT_COMPLETED,
}


class ProjectService:
    """Service for projects and their members."""

    def __init__(self):
        self.repo: ProjectRepository = get_project_repository()
        self.users: UserRepository = get_user_repository()
        self.activity: ActivityService = get_activity_service()

    async def _get_owned(self, project_id: str, user: UserDB) -> ProjectDB:
        project = await self.repo.get_by_id(project_id)
        if project is None:
            raise AppError.not_found("Project not found.")
        assert_owner_or_admin(project, user, MODIFY_DENIED)
        return project

    async def create_project(self, user: UserDB, data: CreateProjectRequest) -> ProjectDB:
        """The requester becomes the owner; default status columns are seeded."""
        project = await self.repo.create(
            owner_id=user.id,
            name=data.name,
            description=data.description,
            status=data.status,
        )
        await self.activity.log(
            project.id, user.id, ActivityActionEnum.PROJECT_CREATED, {"name": project.name}
        )
        return project

    async def get_all_projects(
        self,
        user: UserDB,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[ProjectStatusEnum] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[ProjectDB], int]:
        return await self.repo.get_all(
            user.id,
            user.role,
            page=page,
            limit=limit,
            search=search,
            status=status,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    async def get_project(self, project_id: str, user: UserDB) -> ProjectDB:
        return await assert_project_access(
            project_id, user, "You do not have permission to view this project."
        )

    async def update_project(
        self, project_id: str, user: UserDB, data: UpdateProjectRequest
    ) -> ProjectDB:
        project = await self._get_owned(project_id, user)
        changes = data.changes()
        previous_status = project.status

        updated = await self.repo.update(project_id, dict(changes))

        action = ActivityActionEnum.PROJECT_UPDATED
        metadata = {"changes": sorted(changes)}
        if "status" in changes and updated.status != previous_status:
            action = STATUS_ACTIONS.get(updated.status, ActivityActionEnum.PROJECT_UPDATED)
            metadata["fromStatus"] = previous_status.value
            metadata["toStatus"] = updated.status.value

        await self.activity.log(project_id, user.id, action, metadata)
        return updated

    async def delete_project(self, project_id: str, user: UserDB):
        project = await self._get_owned(project_id, user)
        await self.repo.soft_delete(project_id)
        await self.activity.log(
            project_id, user.id, ActivityActionEnum.PROJECT_DELETED, {"name": project.name}
        )

    # ==================== MEMBERS ====================

    async def get_members(self, project_id: str, user: UserDB) -> List[ProjectMemberDB]:
        """Visible to ADMIN, the owner and the project's members."""
        project = await self.repo.get_by_id(project_id)
        if project is None:
            raise AppError.not_found("Project not found.")

        if user.role != RoleEnum.ADMIN and project.owner_id != user.id:
            if not await self.repo.is_member(project_id, user.id):
                raise AppError.forbidden(
                    "You do not have permission to view this project's members."
                )

        return await self.repo.get_members(project_id)

    async def add_member(self, project_id: str, user: UserDB, target_user_id: str) -> ProjectMemberDB:
        """Only active users with the MEMBER role can join a project."""
        project = await self._get_owned(project_id, user)

        target = await self.users.get_by_id(target_user_id)
        if target is None:
            raise AppError.not_found("User not found.")

        if target.role != RoleEnum.MEMBER:
            raise AppError.bad_request(
                "Only users with the MEMBER role can be added as project members."
            )

        if target.id == project.owner_id:
            raise AppError.bad_request("The project owner cannot be added as a member.")

        if await self.repo.is_member(project_id, target.id):
            raise AppError.conflict("User is already a member of this project.")

        member = await self.repo.add_member(project_id, target.id)
        await self.activity.log(
            project_id, user.id, ActivityActionEnum.MEMBER_ADDED, {"memberId": target.id}
        )
        return member

    async def remove_member(self, project_id: str, user: UserDB, target_user_id: str):
        await self._get_owned(project_id, user)

        if not await self.repo.remove_member(project_id, target_user_id):
            raise AppError.not_found("User is not a member of this project.")

        await self.activity.log(
            project_id, user.id, ActivityActionEnum.MEMBER_REMOVED, {"memberId": target_user_id}
        )


# Singleton
_project_service: Optional[ProjectService] = None


def get_project_service() -> ProjectService:
    """Get the project service singleton."""
    global _project_service
    if _project_service is None:
        _project_service = ProjectService()
    return _project_service
