"""
Task service: Kanban columns (task statuses) and tasks.

Every operation first checks that the project exists (404) and is visible
to the requester (403). Column management and task deletion are limited
to the project owner and ADMIN; any accessor may create, edit and move
tasks.
"""

import logging
from typing import Optional, List, Dict, Any, Tuple

from ..database.models import TaskDB, TaskStatusDB, ProjectDB, UserDB, ActivityActionEnum
from ..database.repositories import (
    get_task_repository,
    get_user_repository,
    TaskRepository,
    UserRepository,
)
from ..models.api_validation import (
    CreateTaskStatusRequest,
    UpdateTaskStatusRequest,
    CreateTaskRequest,
    UpdateTaskRequest,
    MoveTaskRequest,
)
from ..utils.errors import AppError
from .access import assert_project_access, assert_owner_or_admin
from .activity import get_activity_service, ActivityService

logger = logging.getLogger(__name__)

STATUS_IN_USE = (
    "Cannot delete a status that is in use by one or more tasks. Reassign those tasks first."
)


class TaskService:
    """Service for task statuses and tasks."""

    def __init__(self):
        self.repo: TaskRepository = get_task_repository()
        self.users: UserRepository = get_user_repository()
        self.activity: ActivityService = get_activity_service()

    # ==================== STATUS COLUMNS ====================

    async def _get_project_status(self, project_id: str, status_id: str) -> TaskStatusDB:
        status = await self.repo.get_status_by_id(status_id)
        if status is None:
            raise AppError.not_found("Task status not found.")
        if status.project_id != project_id:
            raise AppError.forbidden("Task status does not belong to this project.")
        return status

    async def _get_owned_project(self, project_id: str, user: UserDB) -> ProjectDB:
        project = await assert_project_access(project_id, user)
        assert_owner_or_admin(project, user)
        return project

    async def get_statuses(self, project_id: str, user: UserDB) -> List[TaskStatusDB]:
        await assert_project_access(project_id, user)
        return await self.repo.get_statuses(project_id)

    async def create_status(
        self, project_id: str, user: UserDB, data: CreateTaskStatusRequest
    ) -> TaskStatusDB:
        await self._get_owned_project(project_id, user)

        status = await self.repo.create_status(
            project_id, name=data.name, color=data.color, order=data.order
        )
        await self.activity.log(
            project_id, user.id, ActivityActionEnum.STATUS_CREATED,
            {"statusId": status.id, "name": status.name},
        )
        return status

    async def update_status(
        self, project_id: str, status_id: str, user: UserDB, data: UpdateTaskStatusRequest
    ) -> TaskStatusDB:
        await self._get_owned_project(project_id, user)
        await self._get_project_status(project_id, status_id)

        changes = data.changes()
        status = await self.repo.update_status(status_id, dict(changes))
        await self.activity.log(
            project_id, user.id, ActivityActionEnum.STATUS_UPDATED,
            {"statusId": status.id, "name": status.name, "changes": sorted(changes)},
        )
        return status

    async def reorder_statuses(
        self, project_id: str, user: UserDB, status_ids: List[str]
    ) -> List[TaskStatusDB]:
        """Columns in exactly the given order; ids must be a permutation of the project's."""
        await self._get_owned_project(project_id, user)

        statuses = await self.repo.reorder_statuses(project_id, status_ids)
        await self.activity.log(
            project_id, user.id, ActivityActionEnum.STATUS_UPDATED,
            {"statusIds": status_ids, "changes": ["order"]},
        )
        return statuses

    async def delete_status(self, project_id: str, status_id: str, user: UserDB):
        await self._get_owned_project(project_id, user)
        status = await self._get_project_status(project_id, status_id)

        if await self.repo.has_tasks_with_status(status_id):
            raise AppError.conflict(STATUS_IN_USE)

        await self.repo.delete_status(status_id)
        await self.activity.log(
            project_id, user.id, ActivityActionEnum.STATUS_DELETED,
            {"statusId": status_id, "name": status.name},
        )

    # ==================== TASKS ====================

    async def _check_target_status(self, project_id: str, status_id: str) -> TaskStatusDB:
        status = await self.repo.get_status_by_id(status_id)
        if status is None:
            raise AppError.not_found("Task status not found.")
        if status.project_id != project_id:
            raise AppError.bad_request("Task status does not belong to this project.")
        return status

    async def _check_assignee(self, assignee_id: str):
        if await self.users.get_by_id(assignee_id) is None:
            raise AppError.not_found("Assignee not found.")

    async def _get_project_task(self, project_id: str, task_id: str) -> TaskDB:
        task = await self.repo.get_by_id(task_id)
        if task is None:
            raise AppError.not_found("Task not found.")
        if task.project_id != project_id:
            raise AppError.forbidden("Task does not belong to this project.")
        return task

    async def create_task(self, project_id: str, user: UserDB, data: CreateTaskRequest) -> TaskDB:
        await assert_project_access(project_id, user)
        await self._check_target_status(project_id, data.status_id)
        if data.assignee_id:
            await self._check_assignee(data.assignee_id)

        task = await self.repo.create(
            project_id,
            status_id=data.status_id,
            title=data.title,
            description=data.description,
            assignee_id=data.assignee_id,
            order=data.order,
        )

        await self.activity.log(
            project_id, user.id, ActivityActionEnum.TASK_CREATED,
            {"taskId": task.id, "title": task.title, "statusId": task.status_id},
        )
        if task.assignee_id:
            await self.activity.log(
                project_id, user.id, ActivityActionEnum.TASK_ASSIGNED,
                {"taskId": task.id, "assigneeId": task.assignee_id},
            )
        return task

    async def get_tasks(
        self,
        project_id: str,
        user: UserDB,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        sort_by: str = "order",
        sort_order: str = "asc",
    ) -> Tuple[List[TaskDB], int]:
        await assert_project_access(project_id, user)
        return await self.repo.get_all(
            project_id,
            page=page,
            limit=limit,
            search=search,
            status_id=status_id,
            assignee_id=assignee_id,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    async def get_task(self, project_id: str, task_id: str, user: UserDB) -> TaskDB:
        await assert_project_access(project_id, user)
        return await self._get_project_task(project_id, task_id)

    async def update_task(
        self, project_id: str, task_id: str, user: UserDB, data: UpdateTaskRequest
    ) -> TaskDB:
        await assert_project_access(project_id, user)
        before = await self._get_project_task(project_id, task_id)

        changes = data.changes()
        if changes.get("status_id"):
            await self._check_target_status(project_id, changes["status_id"])
        if changes.get("assignee_id"):
            await self._check_assignee(changes["assignee_id"])

        task = await self.repo.update(task_id, dict(changes))
        await self._log_task_changes(project_id, user, before, task, changes)
        return task

    async def move_task(
        self, project_id: str, task_id: str, user: UserDB, data: MoveTaskRequest
    ) -> TaskDB:
        """Drag-and-drop: put the card at `order` in column `statusId`."""
        await assert_project_access(project_id, user)
        before = await self._get_project_task(project_id, task_id)
        await self._check_target_status(project_id, data.status_id)

        task = await self.repo.move(task_id, data.status_id, data.order)
        await self._log_task_changes(
            project_id, user, before, task, {"status_id": data.status_id, "order": data.order}
        )
        return task

    async def delete_task(self, project_id: str, task_id: str, user: UserDB):
        """Soft delete, owner or ADMIN only."""
        project = await assert_project_access(project_id, user)
        task = await self._get_project_task(project_id, task_id)
        assert_owner_or_admin(project, user)

        await self.repo.soft_delete(task_id)
        await self.activity.log(
            project_id, user.id, ActivityActionEnum.TASK_DELETED,
            {"taskId": task_id, "title": task.title},
        )

    async def _log_task_changes(
        self,
        project_id: str,
        user: UserDB,
        before: TaskDB,
        after: TaskDB,
        changes: Dict[str, Any],
    ):
        """One event per kind of change: column, assignee, anything else."""
        base = {"taskId": after.id, "title": after.title}

        if after.status_id != before.status_id:
            await self.activity.log(
                project_id, user.id, ActivityActionEnum.TASK_STATUS_CHANGED,
                {
                    **base,
                    "fromStatusId": before.status_id,
                    "toStatusId": after.status_id,
                    "fromStatus": before.status.name,
                    "toStatus": after.status.name,
                },
            )

        if "assignee_id" in changes and after.assignee_id != before.assignee_id:
            if after.assignee_id:
                await self.activity.log(
                    project_id, user.id, ActivityActionEnum.TASK_ASSIGNED,
                    {**base, "assigneeId": after.assignee_id},
                )
            else:
                await self.activity.log(
                    project_id, user.id, ActivityActionEnum.TASK_UNASSIGNED,
                    {**base, "previousAssigneeId": before.assignee_id},
                )

        other = sorted(
            field for field in changes if field not in ("status_id", "assignee_id", "order")
        )
        # A reorder inside the same column is an update; across columns it is a status change
        if after.status_id == before.status_id and after.order != before.order:
            other.append("order")
        if other:
            await self.activity.log(
                project_id, user.id, ActivityActionEnum.TASK_UPDATED, {**base, "changes": other}
            )


# Singleton
_task_service: Optional[TaskService] = None


def get_task_service() -> TaskService:
    """Get the task service singleton."""
    global _task_service
    if _task_service is None:
        _task_service = TaskService()
    return _task_service
