"""
Task routes: Kanban columns under /api/projects/{id}/statuses and cards
under /api/projects/{id}/tasks.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..database.models import UserDB
from ..middleware.auth import get_current_user
from ..models.api_validation import (
    CreateTaskStatusRequest,
    UpdateTaskStatusRequest,
    ReorderStatusesRequest,
    CreateTaskRequest,
    UpdateTaskRequest,
    MoveTaskRequest,
)
from ..models.responses import TaskStatusResponse, TaskResponse, paginated, success
from ..services import get_task_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}", tags=["Tasks"])

TaskSortField = Literal["createdAt", "updatedAt", "order", "title"]


# ==================== STATUS COLUMNS ====================

@router.get("/statuses")
async def list_statuses(project_id: str, user: UserDB = Depends(get_current_user)):
    statuses = await get_task_service().get_statuses(project_id, user)
    return success([TaskStatusResponse.model_validate(s) for s in statuses])


@router.post("/statuses", status_code=status.HTTP_201_CREATED)
async def create_status(
    project_id: str,
    data: CreateTaskStatusRequest,
    user: UserDB = Depends(get_current_user),
):
    task_status = await get_task_service().create_status(project_id, user, data)
    return success(
        TaskStatusResponse.model_validate(task_status), "Task status created successfully."
    )


@router.put("/statuses/order")
async def reorder_statuses(
    project_id: str,
    data: ReorderStatusesRequest,
    user: UserDB = Depends(get_current_user),
):
    """Replace the column order with `statusIds`, which must list every column once."""
    statuses = await get_task_service().reorder_statuses(project_id, user, data.status_ids)
    return success(
        [TaskStatusResponse.model_validate(s) for s in statuses],
        "Task statuses reordered successfully.",
    )


@router.patch("/statuses/{status_id}")
async def update_status(
    project_id: str,
    status_id: str,
    data: UpdateTaskStatusRequest,
    user: UserDB = Depends(get_current_user),
):
    task_status = await get_task_service().update_status(project_id, status_id, user, data)
    return success(
        TaskStatusResponse.model_validate(task_status), "Task status updated successfully."
    )


@router.delete("/statuses/{status_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_status(project_id: str, status_id: str, user: UserDB = Depends(get_current_user)):
    await get_task_service().delete_status(project_id, status_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== TASKS ====================

@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: str,
    data: CreateTaskRequest,
    user: UserDB = Depends(get_current_user),
):
    task = await get_task_service().create_task(project_id, user, data)
    return success(TaskResponse.model_validate(task), "Task created successfully.")


@router.get("/tasks")
async def list_tasks(
    project_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    status_id: Optional[str] = Query(None, alias="statusId"),
    assignee_id: Optional[str] = Query(None, alias="assigneeId"),
    sort_by: TaskSortField = Query("order", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    user: UserDB = Depends(get_current_user),
):
    tasks, total = await get_task_service().get_tasks(
        project_id,
        user,
        page=page,
        limit=limit,
        search=search,
        status_id=status_id,
        assignee_id=assignee_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success(paginated(tasks, total, page, limit, TaskResponse))


@router.get("/tasks/{task_id}")
async def get_task(project_id: str, task_id: str, user: UserDB = Depends(get_current_user)):
    task = await get_task_service().get_task(project_id, task_id, user)
    return success(TaskResponse.model_validate(task))


@router.patch("/tasks/{task_id}")
async def update_task(
    project_id: str,
    task_id: str,
    data: UpdateTaskRequest,
    user: UserDB = Depends(get_current_user),
):
    task = await get_task_service().update_task(project_id, task_id, user, data)
    return success(TaskResponse.model_validate(task), "Task updated successfully.")


@router.post("/tasks/{task_id}/move")
async def move_task(
    project_id: str,
    task_id: str,
    data: MoveTaskRequest,
    user: UserDB = Depends(get_current_user),
):
    task = await get_task_service().move_task(project_id, task_id, user, data)
    return success(TaskResponse.model_validate(task), "Task moved successfully.")


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(project_id: str, task_id: str, user: UserDB = Depends(get_current_user)):
    await get_task_service().delete_task(project_id, task_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
