"""
Project routes: CRUD and membership.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..database.models import UserDB, RoleEnum, ProjectStatusEnum
from ..middleware.auth import get_current_user, require_role
from ..models.api_validation import CreateProjectRequest, UpdateProjectRequest, AddMemberRequest
from ..models.responses import ProjectResponse, ProjectMemberResponse, paginated, success
from ..services import get_project_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["Projects"])

ProjectSortField = Literal["createdAt", "updatedAt", "name"]


# ==================== PROJECTS ====================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    data: CreateProjectRequest,
    user: UserDB = Depends(require_role(RoleEnum.MAINTAINER, RoleEnum.ADMIN)),
):
    project = await get_project_service().create_project(user, data)
    return success(ProjectResponse.model_validate(project), "Project created successfully.")


@router.get("")
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    project_status: Optional[ProjectStatusEnum] = Query(None, alias="status"),
    sort_by: ProjectSortField = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    user: UserDB = Depends(get_current_user),
):
    """Projects visible to the requester, paginated."""
    projects, total = await get_project_service().get_all_projects(
        user,
        page=page,
        limit=limit,
        search=search,
        status=project_status,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success(paginated(projects, total, page, limit, ProjectResponse))


@router.get("/{project_id}")
async def get_project(project_id: str, user: UserDB = Depends(get_current_user)):
    project = await get_project_service().get_project(project_id, user)
    return success(ProjectResponse.model_validate(project))


@router.patch("/{project_id}")
async def update_project(
    project_id: str,
    data: UpdateProjectRequest,
    user: UserDB = Depends(get_current_user),
):
    project = await get_project_service().update_project(project_id, user, data)
    return success(ProjectResponse.model_validate(project), "Project updated successfully.")


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, user: UserDB = Depends(get_current_user)):
    await get_project_service().delete_project(project_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== MEMBERS ====================

@router.get("/{project_id}/members")
async def list_members(project_id: str, user: UserDB = Depends(get_current_user)):
    members = await get_project_service().get_members(project_id, user)
    return success([ProjectMemberResponse.model_validate(member) for member in members])


@router.post("/{project_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    project_id: str,
    data: AddMemberRequest,
    user: UserDB = Depends(get_current_user),
):
    member = await get_project_service().add_member(project_id, user, data.user_id)
    return success(ProjectMemberResponse.model_validate(member), "Member added successfully.")


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(project_id: str, user_id: str, user: UserDB = Depends(get_current_user)):
    await get_project_service().remove_member(project_id, user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
