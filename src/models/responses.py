"""
Response models.

Built from ORM rows (from_attributes) and serialized in camelCase.
Timestamps are stored as naive UTC and rendered as ISO 8601 with a Z
suffix. Password hashes have no field here, so they never leave the API.
"""

import math
from datetime import datetime
from typing import Optional, List, Dict, Any, Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from ..database.models import RoleEnum, ProjectStatusEnum, ActivityActionEnum
from ..utils.datetime_utils import to_aware_utc


def _iso_utc(dt: datetime) -> str:
    return to_aware_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


UTCDateTime = Annotated[datetime, PlainSerializer(_iso_utc, return_type=str)]


class ResponseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================
# USERS
# ============================================

class UserResponse(ResponseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: RoleEnum
    created_at: UTCDateTime
    updated_at: UTCDateTime


class UserSummary(ResponseModel):
    """Public subset embedded in projects and activity rows."""
    id: str
    first_name: str
    last_name: str
    email: str


class MemberUser(UserSummary):
    role: RoleEnum


class AuthResponse(ResponseModel):
    user: UserResponse
    token: str


# ============================================
# PROJECTS
# ============================================

class ProjectResponse(ResponseModel):
    id: str
    name: str
    description: Optional[str] = None
    status: ProjectStatusEnum
    owner_id: str
    owner: UserSummary
    created_at: UTCDateTime
    updated_at: UTCDateTime


class ProjectMemberResponse(ResponseModel):
    id: str
    project_id: str
    user_id: str
    created_at: UTCDateTime
    user: MemberUser


# ============================================
# TASKS
# ============================================

class TaskStatusResponse(ResponseModel):
    id: str
    project_id: str
    name: str
    color: Optional[str] = None
    order: int
    created_at: UTCDateTime
    updated_at: UTCDateTime


class TaskResponse(ResponseModel):
    id: str
    project_id: str
    status_id: str
    assignee_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    order: int
    created_at: UTCDateTime
    updated_at: UTCDateTime
    status: TaskStatusResponse
    assignee: Optional[UserResponse] = None


# ============================================
# ACTIVITY
# ============================================

class ActivityResponse(ResponseModel):
    id: str
    project_id: str
    user_id: str
    action: ActivityActionEnum
    # Stored on ActivityDB.details; "metadata" on the wire
    details: Optional[Dict[str, Any]] = Field(
        None, validation_alias="details", serialization_alias="metadata"
    )
    created_at: UTCDateTime
    user: UserSummary


# ============================================
# ENVELOPES
# ============================================

class PaginationMeta(ResponseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


def paginated(items: List[Any], total: int, page: int, limit: int, model: type) -> Dict[str, Any]:
    """{"data": [...], "meta": {...}} with each row converted through `model`."""
    return {
        "data": [model.model_validate(item) for item in items],
        "meta": PaginationMeta.build(total, page, limit),
    }


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Success envelope; `message` is omitted when not given."""
    body: Dict[str, Any] = {"status": "success"}
    if message:
        body["message"] = message
    body["data"] = data
    return body
