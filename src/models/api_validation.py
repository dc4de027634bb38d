"""
Pydantic models for API request bodies.

Bodies arrive in camelCase (firstName, statusId, ...) and are exposed to
the services in snake_case through the alias generator. Anything that
fails here is answered with 400 by the validation handler.
"""

import uuid
from typing import Optional, List, Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    EmailStr,
    AfterValidator,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..database.models import RoleEnum, ProjectStatusEnum


def _validate_uuid(value: str) -> str:
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        raise ValueError("must be a valid UUID")


UUIDStr = Annotated[str, AfterValidator(_validate_uuid)]

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CamelModel(BaseModel):
    """Base model accepting camelCase keys (and snake_case for internal callers)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartialUpdateModel(CamelModel):
    """An update body must set at least one field."""

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided.")
        return self

    def changes(self) -> dict:
        """Only the fields the client actually sent (explicit nulls included)."""
        return self.model_dump(include=self.model_fields_set)


# ============================================
# AUTH
# ============================================

class RegisterRequest(CamelModel):
    """Self-service signup. New accounts always get the MEMBER role."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v):
        stripped = v.strip()
        if not stripped:
            raise ValueError("cannot be empty")
        return stripped


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


# ============================================
# USERS
# ============================================

class UpdateProfileRequest(PartialUpdateModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower() if v else v

    @model_validator(mode="after")
    def check_no_nulls(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class UpdateRoleRequest(CamelModel):
    role: RoleEnum


# ============================================
# PROJECTS
# ============================================

class CreateProjectRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[ProjectStatusEnum] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        stripped = v.strip()
        if not stripped:
            raise ValueError("name cannot be empty after stripping whitespace")
        return stripped


class UpdateProjectRequest(PartialUpdateModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[ProjectStatusEnum] = None

    @model_validator(mode="after")
    def check_required_not_null(self):
        for name in ("name", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class AddMemberRequest(CamelModel):
    user_id: UUIDStr


# ============================================
# TASK STATUSES
# ============================================

class CreateTaskStatusRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    order: Optional[int] = Field(None, ge=0)


class UpdateTaskStatusRequest(PartialUpdateModel):
    """`color` may be set to null to clear it."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    order: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_required_not_null(self):
        for name in ("name", "order"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class ReorderStatusesRequest(CamelModel):
    status_ids: List[UUIDStr] = Field(..., min_length=1)


# ============================================
# TASKS
# ============================================

class CreateTaskRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status_id: UUIDStr
    assignee_id: Optional[UUIDStr] = None
    order: Optional[int] = Field(None, ge=0)


class UpdateTaskRequest(PartialUpdateModel):
    """`assigneeId` may be set to null to unassign."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status_id: Optional[UUIDStr] = None
    assignee_id: Optional[UUIDStr] = None
    order: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_required_not_null(self):
        for name in ("title", "status_id", "order"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class MoveTaskRequest(CamelModel):
    """Kanban drop target: column and position inside it."""
    status_id: UUIDStr
    order: int = Field(..., ge=0)
