from .api_validation import (
    RegisterRequest,
    LoginRequest,
    UpdateProfileRequest,
    UpdateRoleRequest,
    CreateProjectRequest,
    UpdateProjectRequest,
    AddMemberRequest,
    CreateTaskStatusRequest,
    UpdateTaskStatusRequest,
    ReorderStatusesRequest,
    CreateTaskRequest,
    UpdateTaskRequest,
    MoveTaskRequest,
)
from .responses import (
    UserResponse,
    UserSummary,
    AuthResponse,
    ProjectResponse,
    ProjectMemberResponse,
    TaskStatusResponse,
    TaskResponse,
    ActivityResponse,
    PaginationMeta,
    paginated,
    success,
)

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "UpdateProfileRequest",
    "UpdateRoleRequest",
    "CreateProjectRequest",
    "UpdateProjectRequest",
    "AddMemberRequest",
    "CreateTaskStatusRequest",
    "UpdateTaskStatusRequest",
    "ReorderStatusesRequest",
    "CreateTaskRequest",
    "UpdateTaskRequest",
    "MoveTaskRequest",
    "UserResponse",
    "UserSummary",
    "AuthResponse",
    "ProjectResponse",
    "ProjectMemberResponse",
    "TaskStatusResponse",
    "TaskResponse",
    "ActivityResponse",
    "PaginationMeta",
    "paginated",
    "success",
]
