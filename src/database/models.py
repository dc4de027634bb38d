"""
SQLAlchemy models for the project management database.

Schema includes:
- Users with roles and soft delete
- Projects owned by a user, with members
- Per-project task statuses (Kanban columns)
- Tasks ordered inside their status column
- Append-only activity events
"""

import enum
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any

from sqlalchemy import (
    String,
    Text,
    Integer,
    DateTime,
    ForeignKey,
    Enum as SQLEnum,
    JSON,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column

from ..utils.datetime_utils import utc_now


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def new_uuid() -> str:
    return str(uuid.uuid4())


# ==================== ENUMS ====================

class RoleEnum(str, enum.Enum):
    ADMIN = "ADMIN"
    MAINTAINER = "MAINTAINER"
    MEMBER = "MEMBER"


class ProjectStatusEnum(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    COMPLETED = "COMPLETED"


class ActivityActionEnum(str, enum.Enum):
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_UPDATED = "PROJECT_UPDATED"
    PROJECT_ARCHIVED = "PROJECT_ARCHIVED"
    PROJECT_COMPLETED = "PROJECT_COMPLETED"
    PROJECT_DELETED = "PROJECT_DELETED"
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_STATUS_CHANGED = "TASK_STATUS_CHANGED"
    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_UNASSIGNED = "TASK_UNASSIGNED"
    TASK_DELETED = "TASK_DELETED"
    STATUS_CREATED = "STATUS_CREATED"
    STATUS_UPDATED = "STATUS_UPDATED"
    STATUS_DELETED = "STATUS_DELETED"


# Columns every new project starts with, in board order.
DEFAULT_TASK_STATUSES = ("TODO", "IN_PROGRESS", "CODE_REVIEW", "DONE")

# Status name that counts a task as completed in reports.
DONE_STATUS_NAME = "DONE"


# ==================== USERS ====================

class UserDB(Base):
    """Application users. Soft-deleted rows keep their data but are hidden."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[RoleEnum] = mapped_column(
        SQLEnum(RoleEnum, name="role"), default=RoleEnum.MEMBER, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    owned_projects: Mapped[List["ProjectDB"]] = relationship("ProjectDB", back_populates="owner")

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_deleted_at", "deleted_at"),
    )


# ==================== PROJECTS ====================

class ProjectDB(Base):
    """Projects group task statuses, tasks, members and activity."""
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatusEnum] = mapped_column(
        SQLEnum(ProjectStatusEnum, name="project_status"),
        default=ProjectStatusEnum.ACTIVE,
        nullable=False,
    )
    owner_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    owner: Mapped["UserDB"] = relationship("UserDB", back_populates="owned_projects")
    members: Mapped[List["ProjectMemberDB"]] = relationship(
        "ProjectMemberDB", back_populates="project", cascade="all, delete-orphan"
    )
    task_statuses: Mapped[List["TaskStatusDB"]] = relationship(
        "TaskStatusDB",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="TaskStatusDB.order",
    )
    tasks: Mapped[List["TaskDB"]] = relationship("TaskDB", back_populates="project")

    __table_args__ = (
        Index("idx_projects_owner", "owner_id"),
        Index("idx_projects_status", "status"),
        Index("idx_projects_deleted_at", "deleted_at"),
    )


class ProjectMemberDB(Base):
    """Join table between projects and the MEMBER users working on them."""
    __tablename__ = "project_members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    project: Mapped["ProjectDB"] = relationship("ProjectDB", back_populates="members")
    user: Mapped["UserDB"] = relationship("UserDB")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member"),
        Index("idx_project_members_user", "user_id"),
    )


# ==================== TASKS ====================

class TaskStatusDB(Base):
    """A Kanban column. `order` is dense within the project."""
    __tablename__ = "task_statuses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)  # #RRGGBB
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    project: Mapped["ProjectDB"] = relationship("ProjectDB", back_populates="task_statuses")

    __table_args__ = (
        Index("idx_task_statuses_project_order", "project_id", "order"),
    )


class TaskDB(Base):
    """A card on the board. `order` is dense within its status column."""
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id"), nullable=False)
    status_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("task_statuses.id", ondelete="CASCADE"), nullable=False
    )
    assignee_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    project: Mapped["ProjectDB"] = relationship("ProjectDB", back_populates="tasks")
    status: Mapped["TaskStatusDB"] = relationship("TaskStatusDB")
    assignee: Mapped[Optional["UserDB"]] = relationship("UserDB")

    __table_args__ = (
        Index("idx_tasks_project", "project_id"),
        Index("idx_tasks_status_order", "status_id", "order"),
        Index("idx_tasks_assignee", "assignee_id"),
        Index("idx_tasks_deleted_at", "deleted_at"),
    )


# ==================== ACTIVITY ====================

class ActivityDB(Base):
    """Immutable audit event recorded against a project."""
    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    project_id: Mapped[str] = mapped_column(String(36), ForeignKey("projects.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    action: Mapped[ActivityActionEnum] = mapped_column(
        SQLEnum(ActivityActionEnum, name="activity_action"), nullable=False
    )
    # "metadata" is reserved on declarative classes
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    user: Mapped["UserDB"] = relationship("UserDB")

    __table_args__ = (
        Index("idx_activities_project_created", "project_id", "created_at"),
        Index("idx_activities_user", "user_id"),
        Index("idx_activities_action", "action"),
    )
