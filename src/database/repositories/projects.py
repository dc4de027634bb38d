"""
Project repository.

Projects are visible by role:
- ADMIN sees every project
- MAINTAINER sees the projects it owns
- MEMBER sees the projects it was added to

project_scope_filter() builds that WHERE clause once so the project list,
the dashboard and the reports all agree on what a user can see.
"""

import logging
from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy import select, update, delete, or_, and_, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from ..connection import get_database
from ..models import (
    ProjectDB,
    ProjectMemberDB,
    TaskStatusDB,
    UserDB,
    RoleEnum,
    ProjectStatusEnum,
    DEFAULT_TASK_STATUSES,
)
from ..exceptions import DatabaseConstraintError, DatabaseOperationError, EntityNotFoundError
from .common import paginate, order_clause, contains_pattern
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


PROJECT_SORT_COLUMNS = {
    "createdAt": ProjectDB.created_at,
    "updatedAt": ProjectDB.updated_at,
    "name": ProjectDB.name,
}


def project_scope_filter(user_id: str, role: RoleEnum):
    """WHERE clause selecting the active projects visible to a user."""
    active = ProjectDB.deleted_at.is_(None)

    if role == RoleEnum.ADMIN:
        return and_(active, true())
    if role == RoleEnum.MAINTAINER:
        return and_(active, ProjectDB.owner_id == user_id)
    return and_(
        active,
        ProjectDB.id.in_(
            select(ProjectMemberDB.project_id).where(ProjectMemberDB.user_id == user_id)
        ),
    )


class ProjectRepository:
    """Repository for projects and their membership."""

    def __init__(self):
        self.db = get_database()

    async def _load(self, session, project_id: str) -> ProjectDB:
        result = await session.execute(
            select(ProjectDB)
            .options(selectinload(ProjectDB.owner))
            .where(ProjectDB.id == project_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def create(
        self,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
        status: Optional[ProjectStatusEnum] = None,
    ) -> ProjectDB:
        """Create a project together with its default status columns."""
        async with self.db.session() as session:
            try:
                project = ProjectDB(
                    name=name,
                    description=description,
                    status=status or ProjectStatusEnum.ACTIVE,
                    owner_id=owner_id,
                )
                session.add(project)
                await session.flush()

                for position, status_name in enumerate(DEFAULT_TASK_STATUSES):
                    session.add(
                        TaskStatusDB(project_id=project.id, name=status_name, order=position)
                    )
                await session.flush()

                logger.info(f"Created project {project.id}: {name}")
                return await self._load(session, project.id)

            except IntegrityError as e:
                logger.error(f"Constraint violation creating project {name}: {e}")
                raise DatabaseConstraintError(f"Cannot create project {name}")

            except Exception as e:
                logger.error(f"Project creation failed for {name}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create project {name}: {e}")

    async def get_by_id(self, project_id: str) -> Optional[ProjectDB]:
        """Active project with its owner loaded."""
        async with self.db.session() as session:
            result = await session.execute(
                select(ProjectDB)
                .options(selectinload(ProjectDB.owner))
                .where(ProjectDB.id == project_id, ProjectDB.deleted_at.is_(None))
            )
            return result.scalar_one_or_none()

    async def get_all(
        self,
        user_id: str,
        role: RoleEnum,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[ProjectStatusEnum] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[ProjectDB], int]:
        """One page of the projects visible to the user."""
        async with self.db.session() as session:
            query = (
                select(ProjectDB)
                .options(selectinload(ProjectDB.owner))
                .where(project_scope_filter(user_id, role))
            )

            if status:
                query = query.where(ProjectDB.status == status)

            if search:
                pattern = contains_pattern(search)
                query = query.where(
                    or_(
                        ProjectDB.name.ilike(pattern, escape="\\"),
                        ProjectDB.description.ilike(pattern, escape="\\"),
                    )
                )

            query = query.order_by(
                order_clause(PROJECT_SORT_COLUMNS, sort_by, sort_order, "createdAt"),
                ProjectDB.id,
            )
            return await paginate(session, query, page, limit)

    async def update(self, project_id: str, updates: Dict[str, Any]) -> ProjectDB:
        """Update an active project."""
        async with self.db.session() as session:
            updates["updated_at"] = utc_now()

            result = await session.execute(
                update(ProjectDB)
                .where(ProjectDB.id == project_id, ProjectDB.deleted_at.is_(None))
                .values(**updates)
            )
            if result.rowcount == 0:
                raise EntityNotFoundError("Project", project_id)

            logger.info(f"Updated project {project_id}")
            return await self._load(session, project_id)

    async def soft_delete(self, project_id: str) -> bool:
        """Mark a project deleted; its tasks and statuses are left in place."""
        async with self.db.session() as session:
            now = utc_now()
            result = await session.execute(
                update(ProjectDB)
                .where(ProjectDB.id == project_id, ProjectDB.deleted_at.is_(None))
                .values(deleted_at=now, updated_at=now)
            )
            deleted = result.rowcount > 0
            if deleted:
                logger.info(f"Soft-deleted project {project_id}")
            return deleted

    # ==================== MEMBERS ====================

    async def is_member(self, project_id: str, user_id: str) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                select(ProjectMemberDB.id).where(
                    ProjectMemberDB.project_id == project_id,
                    ProjectMemberDB.user_id == user_id,
                )
            )
            return result.first() is not None

    async def get_members(self, project_id: str) -> List[ProjectMemberDB]:
        """Members with their user rows, oldest membership first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(ProjectMemberDB)
                .join(UserDB, ProjectMemberDB.user_id == UserDB.id)
                .options(selectinload(ProjectMemberDB.user))
                .where(ProjectMemberDB.project_id == project_id, UserDB.deleted_at.is_(None))
                .order_by(ProjectMemberDB.created_at.asc(), ProjectMemberDB.id)
            )
            return list(result.scalars().all())

    async def add_member(self, project_id: str, user_id: str) -> ProjectMemberDB:
        async with self.db.session() as session:
            try:
                member = ProjectMemberDB(project_id=project_id, user_id=user_id)
                session.add(member)
                await session.flush()

                result = await session.execute(
                    select(ProjectMemberDB)
                    .options(selectinload(ProjectMemberDB.user))
                    .where(ProjectMemberDB.id == member.id)
                )
                logger.info(f"Added user {user_id} to project {project_id}")
                return result.scalar_one()

            except IntegrityError as e:
                logger.error(f"Constraint violation adding member {user_id} to {project_id}: {e}")
                raise DatabaseConstraintError(
                    f"User {user_id} is already a member of project {project_id}",
                    fields="projectId, userId",
                )

    async def remove_member(self, project_id: str, user_id: str) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                delete(ProjectMemberDB).where(
                    ProjectMemberDB.project_id == project_id,
                    ProjectMemberDB.user_id == user_id,
                )
            )
            removed = result.rowcount > 0
            if removed:
                logger.info(f"Removed user {user_id} from project {project_id}")
            return removed


# Singleton
_project_repository: Optional[ProjectRepository] = None


def get_project_repository() -> ProjectRepository:
    """Get the project repository singleton."""
    global _project_repository
    if _project_repository is None:
        _project_repository = ProjectRepository()
    return _project_repository
