"""
Task repository: Kanban columns (task statuses) and the cards in them.

Handles:
- Status CRUD, column reordering and compaction
- Task CRUD with soft delete
- Card moves within and across columns

Both TaskStatusDB.order (per project) and TaskDB.order (per column, active
tasks only) stay dense: 0..n-1 with no gaps.
"""

import logging
from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..connection import get_database
from ..models import TaskDB, TaskStatusDB
from ..exceptions import (
    DatabaseConstraintError,
    DatabaseOperationError,
    EntityNotFoundError,
    ValidationError,
)
from .common import paginate, order_clause, contains_pattern
from ...utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


TASK_SORT_COLUMNS = {
    "createdAt": TaskDB.created_at,
    "updatedAt": TaskDB.updated_at,
    "order": TaskDB.order,
    "title": TaskDB.title,
}


def clamp_position(requested: Optional[int], size: int) -> int:
    """Insert position for a list of `size` items; None means append."""
    if requested is None:
        return size
    return max(0, min(requested, size))


class TaskRepository:
    """Repository for task statuses and tasks."""

    def __init__(self):
        self.db = get_database()

    # ==================== STATUS COLUMNS ====================

    async def _status_count(self, session: AsyncSession, project_id: str) -> int:
        result = await session.execute(
            select(func.count(TaskStatusDB.id)).where(TaskStatusDB.project_id == project_id)
        )
        return result.scalar_one()

    async def _shift_statuses(
        self,
        session: AsyncSession,
        project_id: str,
        lower: int,
        upper: Optional[int],
        delta: int,
        exclude_id: Optional[str] = None,
    ):
        """Add `delta` to the order of columns in [lower, upper]."""
        query = update(TaskStatusDB).where(
            TaskStatusDB.project_id == project_id,
            TaskStatusDB.order >= lower,
        )
        if upper is not None:
            query = query.where(TaskStatusDB.order <= upper)
        if exclude_id:
            query = query.where(TaskStatusDB.id != exclude_id)
        # Shifted neighbours keep their own timestamp
        await session.execute(
            query.values(order=TaskStatusDB.order + delta, updated_at=TaskStatusDB.updated_at)
        )

    async def create_status(
        self,
        project_id: str,
        name: str,
        color: Optional[str] = None,
        order: Optional[int] = None,
    ) -> TaskStatusDB:
        """Insert a column at `order` (clamped) or append it."""
        async with self.db.session() as session:
            size = await self._status_count(session, project_id)
            position = clamp_position(order, size)

            if position < size:
                await self._shift_statuses(session, project_id, position, None, 1)

            status = TaskStatusDB(project_id=project_id, name=name, color=color, order=position)
            session.add(status)
            await session.flush()

            logger.info(f"Created status {name} at {position} in project {project_id}")
            return status

    async def get_status_by_id(self, status_id: str) -> Optional[TaskStatusDB]:
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskStatusDB).where(TaskStatusDB.id == status_id)
            )
            return result.scalar_one_or_none()

    async def get_statuses(self, project_id: str) -> List[TaskStatusDB]:
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskStatusDB)
                .where(TaskStatusDB.project_id == project_id)
                .order_by(TaskStatusDB.order.asc(), TaskStatusDB.created_at.asc())
            )
            return list(result.scalars().all())

    async def update_status(self, status_id: str, updates: Dict[str, Any]) -> TaskStatusDB:
        """Rename/recolor a column; an `order` key moves it."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskStatusDB).where(TaskStatusDB.id == status_id)
            )
            status = result.scalar_one_or_none()
            if status is None:
                raise EntityNotFoundError("TaskStatus", status_id)

            target = updates.pop("order", None)
            if target is not None:
                size = await self._status_count(session, status.project_id)
                target = min(max(target, 0), size - 1)
                current = status.order

                if target < current:
                    await self._shift_statuses(
                        session, status.project_id, target, current - 1, 1, exclude_id=status.id
                    )
                elif target > current:
                    await self._shift_statuses(
                        session, status.project_id, current + 1, target, -1, exclude_id=status.id
                    )
                updates["order"] = target

            updates["updated_at"] = utc_now()
            await session.execute(
                update(TaskStatusDB).where(TaskStatusDB.id == status_id).values(**updates)
            )

            result = await session.execute(
                select(TaskStatusDB)
                .where(TaskStatusDB.id == status_id)
                .execution_options(populate_existing=True)
            )
            logger.info(f"Updated status {status_id}")
            return result.scalar_one()

    async def reorder_statuses(self, project_id: str, status_ids: List[str]) -> List[TaskStatusDB]:
        """Rewrite column order from a full permutation of the project's status ids."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskStatusDB.id).where(TaskStatusDB.project_id == project_id)
            )
            existing = set(result.scalars().all())

            if len(status_ids) != len(existing) or set(status_ids) != existing:
                raise ValidationError(
                    "statusIds must list every status of the project exactly once."
                )

            now = utc_now()
            for position, status_id in enumerate(status_ids):
                await session.execute(
                    update(TaskStatusDB)
                    .where(TaskStatusDB.id == status_id)
                    .values(order=position, updated_at=now)
                )

            result = await session.execute(
                select(TaskStatusDB)
                .where(TaskStatusDB.project_id == project_id)
                .order_by(TaskStatusDB.order.asc())
                .execution_options(populate_existing=True)
            )
            logger.info(f"Reordered {len(status_ids)} statuses in project {project_id}")
            return list(result.scalars().all())

    async def has_tasks_with_status(self, status_id: str) -> bool:
        """True when an active task still sits in the column."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB.id)
                .where(TaskDB.status_id == status_id, TaskDB.deleted_at.is_(None))
                .limit(1)
            )
            return result.first() is not None

    async def delete_status(self, status_id: str) -> bool:
        """
        Delete a column and close the gap it leaves.

        Soft-deleted tasks still referencing the column go with it; callers
        must check has_tasks_with_status() first.
        """
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskStatusDB).where(TaskStatusDB.id == status_id)
            )
            status = result.scalar_one_or_none()
            if status is None:
                return False

            await session.execute(
                delete(TaskDB).where(TaskDB.status_id == status_id, TaskDB.deleted_at.is_not(None))
            )
            await session.execute(delete(TaskStatusDB).where(TaskStatusDB.id == status_id))
            await self._shift_statuses(session, status.project_id, status.order + 1, None, -1)

            logger.info(f"Deleted status {status_id} from project {status.project_id}")
            return True

    # ==================== TASKS ====================

    async def _column_count(self, session: AsyncSession, status_id: str) -> int:
        result = await session.execute(
            select(func.count(TaskDB.id)).where(
                TaskDB.status_id == status_id, TaskDB.deleted_at.is_(None)
            )
        )
        return result.scalar_one()

    async def _shift_column(
        self,
        session: AsyncSession,
        status_id: str,
        lower: int,
        upper: Optional[int],
        delta: int,
        exclude_id: Optional[str] = None,
    ):
        """Add `delta` to the order of active cards in [lower, upper] of a column."""
        query = update(TaskDB).where(
            TaskDB.status_id == status_id,
            TaskDB.deleted_at.is_(None),
            TaskDB.order >= lower,
        )
        if upper is not None:
            query = query.where(TaskDB.order <= upper)
        if exclude_id:
            query = query.where(TaskDB.id != exclude_id)
        # Shifted neighbours keep their own timestamp
        await session.execute(query.values(order=TaskDB.order + delta, updated_at=TaskDB.updated_at))

    async def _load(self, session: AsyncSession, task_id: str) -> TaskDB:
        result = await session.execute(
            select(TaskDB)
            .options(selectinload(TaskDB.status), selectinload(TaskDB.assignee))
            .where(TaskDB.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def create(
        self,
        project_id: str,
        status_id: str,
        title: str,
        description: Optional[str] = None,
        assignee_id: Optional[str] = None,
        order: Optional[int] = None,
    ) -> TaskDB:
        """Insert a card at `order` (clamped) within its column or append it."""
        async with self.db.session() as session:
            try:
                size = await self._column_count(session, status_id)
                position = clamp_position(order, size)

                if position < size:
                    await self._shift_column(session, status_id, position, None, 1)

                task = TaskDB(
                    project_id=project_id,
                    status_id=status_id,
                    assignee_id=assignee_id,
                    title=title,
                    description=description,
                    order=position,
                )
                session.add(task)
                await session.flush()

                logger.info(f"Created task {task.id} in project {project_id}")
                return await self._load(session, task.id)

            except IntegrityError as e:
                logger.error(f"Constraint violation creating task {title}: {e}")
                raise DatabaseConstraintError(f"Cannot create task {title}")

            except Exception as e:
                logger.error(f"Task creation failed for {title}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create task {title}: {e}")

    async def get_by_id(self, task_id: str) -> Optional[TaskDB]:
        """Active task with its status and assignee."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB)
                .options(selectinload(TaskDB.status), selectinload(TaskDB.assignee))
                .where(TaskDB.id == task_id, TaskDB.deleted_at.is_(None))
            )
            return result.scalar_one_or_none()

    async def get_all(
        self,
        project_id: str,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        sort_by: str = "order",
        sort_order: str = "asc",
    ) -> Tuple[List[TaskDB], int]:
        """One page of a project's active tasks."""
        async with self.db.session() as session:
            query = (
                select(TaskDB)
                .options(selectinload(TaskDB.status), selectinload(TaskDB.assignee))
                .where(TaskDB.project_id == project_id, TaskDB.deleted_at.is_(None))
            )

            if status_id:
                query = query.where(TaskDB.status_id == status_id)
            if assignee_id:
                query = query.where(TaskDB.assignee_id == assignee_id)
            if search:
                pattern = contains_pattern(search)
                query = query.where(
                    or_(
                        TaskDB.title.ilike(pattern, escape="\\"),
                        TaskDB.description.ilike(pattern, escape="\\"),
                    )
                )

            query = query.order_by(
                order_clause(TASK_SORT_COLUMNS, sort_by, sort_order, "order"),
                TaskDB.created_at.asc(),
                TaskDB.id,
            )
            return await paginate(session, query, page, limit)

    async def _move(
        self,
        session: AsyncSession,
        task: TaskDB,
        status_id: Optional[str],
        order: Optional[int],
    ) -> Tuple[str, int]:
        """Reposition a card, keeping both affected columns dense."""
        source = task.status_id
        target_status = status_id or source

        if target_status == source:
            if order is None:
                return source, task.order
            size = await self._column_count(session, source)
            target = min(max(order, 0), size - 1)
            if target < task.order:
                await self._shift_column(session, source, target, task.order - 1, 1, exclude_id=task.id)
            elif target > task.order:
                await self._shift_column(session, source, task.order + 1, target, -1, exclude_id=task.id)
            return source, target

        # Close the gap in the old column, then open one in the new column
        await self._shift_column(session, source, task.order + 1, None, -1, exclude_id=task.id)
        size = await self._column_count(session, target_status)
        target = clamp_position(order, size)
        if target < size:
            await self._shift_column(session, target_status, target, None, 1)
        return target_status, target

    async def update(self, task_id: str, updates: Dict[str, Any]) -> TaskDB:
        """
        Update an active task.

        `status_id` and `order` keys are treated as a card move; everything
        else is written as-is.
        """
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB).where(TaskDB.id == task_id, TaskDB.deleted_at.is_(None))
            )
            task = result.scalar_one_or_none()
            if task is None:
                raise EntityNotFoundError("Task", task_id)

            if "status_id" in updates or "order" in updates:
                new_status, new_order = await self._move(
                    session, task, updates.pop("status_id", None), updates.pop("order", None)
                )
                updates["status_id"] = new_status
                updates["order"] = new_order

            updates["updated_at"] = utc_now()
            await session.execute(update(TaskDB).where(TaskDB.id == task_id).values(**updates))

            logger.info(f"Updated task {task_id}")
            return await self._load(session, task_id)

    async def move(self, task_id: str, status_id: str, order: Optional[int] = None) -> TaskDB:
        """Kanban drag-and-drop: place a card at `order` in `status_id`."""
        return await self.update(task_id, {"status_id": status_id, "order": order})

    async def soft_delete(self, task_id: str) -> bool:
        """Mark a task deleted and compact its column."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB).where(TaskDB.id == task_id, TaskDB.deleted_at.is_(None))
            )
            task = result.scalar_one_or_none()
            if task is None:
                return False

            now = utc_now()
            await session.execute(
                update(TaskDB).where(TaskDB.id == task_id).values(deleted_at=now, updated_at=now)
            )
            await self._shift_column(session, task.status_id, task.order + 1, None, -1)

            logger.info(f"Soft-deleted task {task_id}")
            return True


# Singleton
_task_repository: Optional[TaskRepository] = None


def get_task_repository() -> TaskRepository:
    """Get the task repository singleton."""
    global _task_repository
    if _task_repository is None:
        _task_repository = TaskRepository()
    return _task_repository
