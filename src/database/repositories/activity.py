"""
Activity repository: the append-only project event log.

Rows are inserted and read, never updated or deleted.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ..connection import get_database
from ..models import ActivityDB, ActivityActionEnum
from .common import paginate

logger = logging.getLogger(__name__)


class ActivityRepository:
    """Repository for activity events."""

    def __init__(self):
        self.db = get_database()

    async def create(
        self,
        project_id: str,
        user_id: str,
        action: ActivityActionEnum,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActivityDB:
        """Append one event."""
        async with self.db.session() as session:
            activity = ActivityDB(
                project_id=project_id,
                user_id=user_id,
                action=action,
                details=details,
            )
            session.add(activity)
            await session.flush()

            logger.debug(f"Activity: {action.value} on project {project_id} by {user_id}")
            return activity

    async def get_all(
        self,
        project_id: str,
        page: int = 1,
        limit: int = 20,
        action: Optional[ActivityActionEnum] = None,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        sort_order: str = "desc",
    ) -> Tuple[List[ActivityDB], int]:
        """One page of a project's events with the acting user loaded."""
        async with self.db.session() as session:
            query = (
                select(ActivityDB)
                .options(selectinload(ActivityDB.user))
                .where(ActivityDB.project_id == project_id)
            )

            if action:
                query = query.where(ActivityDB.action == action)
            if user_id:
                query = query.where(ActivityDB.user_id == user_id)
            if date_from:
                query = query.where(ActivityDB.created_at >= date_from)
            if date_to:
                query = query.where(ActivityDB.created_at <= date_to)

            if sort_order == "asc":
                query = query.order_by(ActivityDB.created_at.asc(), ActivityDB.id)
            else:
                query = query.order_by(ActivityDB.created_at.desc(), ActivityDB.id)

            return await paginate(session, query, page, limit)

    async def get_for_projects(
        self,
        project_ids: Optional[List[str]] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[datetime]:
        """
        Creation times of events, oldest first.

        project_ids=None means no project restriction (ADMIN); an empty
        list matches nothing.
        """
        if project_ids is not None and not project_ids:
            return []

        async with self.db.session() as session:
            query = select(ActivityDB.created_at)

            if project_ids is not None:
                query = query.where(ActivityDB.project_id.in_(project_ids))
            if date_from:
                query = query.where(ActivityDB.created_at >= date_from)
            if date_to:
                query = query.where(ActivityDB.created_at <= date_to)

            result = await session.execute(query.order_by(ActivityDB.created_at.asc()))
            return list(result.scalars().all())


# Singleton
_activity_repository: Optional[ActivityRepository] = None


def get_activity_repository() -> ActivityRepository:
    """Get the activity repository singleton."""
    global _activity_repository
    if _activity_repository is None:
        _activity_repository = ActivityRepository()
    return _activity_repository
