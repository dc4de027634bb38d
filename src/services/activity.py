"""
Activity service: records project events and serves the activity feed.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple

from ..database.models import ActivityActionEnum, ActivityDB, UserDB
from ..database.repositories import get_activity_repository, ActivityRepository
from ..monitoring import activity_events_total
from ..utils.datetime_utils import to_naive_utc
from .access import assert_project_access

logger = logging.getLogger(__name__)


class ActivityService:
    """Service for the project activity log."""

    def __init__(self):
        self.repo: ActivityRepository = get_activity_repository()

    async def log(
        self,
        project_id: str,
        user_id: str,
        action: ActivityActionEnum,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[ActivityDB]:
        """
        Append an event.

        Failures are logged and swallowed: recording activity must never
        fail the operation that triggered it.
        """
        try:
            activity = await self.repo.create(project_id, user_id, action, metadata)
            activity_events_total.labels(action=action.value).inc()
            return activity
        except Exception as e:
            logger.error(f"Failed to log activity {action.value} for project {project_id}: {e}")
            return None

    async def get_project_activities(
        self,
        project_id: str,
        user: UserDB,
        page: int = 1,
        limit: int = 20,
        action: Optional[ActivityActionEnum] = None,
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        sort_order: str = "desc",
    ) -> Tuple[List[ActivityDB], int]:
        await assert_project_access(
            project_id, user, "You do not have permission to view this project's activity."
        )
        return await self.repo.get_all(
            project_id,
            page=page,
            limit=limit,
            action=action,
            user_id=user_id,
            date_from=to_naive_utc(date_from),
            date_to=to_naive_utc(date_to),
            sort_order=sort_order,
        )


# Singleton
_activity_service: Optional[ActivityService] = None


def get_activity_service() -> ActivityService:
    """Get the activity service singleton."""
    global _activity_service
    if _activity_service is None:
        _activity_service = ActivityService()
    return _activity_service
