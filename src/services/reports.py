"""
Report service: dashboard counters and the reports page.

Aggregations live in ReportRepository; this layer normalizes the date
range and checks access to an explicit projectId filter before any
counting happens.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from ..database.models import UserDB
from ..database.repositories import get_report_repository, ReportRepository
from ..utils.datetime_utils import to_naive_utc
from ..utils.errors import AppError
from .access import assert_project_access

logger = logging.getLogger(__name__)

GRANULARITIES = ("day", "week")


class ReportService:
    """Service for dashboard and report aggregates."""

    def __init__(self):
        self.repo: ReportRepository = get_report_repository()

    async def _check_project(self, project_id: Optional[str], user: UserDB):
        if project_id:
            await assert_project_access(
                project_id, user, "You do not have permission to view this project."
            )

    @staticmethod
    def _range(date_from: Optional[datetime], date_to: Optional[datetime]):
        date_from, date_to = to_naive_utc(date_from), to_naive_utc(date_to)
        if date_from and date_to and date_from > date_to:
            raise AppError.bad_request("'from' must not be later than 'to'.")
        return date_from, date_to

    async def get_dashboard_stats(self, user: UserDB) -> Dict[str, int]:
        return await self.repo.get_dashboard_stats(user.id, user.role)

    async def get_summary(self, user: UserDB) -> Dict[str, Any]:
        return await self.repo.get_summary(user.id, user.role)

    async def get_tasks_by_project(
        self,
        user: UserDB,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        date_from, date_to = self._range(date_from, date_to)
        return await self.repo.get_tasks_by_project(user.id, user.role, date_from, date_to)

    async def get_tasks_by_assignee(
        self,
        user: UserDB,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        project_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        date_from, date_to = self._range(date_from, date_to)
        await self._check_project(project_id, user)
        return await self.repo.get_tasks_by_assignee(
            user.id, user.role, date_from, date_to, project_id
        )

    async def get_activity_over_time(
        self,
        user: UserDB,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        project_id: Optional[str] = None,
        granularity: str = "day",
    ) -> List[Dict[str, Any]]:
        if granularity not in GRANULARITIES:
            raise AppError.bad_request("granularity must be one of: day, week.")

        date_from, date_to = self._range(date_from, date_to)
        await self._check_project(project_id, user)
        return await self.repo.get_activity_over_time(
            user.id, user.role, date_from, date_to, project_id, granularity
        )

    async def get_completion_rate(
        self,
        user: UserDB,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        project_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        date_from, date_to = self._range(date_from, date_to)
        await self._check_project(project_id, user)
        return await self.repo.get_completion_rate(
            user.id, user.role, date_from, date_to, project_id
        )


# Singleton
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get the report service singleton."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service
