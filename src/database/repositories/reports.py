"""
Report repository: dashboard counters and report aggregations.

Every query is scoped with project_scope_filter(), so a user only ever
counts the projects (and the tasks and events of the projects) it can
see. Soft-deleted projects and tasks never count.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any, Iterable, Tuple

from sqlalchemy import select, func

from ..connection import get_database
from ..models import ProjectDB, TaskDB, TaskStatusDB, UserDB, RoleEnum, DONE_STATUS_NAME
from .activity import get_activity_repository
from .projects import project_scope_filter
from .users import get_user_repository
from ...utils.datetime_utils import utc_now, start_of_day, start_of_week, truncate_date

logger = logging.getLogger(__name__)


# ==================== AGGREGATION HELPERS ====================

def sort_status_counts(counts: Dict[str, int]) -> List[Dict[str, Any]]:
    """[{statusName, count}] with the biggest column first."""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{"statusName": name, "count": count} for name, count in ordered]


def completion_rate(completed: int, total: int) -> float:
    """Percentage of completed tasks, two decimals, 0 for an empty set."""
    if total == 0:
        return 0
    return round(completed / total * 100, 2)


def bucket_counts(timestamps: Iterable[datetime], granularity: str = "day") -> List[Dict[str, Any]]:
    """Count timestamps per day (or Monday-started week), oldest bucket first."""
    buckets: Dict[str, int] = defaultdict(int)
    for ts in timestamps:
        buckets[truncate_date(ts, granularity)] += 1
    return [{"date": date, "count": buckets[date]} for date in sorted(buckets)]


def _date_filters(column, date_from: Optional[datetime], date_to: Optional[datetime]) -> list:
    filters = []
    if date_from:
        filters.append(column >= date_from)
    if date_to:
        filters.append(column <= date_to)
    return filters


class ReportRepository:
    """Read-only aggregate queries."""

    def __init__(self):
        self.db = get_database()

    def _scoped_tasks(self, user_id: str, role: RoleEnum, project_id: Optional[str] = None):
        """WHERE clauses for active tasks of visible projects (joined on ProjectDB)."""
        clauses = [TaskDB.deleted_at.is_(None), project_scope_filter(user_id, role)]
        if project_id:
            clauses.append(ProjectDB.id == project_id)
        return clauses

    async def get_accessible_project_ids(
        self,
        user_id: str,
        role: RoleEnum,
        project_id: Optional[str] = None,
    ) -> Optional[List[str]]:
        """
        Ids of the projects visible to the user.

        Returns None for an ADMIN without a project filter, meaning no
        restriction at all.
        """
        if role == RoleEnum.ADMIN and not project_id:
            return None

        async with self.db.session() as session:
            query = select(ProjectDB.id).where(project_scope_filter(user_id, role))
            if project_id:
                query = query.where(ProjectDB.id == project_id)
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_dashboard_stats(self, user_id: str, role: RoleEnum) -> Dict[str, int]:
        async with self.db.session() as session:
            total_projects = (await session.execute(
                select(func.count(ProjectDB.id)).where(project_scope_filter(user_id, role))
            )).scalar_one()

            active_tasks = (await session.execute(
                select(func.count(TaskDB.id))
                .select_from(TaskDB)
                .join(ProjectDB, TaskDB.project_id == ProjectDB.id)
                .where(*self._scoped_tasks(user_id, role))
            )).scalar_one()

        return {
            "totalProjects": total_projects,
            "activeTasks": active_tasks,
            "teamMembers": await get_user_repository().count_active(),
        }

    async def get_summary(
        self,
        user_id: str,
        role: RoleEnum,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Headline numbers for the reports page."""
        now = now or utc_now()
        week_start = start_of_week(now)
        thirty_days_ago = start_of_day(now) - timedelta(days=30)
        scoped = self._scoped_tasks(user_id, role)

        async with self.db.session() as session:
            total_projects = (await session.execute(
                select(func.count(ProjectDB.id)).where(project_scope_filter(user_id, role))
            )).scalar_one()

            task_count = (
                select(func.count(TaskDB.id))
                .select_from(TaskDB)
                .join(ProjectDB, TaskDB.project_id == ProjectDB.id)
                .where(*scoped)
            )
            total_tasks = (await session.execute(task_count)).scalar_one()

            completed_this_week = (await session.execute(
                task_count
                .join(TaskStatusDB, TaskDB.status_id == TaskStatusDB.id)
                .where(TaskStatusDB.name == DONE_STATUS_NAME, TaskDB.updated_at >= week_start)
            )).scalar_one()

            created_last_30_days = (await session.execute(
                task_count.where(TaskDB.created_at >= thirty_days_ago)
            )).scalar_one()

            rows = await session.execute(
                select(TaskStatusDB.name, func.count(TaskDB.id))
                .select_from(TaskDB)
                .join(ProjectDB, TaskDB.project_id == ProjectDB.id)
                .join(TaskStatusDB, TaskDB.status_id == TaskStatusDB.id)
                .where(*scoped)
                .group_by(TaskStatusDB.name)
            )
            by_status = {name: count for name, count in rows.all()}

        return {
            "totalProjects": total_projects,
            "totalTasks": total_tasks,
            "tasksByStatus": sort_status_counts(by_status),
            "tasksCompletedThisWeek": completed_this_week,
            "tasksCreatedLast30Days": created_last_30_days,
        }

    async def get_tasks_by_project(
        self,
        user_id: str,
        role: RoleEnum,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Per visible project: task total and per-status counts, by project name."""
        async with self.db.session() as session:
            projects = (await session.execute(
                select(ProjectDB.id, ProjectDB.name)
                .where(project_scope_filter(user_id, role))
                .order_by(ProjectDB.name.asc(), ProjectDB.id)
            )).all()

            rows = await session.execute(
                select(TaskDB.project_id, TaskStatusDB.name, func.count(TaskDB.id))
                .select_from(TaskDB)
                .join(ProjectDB, TaskDB.project_id == ProjectDB.id)
                .join(TaskStatusDB, TaskDB.status_id == TaskStatusDB.id)
                .where(
                    *self._scoped_tasks(user_id, role),
                    *_date_filters(TaskDB.created_at, date_from, date_to),
                )
                .group_by(TaskDB.project_id, TaskStatusDB.name)
            )

            counts: Dict[str, Dict[str, int]] = defaultdict(dict)
            for project_id, status_name, count in rows.all():
                counts[project_id][status_name] = count

        return [
            {
                "projectId": project_id,
                "projectName": name,
                "total": sum(counts[project_id].values()),
                "byStatus": sort_status_counts(counts[project_id]),
            }
            for project_id, name in projects
        ]

    async def get_tasks_by_assignee(
        self,
        user_id: str,
        role: RoleEnum,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        project_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Per assignee: task total and per-status counts; unassigned bucket last."""
        async with self.db.session() as session:
            rows = await session.execute(
                select(
                    TaskDB.assignee_id,
                    UserDB.first_name,
                    UserDB.last_name,
                    TaskStatusDB.name,
                    func.count(TaskDB.id),
                )
                .select_from(TaskDB)
                .join(ProjectDB, TaskDB.project_id == ProjectDB.id)
                .join(TaskStatusDB, TaskDB.status_id == TaskStatusDB.id)
                .outerjoin(UserDB, TaskDB.assignee_id == UserDB.id)
                .where(
                    *self._scoped_tasks(user_id, role, project_id),
                    *_date_filters(TaskDB.created_at, date_from, date_to),
                )
                .group_by(TaskDB.assignee_id, UserDB.first_name, UserDB.last_name, TaskStatusDB.name)
            )

            buckets: Dict[Optional[str], Dict[str, Any]] = {}
            for assignee_id, first_name, last_name, status_name, count in rows.all():
                bucket = buckets.setdefault(assignee_id, {
                    "assigneeId": assignee_id,
                    "assigneeName": f"{first_name} {last_name}" if assignee_id else None,
                    "byStatus": {},
                })
                bucket["byStatus"][status_name] = count

        def sort_key(bucket: Dict[str, Any]) -> Tuple[int, str]:
            name = bucket["assigneeName"]
            return (1, "") if name is None else (0, name.casefold())

        return [
            {
                "assigneeId": bucket["assigneeId"],
                "assigneeName": bucket["assigneeName"],
                "total": sum(bucket["byStatus"].values()),
                "byStatus": sort_status_counts(bucket["byStatus"]),
            }
            for bucket in sorted(buckets.values(), key=sort_key)
        ]

    async def get_activity_over_time(
        self,
        user_id: str,
        role: RoleEnum,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        project_id: Optional[str] = None,
        granularity: str = "day",
    ) -> List[Dict[str, Any]]:
        """Event counts per day or week over the visible projects."""
        project_ids = await self.get_accessible_project_ids(user_id, role, project_id)
        timestamps = await get_activity_repository().get_for_projects(
            project_ids, date_from, date_to
        )
        return bucket_counts(timestamps, granularity)

    async def get_completion_rate(
        self,
        user_id: str,
        role: RoleEnum,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        project_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        async with self.db.session() as session:
            base = (
                select(func.count(TaskDB.id))
                .select_from(TaskDB)
                .join(ProjectDB, TaskDB.project_id == ProjectDB.id)
                .where(
                    *self._scoped_tasks(user_id, role, project_id),
                    *_date_filters(TaskDB.created_at, date_from, date_to),
                )
            )
            total = (await session.execute(base)).scalar_one()
            completed = (await session.execute(
                base
                .join(TaskStatusDB, TaskDB.status_id == TaskStatusDB.id)
                .where(TaskStatusDB.name == DONE_STATUS_NAME)
            )).scalar_one()

        return {
            "totalTasks": total,
            "completedTasks": completed,
            "completionRate": completion_rate(completed, total),
        }


# Singleton
_report_repository: Optional[ReportRepository] = None


def get_report_repository() -> ReportRepository:
    """Get the report repository singleton."""
    global _report_repository
    if _report_repository is None:
        _report_repository = ReportRepository()
    return _report_repository
