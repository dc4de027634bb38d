"""
Dashboard and report routes.

Everything here is computed over the projects the requester can see.
"""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from ..database.models import UserDB
from ..middleware.auth import get_current_user
from ..models.api_validation import UUIDStr
from ..models.responses import success
from ..services import get_report_service

logger = logging.getLogger(__name__)

dashboard_router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])
router = APIRouter(prefix="/api/reports", tags=["Reports"])


@dashboard_router.get("/stats")
async def dashboard_stats(user: UserDB = Depends(get_current_user)):
    """Counters for the dashboard header cards."""
    return success(await get_report_service().get_dashboard_stats(user))


@router.get("/summary")
async def summary(user: UserDB = Depends(get_current_user)):
    return success(await get_report_service().get_summary(user))


@router.get("/tasks-by-project")
async def tasks_by_project(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    user: UserDB = Depends(get_current_user),
):
    return success(await get_report_service().get_tasks_by_project(user, date_from, date_to))


@router.get("/tasks-by-assignee")
async def tasks_by_assignee(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    project_id: Optional[UUIDStr] = Query(None, alias="projectId"),
    user: UserDB = Depends(get_current_user),
):
    return success(
        await get_report_service().get_tasks_by_assignee(user, date_from, date_to, project_id)
    )


@router.get("/activity-over-time")
async def activity_over_time(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    project_id: Optional[UUIDStr] = Query(None, alias="projectId"),
    granularity: Literal["day", "week"] = Query("day"),
    user: UserDB = Depends(get_current_user),
):
    """Activity counts per day, or per week starting Monday."""
    return success(
        await get_report_service().get_activity_over_time(
            user, date_from, date_to, project_id, granularity
        )
    )


@router.get("/completion-rate")
async def completion_rate(
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    project_id: Optional[UUIDStr] = Query(None, alias="projectId"),
    user: UserDB = Depends(get_current_user),
):
    return success(
        await get_report_service().get_completion_rate(user, date_from, date_to, project_id)
    )
