"""
Activity feed route: GET /api/projects/{id}/activities.
"""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from ..database.models import UserDB, ActivityActionEnum
from ..middleware.auth import get_current_user
from ..models.api_validation import UUIDStr
from ..models.responses import ActivityResponse, paginated, success
from ..services import get_activity_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}", tags=["Activity"])


@router.get("/activities")
async def list_activities(
    project_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[ActivityActionEnum] = Query(None),
    user_id: Optional[UUIDStr] = Query(None, alias="userId"),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    user: UserDB = Depends(get_current_user),
):
    """Project events, newest first by default, each with its acting user."""
    activities, total = await get_activity_service().get_project_activities(
        project_id,
        user,
        page=page,
        limit=limit,
        action=action,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        sort_order=sort_order,
    )
    return success(paginated(activities, total, page, limit, ActivityResponse))
