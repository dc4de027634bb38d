"""
API routes, collected into one router mounted by src/main.py.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .users import router as users_router
from .projects import router as projects_router
from .tasks import router as tasks_router
from .activity import router as activity_router
from .reports import router as reports_router, dashboard_router

router = APIRouter()

router.include_router(auth_router)
router.include_router(users_router)
router.include_router(projects_router)
router.include_router(tasks_router)
router.include_router(activity_router)
router.include_router(dashboard_router)
router.include_router(reports_router)
