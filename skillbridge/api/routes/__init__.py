"""Central API router composition.

Mounts the individual route modules under ``/api/v1`` so the app factory
needs a single ``include_router`` call.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .auth import router as auth_router
from .jobs import router as jobs_router

router = APIRouter(prefix="/api/v1")

router.include_router(auth_router)
router.include_router(jobs_router)
router.include_router(admin_router)

__all__ = ["router"]
