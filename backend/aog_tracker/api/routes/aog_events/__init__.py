"""
AOG Event Routes Module

- crud.py: Report, list, get, update events; active events; history
- lifecycle.py: Status transitions and allowed next statuses
- parts.py: Part requests, attachments, budget linking
- analytics.py: Three-bucket, stages, bottlenecks, trend, forecast, insights

All routes are combined into a single router for inclusion in the API.
"""

from fastapi import APIRouter

from .crud import router as crud_router
from .lifecycle import router as lifecycle_router
from .parts import router as parts_router
from .analytics import router as analytics_router

router = APIRouter()

# /analytics/* and /active must be registered before /{event_id}
router.include_router(analytics_router)
router.include_router(crud_router)
router.include_router(lifecycle_router)
router.include_router(parts_router)

__all__ = ["router"]
