"""API Routes module"""
from fastapi import APIRouter

from .aog_events import router as aog_events_router

# Main API router
api_router = APIRouter()

api_router.include_router(aog_events_router, prefix="/aog-events", tags=["AOG Events"])

__all__ = ["api_router"]
