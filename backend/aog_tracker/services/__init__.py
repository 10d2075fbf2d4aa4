"""Service modules - Business logic layer"""
from .aog_event_service import AOGEventService
from .analytics_service import AnalyticsService

__all__ = [
    "AOGEventService",
    "AnalyticsService",
]
