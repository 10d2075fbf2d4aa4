"""
AOG Analytics Routes

Read-only aggregates over the event collection. All endpoints accept
aircraft_id, fleet_group, start_date and end_date.
"""

from typing import List
from fastapi import APIRouter, Depends

from ...deps import get_analytics_filter_dep, get_correlation_id_dep
from ....domain.models import AnalyticsFilter
from ....services.analytics_service import AnalyticsService
from ....analytics.models import (
    ThreeBucketAnalytics, StageBreakdown, BottleneckAnalytics, MonthlyTrend,
    Forecast, InsightsReport, ResponsibilityDowntime
)

router = APIRouter(prefix="/analytics")


@router.get("/buckets", response_model=ThreeBucketAnalytics)
def get_three_bucket_analytics(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Technical / procurement / ops split with a per-aircraft breakdown"""
    return AnalyticsService().get_three_bucket_analytics(analytics_filter)


@router.get("/stages", response_model=StageBreakdown)
def get_stage_breakdown(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Event counts by status and blocking reason"""
    return AnalyticsService().get_stage_breakdown(analytics_filter)


@router.get("/bottlenecks", response_model=BottleneckAnalytics)
def get_bottleneck_analytics(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Average time spent per status and per blocking reason"""
    return AnalyticsService().get_bottleneck_analytics(analytics_filter)


@router.get("/monthly-trend", response_model=MonthlyTrend)
def get_monthly_trend(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Monthly downtime with a trailing moving average"""
    return AnalyticsService().get_monthly_trend(analytics_filter)


@router.get("/forecast", response_model=Forecast)
def generate_forecast(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Linear projection of monthly downtime"""
    return AnalyticsService().generate_forecast(analytics_filter)


@router.get("/insights", response_model=InsightsReport)
def get_insights(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Top automated findings and a data quality summary"""
    return AnalyticsService().get_insights(analytics_filter)


@router.get("/responsibility", response_model=List[ResponsibilityDowntime])
def get_downtime_by_responsibility(
    analytics_filter: AnalyticsFilter = Depends(get_analytics_filter_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Cleared downtime per responsible party"""
    return AnalyticsService().get_downtime_by_responsibility(analytics_filter)
