"""Analytics Service - Load event snapshots and run the analytics engine"""
from typing import List, Optional

from ..config.settings import settings
from ..domain.models import AOGEventView, AnalyticsFilter
from ..engine.workflow_definition import WorkflowDefinition, default_workflow
from ..engine.legacy_adapter import present_event
from ..analytics.buckets import compute_three_bucket, downtime_by_responsibility
from ..analytics.stages import compute_stage_breakdown, compute_bottlenecks
from ..analytics.trends import compute_monthly_trend, monthly_totals, build_forecast, event_anchor
from ..analytics.insights import InsightContext, generate_insights, SEASONAL_LOOKBACK_MONTHS
from ..analytics.models import (
    ThreeBucketAnalytics, StageBreakdown, BottleneckAnalytics, MonthlyTrend,
    Forecast, InsightsReport, ResponsibilityDowntime
)
from ..repositories.aog_event_repo import AOGEventRepository
from ..repositories.aircraft_repo import AircraftRepository
from ..utils.time import utc_now, days_ago, month_key, month_start, shift_month
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AnalyticsService:
    """Read-only analytics across the event collection"""

    def __init__(self, definition: Optional[WorkflowDefinition] = None):
        self.event_repo = AOGEventRepository()
        self.aircraft_repo = AircraftRepository()
        self.definition = definition or default_workflow()

    def get_three_bucket_analytics(self, analytics_filter: AnalyticsFilter) -> ThreeBucketAnalytics:
        events = self._load(analytics_filter)
        registrations = self.aircraft_repo.get_registrations(e.aircraft_id for e in events)
        return compute_three_bucket(events, registrations)

    def get_stage_breakdown(self, analytics_filter: AnalyticsFilter) -> StageBreakdown:
        return compute_stage_breakdown(self._load(analytics_filter), self.definition)

    def get_bottleneck_analytics(self, analytics_filter: AnalyticsFilter) -> BottleneckAnalytics:
        return compute_bottlenecks(self._load(analytics_filter), self.definition)

    def get_monthly_trend(self, analytics_filter: AnalyticsFilter) -> MonthlyTrend:
        return compute_monthly_trend(self._load(analytics_filter), settings.moving_average_window)

    def generate_forecast(self, analytics_filter: AnalyticsFilter) -> Forecast:
        points = monthly_totals(self._load(analytics_filter))
        return build_forecast(
            points,
            history_months=settings.forecast_history_months,
            horizon_months=settings.forecast_horizon_months,
        )

    def get_downtime_by_responsibility(
        self,
        analytics_filter: AnalyticsFilter
    ) -> List[ResponsibilityDowntime]:
        return downtime_by_responsibility(self._load(analytics_filter))

    def get_insights(self, analytics_filter: AnalyticsFilter) -> InsightsReport:
        """
        Run the insight detectors over a period

        Without a range the period is the last insights_default_window_days
        days. Events from the equal-length prior period, and at least the
        twelve months ending with the period's last month, are loaded for the
        trend, cost and seasonal comparisons.
        """
        end = analytics_filter.end_date or utc_now()
        start = analytics_filter.start_date or days_ago(settings.insights_default_window_days, end)
        prior_start = start - (end - start)
        history_start = min(prior_start, month_start(shift_month(month_key(end), -(SEASONAL_LOOKBACK_MONTHS - 1))))

        loaded = self._load(analytics_filter.model_copy(update={
            "start_date": history_start,
            "end_date": end,
        }))
        period = [e for e in loaded if start <= event_anchor(e) <= end]
        prior = [e for e in loaded if prior_start <= event_anchor(e) < start]

        registrations = self.aircraft_repo.get_registrations(e.aircraft_id for e in period)
        context = InsightContext(
            events=period,
            prior_events=prior,
            history_events=loaded,
            period_end=end,
            registrations=registrations,
        )
        report = generate_insights(context, limit=settings.max_insights)
        logger.info(f"Generated {len(report.insights)} insights over {len(period)} events")
        return report

    def _load(self, analytics_filter: AnalyticsFilter) -> List[AOGEventView]:
        """Filtered snapshot with the legacy adapter applied"""
        aircraft_ids: Optional[List[str]] = None
        if analytics_filter.fleet_group:
            aircraft_ids = self.aircraft_repo.find_ids_by_fleet_group(analytics_filter.fleet_group)
        if analytics_filter.aircraft_id:
            if aircraft_ids is None or analytics_filter.aircraft_id in aircraft_ids:
                aircraft_ids = [analytics_filter.aircraft_id]
            else:
                aircraft_ids = []

        events = self.event_repo.find_for_analytics(
            aircraft_ids=aircraft_ids,
            start_date=analytics_filter.start_date,
            end_date=analytics_filter.end_date,
        )
        return [present_event(e) for e in events]
