"""Analytics Models - Result shapes returned by the analytics engine"""
from typing import List, Optional
from pydantic import BaseModel, Field

from ..domain.enums import (
    AOGWorkflowStatus, BlockingReason, ResponsibleParty, InsightType
)


# ============================================================================
# Three-bucket
# ============================================================================

class BucketStats(BaseModel):
    """Totals for one downtime bucket"""
    total_hours: float = 0.0
    average_hours: float = 0.0
    percentage: float = 0.0


class BucketSummary(BaseModel):
    total_events: int = 0
    active_events: int = 0
    total_downtime_hours: float = 0.0
    average_downtime_hours: float = 0.0


class AircraftBuckets(BaseModel):
    """Per-aircraft bucket totals"""
    aircraft_id: str
    registration: str
    technical_hours: float = 0.0
    procurement_hours: float = 0.0
    ops_hours: float = 0.0
    total_hours: float = 0.0


class ThreeBucketAnalytics(BaseModel):
    summary: BucketSummary = Field(default_factory=BucketSummary)
    technical: BucketStats = Field(default_factory=BucketStats)
    procurement: BucketStats = Field(default_factory=BucketStats)
    ops: BucketStats = Field(default_factory=BucketStats)
    by_aircraft: List[AircraftBuckets] = Field(default_factory=list)
    legacy_event_count: int = 0
    legacy_downtime_hours: float = 0.0


class ResponsibilityDowntime(BaseModel):
    """Cleared downtime grouped by responsible party"""
    responsible_party: ResponsibleParty
    total_hours: float
    event_count: int


# ============================================================================
# Stages & Bottlenecks
# ============================================================================

class StatusCount(BaseModel):
    status: AOGWorkflowStatus
    count: int
    percentage: float


class BlockingReasonCount(BaseModel):
    blocking_reason: BlockingReason
    count: int
    percentage: float


class StageBreakdown(BaseModel):
    by_status: List[StatusCount] = Field(default_factory=list)
    by_blocking_reason: List[BlockingReasonCount] = Field(default_factory=list)
    total_active: int = 0
    total_blocked: int = 0


class StatusDuration(BaseModel):
    """Average completed stay in a status"""
    status: AOGWorkflowStatus
    average_hours: float
    occurrences: int


class BlockingDuration(BaseModel):
    """Average completed stay in blocking states, by reason"""
    blocking_reason: BlockingReason
    average_hours: float
    occurrences: int


class BottleneckAnalytics(BaseModel):
    average_time_by_status: List[StatusDuration] = Field(default_factory=list)
    average_time_in_blocking_states: List[BlockingDuration] = Field(default_factory=list)
    overall_average_resolution_hours: float = 0.0


# ============================================================================
# Trends & Forecast
# ============================================================================

class MonthlyPoint(BaseModel):
    month: str
    event_count: int = 0
    total_downtime_hours: float = 0.0
    average_downtime_hours: float = 0.0


class MovingAveragePoint(BaseModel):
    month: str
    value: float


class MonthlyTrend(BaseModel):
    trends: List[MonthlyPoint] = Field(default_factory=list)
    moving_average: List[MovingAveragePoint] = Field(default_factory=list)


class HistoricalPoint(BaseModel):
    month: str
    actual: float


class ConfidenceInterval(BaseModel):
    lower: float
    upper: float


class ForecastPoint(BaseModel):
    month: str
    predicted: float
    confidence_interval: ConfidenceInterval


class Forecast(BaseModel):
    historical: List[HistoricalPoint] = Field(default_factory=list)
    forecast: List[ForecastPoint] = Field(default_factory=list)


# ============================================================================
# Insights
# ============================================================================

class Insight(BaseModel):
    id: str
    type: InsightType
    title: str
    description: str
    metric: Optional[float] = None
    recommendation: Optional[str] = None


class DataQuality(BaseModel):
    completeness_percentage: float = 0.0
    legacy_event_count: int = 0
    total_events: int = 0
    events_with_milestones: int = 0


class InsightsReport(BaseModel):
    insights: List[Insight] = Field(default_factory=list)
    data_quality: DataQuality = Field(default_factory=DataQuality)
