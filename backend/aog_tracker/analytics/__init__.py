"""Analytics Engine - Read-only aggregation over AOG events"""
from .buckets import compute_three_bucket, downtime_by_responsibility
from .stages import compute_stage_breakdown, compute_bottlenecks
from .trends import monthly_totals, moving_average, compute_monthly_trend, build_forecast
from .insights import InsightContext, generate_insights

__all__ = [
    "compute_three_bucket",
    "downtime_by_responsibility",
    "compute_stage_breakdown",
    "compute_bottlenecks",
    "monthly_totals",
    "moving_average",
    "compute_monthly_trend",
    "build_forecast",
    "InsightContext",
    "generate_insights",
]
