"""Monthly trend, moving average and linear forecast"""
from collections import defaultdict
from datetime import datetime
from statistics import mean, linear_regression
from typing import Dict, List, Sequence

from ..domain.models import AOGEvent, AOGEventView
from ..utils.time import month_key, month_span, shift_month
from .models import (
    MonthlyPoint, MovingAveragePoint, MonthlyTrend,
    HistoricalPoint, ForecastPoint, ConfidenceInterval, Forecast
)

MIN_FORECAST_POINTS = 3
CONFIDENCE_BAND = 0.2


def event_anchor(event: AOGEvent) -> datetime:
    """Time an event is bucketed by: reported_at, else detected_at"""
    return event.reported_at or event.detected_at


def monthly_totals(events: Sequence[AOGEventView]) -> List[MonthlyPoint]:
    """Per-month counts and downtime, oldest first, empty months filled in"""
    if not events:
        return []

    counts: Dict[str, int] = defaultdict(int)
    hours: Dict[str, float] = defaultdict(float)
    for event in events:
        key = month_key(event_anchor(event))
        counts[key] += 1
        hours[key] += event.total_downtime_hours

    points = []
    for key in month_span(min(counts), max(counts)):
        count = counts.get(key, 0)
        total = round(hours.get(key, 0.0), 2)
        points.append(MonthlyPoint(
            month=key,
            event_count=count,
            total_downtime_hours=total,
            average_downtime_hours=round(total / count, 2) if count else 0.0,
        ))
    return points


def moving_average(values: Sequence[float], window: int = 3) -> List[float]:
    """
    Trailing mean over window points

    The first window - 1 points have no full window and pass through raw.
    """
    if window < 1:
        raise ValueError("window must be at least 1")
    result = []
    for index, value in enumerate(values):
        if index < window - 1:
            result.append(value)
        else:
            result.append(round(mean(values[index - window + 1:index + 1]), 2))
    return result


def compute_monthly_trend(events: Sequence[AOGEventView], window: int = 3) -> MonthlyTrend:
    points = monthly_totals(events)
    smoothed = moving_average([p.total_downtime_hours for p in points], window)
    return MonthlyTrend(
        trends=points,
        moving_average=[
            MovingAveragePoint(month=p.month, value=value)
            for p, value in zip(points, smoothed)
        ],
    )


def build_forecast(
    points: Sequence[MonthlyPoint],
    history_months: int = 12,
    horizon_months: int = 3
) -> Forecast:
    """
    Ordinary least squares over the latest monthly totals

    x is the month index within the history window. Each prediction is
    floored at 0 and carries a +/-20% band whose lower edge is also
    floored at 0. Fewer than three points give an empty forecast.
    """
    history = list(points)[-history_months:]
    historical = [HistoricalPoint(month=p.month, actual=p.total_downtime_hours) for p in history]
    if len(history) < MIN_FORECAST_POINTS:
        return Forecast(historical=historical, forecast=[])

    xs = list(range(len(history)))
    ys = [p.total_downtime_hours for p in history]
    slope, intercept = linear_regression(xs, ys)

    last_month = history[-1].month
    forecast = []
    for step in range(1, horizon_months + 1):
        x = len(history) - 1 + step
        predicted = max(0.0, round(intercept + slope * x, 2))
        forecast.append(ForecastPoint(
            month=shift_month(last_month, step),
            predicted=predicted,
            confidence_interval=ConfidenceInterval(
                lower=max(0.0, round(predicted * (1 - CONFIDENCE_BAND), 2)),
                upper=round(predicted * (1 + CONFIDENCE_BAND), 2),
            ),
        ))
    return Forecast(historical=historical, forecast=forecast)
