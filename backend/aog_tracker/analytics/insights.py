"""
Insight Heuristics

Eight independent detectors look at the events of a period (and the
equal-length period before it) and each may emit one finding. Findings
are ranked warning > info > success and only the top few are kept.
"""
import calendar
from collections import Counter, defaultdict
from datetime import datetime
from statistics import mean
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..domain.enums import InsightType
from ..domain.models import AOGEventView
from ..utils.time import month_key, month_span, shift_month
from .buckets import compute_three_bucket, percentage
from .models import Insight, DataQuality, InsightsReport, ThreeBucketAnalytics
from .trends import event_anchor

PROCUREMENT_SHARE_THRESHOLD = 50.0
RECURRING_REASON_MIN_COUNT = 3
COST_SPIKE_RATIO = 1.5
COST_TRAILING_MONTHS = 3
IMPROVEMENT_THRESHOLD = 20.0
COMPLETENESS_THRESHOLD = 70.0
RISK_EVENT_WEIGHT = 5
RISK_HOURS_DIVISOR = 10
RISK_THRESHOLD = 70.0
SEASONAL_MIN_EVENTS = 12
SEASONAL_LOOKBACK_MONTHS = 12
SEASONAL_EXCESS = 0.3
BUCKET_CONCENTRATION_THRESHOLD = 60.0

TYPE_RANK = {InsightType.WARNING: 0, InsightType.INFO: 1, InsightType.SUCCESS: 2}


class InsightContext:
    """Everything the detectors may look at"""

    def __init__(
        self,
        events: Sequence[AOGEventView],
        prior_events: Sequence[AOGEventView],
        history_events: Sequence[AOGEventView],
        period_end: datetime,
        registrations: Mapping[str, str],
    ):
        self.events = list(events)
        self.prior_events = list(prior_events)
        self.history_events = list(history_events)
        self.period_end = period_end
        self.registrations = registrations
        self.buckets: ThreeBucketAnalytics = compute_three_bucket(self.events, registrations)
        self.data_quality = assess_data_quality(self.events)


def is_complete(event: AOGEventView) -> bool:
    """
    Has a start, an installation-complete stamp and an end

    Events closed without an installation stamp, such as those resolved
    with no parts, count as incomplete even when test_start_at is set.
    """
    has_start = (event.reported_at or event.detected_at) is not None
    has_end = (event.up_and_running_at or event.cleared_at) is not None
    return has_start and event.installation_complete_at is not None and has_end


def assess_data_quality(events: Sequence[AOGEventView]) -> DataQuality:
    total = len(events)
    complete = sum(1 for e in events if is_complete(e))
    return DataQuality(
        completeness_percentage=percentage(complete, total),
        legacy_event_count=sum(1 for e in events if e.is_legacy),
        total_events=total,
        events_with_milestones=complete,
    )


# =============================================================================
# Detectors
# =============================================================================

def detect_procurement_dominance(ctx: InsightContext) -> Optional[Insight]:
    share = ctx.buckets.procurement.percentage
    if share <= PROCUREMENT_SHARE_THRESHOLD:
        return None
    return Insight(
        id="procurement-dominance",
        type=InsightType.WARNING,
        title="Procurement drives most of the downtime",
        description=f"Waiting for parts accounts for {share}% of downtime in this period.",
        metric=share,
        recommendation="Review supplier lead times and stock critical rotables closer to base.",
    )


def detect_recurring_reasons(ctx: InsightContext) -> Optional[Insight]:
    counts = Counter(e.reason_code.strip() for e in ctx.events if e.reason_code.strip())
    recurring = [(code, n) for code, n in counts.most_common() if n >= RECURRING_REASON_MIN_COUNT]
    if not recurring:
        return None
    top_code, top_count = recurring[0]
    listed = ", ".join(f"{code} ({n}x)" for code, n in recurring[:3])
    return Insight(
        id="recurring-issues",
        type=InsightType.WARNING,
        title=f"Recurring issue: {top_code}",
        description=f"Reason codes seen at least {RECURRING_REASON_MIN_COUNT} times: {listed}.",
        metric=float(top_count),
        recommendation="Open a reliability investigation for the repeated defects.",
    )


def detect_cost_spike(ctx: InsightContext) -> Optional[Insight]:
    spend: Dict[str, float] = defaultdict(float)
    for event in ctx.history_events:
        spend[month_key(event_anchor(event))] += event.total_cost

    current_month = month_key(ctx.period_end)
    trailing = [spend.get(shift_month(current_month, -k), 0.0) for k in range(1, COST_TRAILING_MONTHS + 1)]
    baseline = mean(trailing)
    current = spend.get(current_month, 0.0)
    if baseline <= 0 or current <= baseline * COST_SPIKE_RATIO:
        return None
    ratio = percentage(current, baseline)
    return Insight(
        id="cost-spike",
        type=InsightType.WARNING,
        title=f"AOG spend spike in {current_month}",
        description=(
            f"Spend this month is {ratio}% of the trailing {COST_TRAILING_MONTHS}-month average "
            f"({round(current, 2)} vs {round(baseline, 2)})."
        ),
        metric=ratio,
        recommendation="Check the largest cost items for one-off charges or pricing changes.",
    )


def detect_improving_trend(ctx: InsightContext) -> Optional[Insight]:
    current = sum(e.total_downtime_hours for e in ctx.events)
    prior = sum(e.total_downtime_hours for e in ctx.prior_events)
    if prior <= 0:
        return None
    reduction = round((prior - current) / prior * 100, 2)
    if reduction <= IMPROVEMENT_THRESHOLD:
        return None
    return Insight(
        id="downtime-improving",
        type=InsightType.SUCCESS,
        title="Downtime is trending down",
        description=f"Total downtime fell {reduction}% compared with the previous period.",
        metric=reduction,
    )


def detect_data_quality(ctx: InsightContext) -> Optional[Insight]:
    quality = ctx.data_quality
    if quality.total_events == 0 or quality.completeness_percentage >= COMPLETENESS_THRESHOLD:
        return None
    return Insight(
        id="data-quality",
        type=InsightType.WARNING,
        title="Milestone data is incomplete",
        description=(
            f"Only {quality.completeness_percentage}% of events have full milestone data; "
            f"{quality.legacy_event_count} are legacy records."
        ),
        metric=quality.completeness_percentage,
        recommendation="Record installation and return-to-service milestones on every event.",
    )


def detect_high_risk_aircraft(ctx: InsightContext) -> Optional[Insight]:
    counts: Dict[str, int] = defaultdict(int)
    hours: Dict[str, float] = defaultdict(float)
    for event in ctx.events:
        counts[event.aircraft_id] += 1
        hours[event.aircraft_id] += event.total_downtime_hours
    if not counts:
        return None

    scores = {
        aircraft_id: round(counts[aircraft_id] * RISK_EVENT_WEIGHT + hours[aircraft_id] / RISK_HOURS_DIVISOR, 2)
        for aircraft_id in counts
    }
    aircraft_id = max(scores, key=scores.get)
    score = scores[aircraft_id]
    if score <= RISK_THRESHOLD:
        return None
    name = ctx.registrations.get(aircraft_id) or aircraft_id
    return Insight(
        id="high-risk-aircraft",
        type=InsightType.WARNING,
        title=f"High-risk aircraft: {name}",
        description=(
            f"{name} had {counts[aircraft_id]} events and {round(hours[aircraft_id], 2)} hours "
            f"of downtime (risk score {score})."
        ),
        metric=score,
        recommendation="Schedule a targeted maintenance review for this tail.",
    )


def detect_seasonal_pattern(ctx: InsightContext) -> Optional[Insight]:
    """
    Busiest calendar month of the trailing year against the monthly average

    The average is taken over the months the data actually covers, from the
    first event in the trailing year up to the period's last month.
    """
    last_key = month_key(ctx.period_end)
    first_key = shift_month(last_key, -(SEASONAL_LOOKBACK_MONTHS - 1))
    year = [e for e in ctx.history_events if first_key <= month_key(event_anchor(e)) <= last_key]
    if len(year) < SEASONAL_MIN_EVENTS:
        return None
    covered = month_span(min(month_key(event_anchor(e)) for e in year), last_key)
    by_month = Counter(event_anchor(e).month for e in year)
    monthly_average = len(year) / len(covered)
    peak_month, peak_count = max(by_month.items(), key=lambda item: item[1])
    if peak_count <= monthly_average * (1 + SEASONAL_EXCESS):
        return None
    excess = round((peak_count / monthly_average - 1) * 100, 2)
    month_name = calendar.month_name[peak_month]
    return Insight(
        id="seasonal-pattern",
        type=InsightType.INFO,
        title=f"Seasonal peak in {month_name}",
        description=f"{month_name} sees {excess}% more events than the monthly average.",
        metric=excess,
        recommendation=f"Plan spares and manpower ahead of {month_name}.",
    )


def detect_bucket_concentration(ctx: InsightContext) -> Optional[Insight]:
    shares = {
        "Technical": ctx.buckets.technical.percentage,
        "Procurement": ctx.buckets.procurement.percentage,
        "Ops": ctx.buckets.ops.percentage,
    }
    bucket, share = max(shares.items(), key=lambda item: item[1])
    if share <= BUCKET_CONCENTRATION_THRESHOLD:
        return None
    return Insight(
        id="bucket-concentration",
        type=InsightType.INFO,
        title=f"{bucket} time dominates downtime",
        description=f"{share}% of downtime falls in the {bucket.lower()} bucket.",
        metric=share,
    )


DETECTORS: List[Callable[[InsightContext], Optional[Insight]]] = [
    detect_procurement_dominance,
    detect_recurring_reasons,
    detect_cost_spike,
    detect_improving_trend,
    detect_data_quality,
    detect_high_risk_aircraft,
    detect_seasonal_pattern,
    detect_bucket_concentration,
]


def rank_insights(insights: Sequence[Insight], limit: int) -> List[Insight]:
    """Stable sort by severity, then keep the first limit findings"""
    return sorted(insights, key=lambda i: TYPE_RANK[i.type])[:limit]


def generate_insights(ctx: InsightContext, limit: int = 5) -> InsightsReport:
    findings = [insight for insight in (detect(ctx) for detect in DETECTORS) if insight is not None]
    return InsightsReport(
        insights=rank_insights(findings, limit),
        data_quality=ctx.data_quality,
    )
