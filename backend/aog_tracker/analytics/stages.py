"""Stage breakdown and bottleneck analytics"""
from collections import Counter, defaultdict
from statistics import mean
from typing import Dict, List, Optional, Sequence

from ..domain.enums import AOGWorkflowStatus, BlockingReason
from ..domain.models import AOGEventView
from ..engine.downtime_calculator import hours_between
from ..engine.workflow_definition import WorkflowDefinition
from .buckets import percentage
from .models import (
    StageBreakdown, StatusCount, BlockingReasonCount,
    BottleneckAnalytics, StatusDuration, BlockingDuration
)


def compute_stage_breakdown(
    events: Sequence[AOGEventView],
    definition: WorkflowDefinition
) -> StageBreakdown:
    """Counts by current status and blocking reason"""
    total = len(events)
    status_counts = Counter(e.current_status for e in events if e.current_status is not None)
    reason_counts = Counter(e.blocking_reason for e in events if e.blocking_reason is not None)

    by_status = [
        StatusCount(status=status, count=count, percentage=percentage(count, total))
        for status, count in status_counts.most_common()
    ]
    by_reason = [
        BlockingReasonCount(blocking_reason=reason, count=count, percentage=percentage(count, total))
        for reason, count in reason_counts.most_common()
    ]

    return StageBreakdown(
        by_status=by_status,
        by_blocking_reason=by_reason,
        total_active=sum(1 for e in events if e.cleared_at is None),
        total_blocked=sum(
            1 for e in events
            if e.current_status is not None and definition.requires_blocking_reason(e.current_status)
        ),
    )


def compute_bottlenecks(
    events: Sequence[AOGEventView],
    definition: WorkflowDefinition
) -> BottleneckAnalytics:
    """
    Average completed time spent in each status

    A status is entered by the transition into it (the first status at
    reported_at, or detected_at) and left by the next transition out of
    it. Stays that are still open are not counted. Blocking time is
    grouped by the reason recorded when the blocking state was entered.
    """
    by_status: Dict[AOGWorkflowStatus, List[float]] = defaultdict(list)
    by_reason: Dict[BlockingReason, List[float]] = defaultdict(list)

    for event in events:
        entered_at = event.reported_at or event.detected_at
        entry_reason: Optional[BlockingReason] = None
        for entry in sorted(event.status_history, key=lambda h: h.timestamp):
            stay = hours_between(entered_at, entry.timestamp)
            by_status[entry.from_status].append(stay)
            if definition.requires_blocking_reason(entry.from_status) and entry_reason is not None:
                by_reason[entry_reason].append(stay)
            entered_at = entry.timestamp
            entry_reason = entry.blocking_reason

    resolution = [
        hours_between(e.detected_at, e.cleared_at)
        for e in events
        if e.cleared_at is not None
    ]

    status_rows = [
        StatusDuration(status=status, average_hours=round(mean(stays), 2), occurrences=len(stays))
        for status, stays in by_status.items()
    ]
    status_rows.sort(key=lambda r: r.average_hours, reverse=True)

    reason_rows = [
        BlockingDuration(blocking_reason=reason, average_hours=round(mean(stays), 2), occurrences=len(stays))
        for reason, stays in by_reason.items()
    ]
    reason_rows.sort(key=lambda r: r.average_hours, reverse=True)

    return BottleneckAnalytics(
        average_time_by_status=status_rows,
        average_time_in_blocking_states=reason_rows,
        overall_average_resolution_hours=round(mean(resolution), 2) if resolution else 0.0,
    )
