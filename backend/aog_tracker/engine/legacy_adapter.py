"""Legacy Adapter - Read-side handling of events recorded before milestone tracking"""
from ..domain.enums import AOGWorkflowStatus
from ..domain.models import AOGEvent, AOGEventView, DowntimeMetrics
from .downtime_calculator import hours_between, compute_downtime_hours


def is_legacy_event(event: AOGEvent) -> bool:
    """
    True only when all three hold:
    - reported_at is missing
    - every stored metric is zero
    - milestone_history is empty

    Any one of them present marks a modern record, however sparse.
    """
    if event.reported_at is not None:
        return False
    metrics = event.metrics()
    if any((
        metrics.technical_time_hours,
        metrics.procurement_time_hours,
        metrics.ops_time_hours,
        metrics.total_downtime_hours,
    )):
        return False
    return len(event.milestone_history) == 0


def compute_legacy_metrics(event: AOGEvent) -> DowntimeMetrics:
    """Whole detected -> cleared span attributed to technical time"""
    total = hours_between(event.detected_at, event.cleared_at)
    return DowntimeMetrics(
        technical_time_hours=total,
        procurement_time_hours=0.0,
        ops_time_hours=0.0,
        total_downtime_hours=total,
    )


def infer_status(event: AOGEvent) -> AOGWorkflowStatus:
    """Current status, inferred for records that predate workflow tracking"""
    if event.current_status is not None:
        return event.current_status
    if event.cleared_at is not None:
        return AOGWorkflowStatus.BACK_IN_SERVICE
    return AOGWorkflowStatus.REPORTED


def present_event(event: AOGEvent) -> AOGEventView:
    """Shape a stored event for output; never writes back"""
    view = AOGEventView.model_validate(event.model_dump())
    view.current_status = infer_status(event)
    view.downtime_hours = compute_downtime_hours(event.detected_at, event.cleared_at)

    if is_legacy_event(event):
        view.is_legacy = True
        legacy = compute_legacy_metrics(event)
        view.technical_time_hours = legacy.technical_time_hours
        view.procurement_time_hours = legacy.procurement_time_hours
        view.ops_time_hours = legacy.ops_time_hours
        view.total_downtime_hours = legacy.total_downtime_hours

    return view
