"""Downtime Calculator - Three-bucket downtime attribution from milestones"""
from datetime import datetime
from typing import Optional

from ..domain.models import DowntimeMetrics, MilestoneTimestamps
from ..utils.time import ensure_utc

SECONDS_PER_HOUR = 3600.0


def hours_between(start: Optional[datetime], end: Optional[datetime]) -> float:
    """
    Elapsed hours from start to end, rounded to 2 decimals

    Zero when either side is missing. A negative span clamps to zero
    instead of raising.
    """
    if start is None or end is None:
        return 0.0
    hours = (ensure_utc(end) - ensure_utc(start)).total_seconds() / SECONDS_PER_HOUR
    return max(0.0, round(hours, 2))


def compute_downtime_metrics(
    milestones: MilestoneTimestamps,
    detected_at: Optional[datetime],
    cleared_at: Optional[datetime]
) -> DowntimeMetrics:
    """
    Split downtime into technical, procurement and ops time

    technical   = reported -> procurement requested + available at store -> installation complete
    procurement = procurement requested -> available at store
    ops         = test start -> up and running
    total       = reported -> up and running (not the bucket sum)

    reported_at falls back to detected_at and up_and_running_at to cleared_at.
    Without a procurement request there is no part wait, so technical time
    runs from reported to the end of the technical work (installation
    complete, else test start, else up and running).
    """
    reported = milestones.reported_at or detected_at
    running = milestones.up_and_running_at or cleared_at

    total = hours_between(reported, running)
    procurement = hours_between(milestones.procurement_requested_at, milestones.available_at_store_at)
    ops = hours_between(milestones.test_start_at, running)

    if milestones.procurement_requested_at is not None:
        technical = round(
            hours_between(reported, milestones.procurement_requested_at)
            + hours_between(milestones.available_at_store_at, milestones.installation_complete_at),
            2
        )
    else:
        technical = hours_between(reported, _end_of_technical_work(milestones, running))

    return DowntimeMetrics(
        technical_time_hours=technical,
        procurement_time_hours=procurement,
        ops_time_hours=ops,
        total_downtime_hours=total,
    )


def compute_downtime_hours(detected_at: datetime, cleared_at: Optional[datetime]) -> Optional[float]:
    """Plain detected -> cleared duration kept for older clients; None while open"""
    if cleared_at is None:
        return None
    hours = (ensure_utc(cleared_at) - ensure_utc(detected_at)).total_seconds() / SECONDS_PER_HOUR
    return round(hours, 2)


def _end_of_technical_work(milestones: MilestoneTimestamps, running: Optional[datetime]) -> Optional[datetime]:
    return milestones.installation_complete_at or milestones.test_start_at or running
