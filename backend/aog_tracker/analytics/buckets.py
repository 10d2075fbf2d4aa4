"""Three-bucket downtime aggregation"""
from collections import defaultdict
from typing import Dict, List, Mapping, Sequence

from ..domain.enums import ResponsibleParty
from ..domain.models import AOGEventView
from ..engine.downtime_calculator import hours_between
from .models import (
    AircraftBuckets, BucketStats, BucketSummary, ThreeBucketAnalytics,
    ResponsibilityDowntime
)

UNKNOWN_REGISTRATION = "Unknown"


def percentage(part: float, whole: float) -> float:
    """part as a percentage of whole, 2 decimals; 0 when whole is 0"""
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def average(total: float, count: int) -> float:
    if not count:
        return 0.0
    return round(total / count, 2)


def compute_three_bucket(
    events: Sequence[AOGEventView],
    registrations: Mapping[str, str]
) -> ThreeBucketAnalytics:
    """
    Sum bucket hours over presented events

    Events must already have gone through the legacy adapter so that
    legacy records count their whole downtime as technical.
    """
    count = len(events)
    technical = sum(e.technical_time_hours for e in events)
    procurement = sum(e.procurement_time_hours for e in events)
    ops = sum(e.ops_time_hours for e in events)
    total = sum(e.total_downtime_hours for e in events)

    per_aircraft: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for event in events:
        row = per_aircraft[event.aircraft_id]
        row["technical"] += event.technical_time_hours
        row["procurement"] += event.procurement_time_hours
        row["ops"] += event.ops_time_hours
        row["total"] += event.total_downtime_hours

    by_aircraft = [
        AircraftBuckets(
            aircraft_id=aircraft_id,
            registration=registrations.get(aircraft_id) or UNKNOWN_REGISTRATION,
            technical_hours=round(row["technical"], 2),
            procurement_hours=round(row["procurement"], 2),
            ops_hours=round(row["ops"], 2),
            total_hours=round(row["total"], 2),
        )
        for aircraft_id, row in per_aircraft.items()
    ]
    by_aircraft.sort(key=lambda a: a.total_hours, reverse=True)

    legacy = [e for e in events if e.is_legacy]

    return ThreeBucketAnalytics(
        summary=BucketSummary(
            total_events=count,
            active_events=sum(1 for e in events if e.cleared_at is None),
            total_downtime_hours=round(total, 2),
            average_downtime_hours=average(total, count),
        ),
        technical=_bucket(technical, count, total),
        procurement=_bucket(procurement, count, total),
        ops=_bucket(ops, count, total),
        by_aircraft=by_aircraft,
        legacy_event_count=len(legacy),
        legacy_downtime_hours=round(sum(e.total_downtime_hours for e in legacy), 2),
    )


def downtime_by_responsibility(events: Sequence[AOGEventView]) -> List[ResponsibilityDowntime]:
    """Cleared detected -> cleared hours per responsible party, largest first"""
    hours: Dict[ResponsibleParty, float] = defaultdict(float)
    counts: Dict[ResponsibleParty, int] = defaultdict(int)
    for event in events:
        if event.cleared_at is None:
            continue
        hours[event.responsible_party] += hours_between(event.detected_at, event.cleared_at)
        counts[event.responsible_party] += 1

    rows = [
        ResponsibilityDowntime(
            responsible_party=party,
            total_hours=round(hours[party], 2),
            event_count=counts[party],
        )
        for party in hours
    ]
    rows.sort(key=lambda r: r.total_hours, reverse=True)
    return rows


def _bucket(value: float, count: int, total: float) -> BucketStats:
    return BucketStats(
        total_hours=round(value, 2),
        average_hours=average(value, count),
        percentage=percentage(value, total),
    )
