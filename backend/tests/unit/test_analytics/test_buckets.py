"""Tests for three-bucket aggregation"""

from datetime import datetime, timedelta, timezone

from aog_tracker.domain.enums import ResponsibleParty
from aog_tracker.analytics.buckets import (
    compute_three_bucket, downtime_by_responsibility, percentage
)

T0 = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def test_percentage_of_zero_is_zero():
    assert percentage(5, 0) == 0.0


def test_empty_snapshot():
    result = compute_three_bucket([], {})

    assert result.summary.total_events == 0
    assert result.summary.average_downtime_hours == 0.0
    assert result.technical.percentage == 0.0
    assert result.by_aircraft == []


def test_modern_and_legacy_events(make_view):
    modern = make_view(
        aircraft_id="AC-001",
        reported_at=T0,
        cleared_at=T0 + timedelta(hours=40),
        technical_time_hours=10.0,
        procurement_time_hours=20.0,
        ops_time_hours=5.0,
        total_downtime_hours=40.0,
    )
    legacy = make_view(aircraft_id="AC-002", cleared_at=T0 + timedelta(hours=6))

    result = compute_three_bucket([modern, legacy], {"AC-001": "HZ-A01"})

    assert result.summary.total_events == 2
    assert result.summary.total_downtime_hours == 46.0
    assert result.summary.average_downtime_hours == 23.0
    assert result.technical.total_hours == 16.0
    assert result.technical.percentage == 34.78
    assert result.procurement.percentage == 43.48
    assert result.ops.percentage == 10.87
    assert result.legacy_event_count == 1
    assert result.legacy_downtime_hours == 6.0


def test_by_aircraft_sorted_with_unknown_registration(make_view):
    small = make_view(aircraft_id="AC-002", reported_at=T0, total_downtime_hours=5.0)
    large = make_view(aircraft_id="AC-001", reported_at=T0, total_downtime_hours=50.0)

    result = compute_three_bucket([small, large], {"AC-001": "HZ-A01"})

    assert [a.aircraft_id for a in result.by_aircraft] == ["AC-001", "AC-002"]
    assert result.by_aircraft[0].registration == "HZ-A01"
    assert result.by_aircraft[1].registration == "Unknown"


def test_active_events_counted(make_view):
    result = compute_three_bucket(
        [make_view(reported_at=T0), make_view(reported_at=T0, cleared_at=T0 + timedelta(hours=1))],
        {}
    )
    assert result.summary.active_events == 1


def test_downtime_by_responsibility(make_view):
    events = [
        make_view(responsible_party=ResponsibleParty.OEM, cleared_at=T0 + timedelta(hours=10)),
        make_view(responsible_party=ResponsibleParty.OEM, cleared_at=T0 + timedelta(hours=5)),
        make_view(responsible_party=ResponsibleParty.CUSTOMS, cleared_at=T0 + timedelta(hours=3)),
        make_view(responsible_party=ResponsibleParty.FINANCE),
    ]

    rows = downtime_by_responsibility(events)

    assert [(r.responsible_party, r.total_hours, r.event_count) for r in rows] == [
        (ResponsibleParty.OEM, 15.0, 2),
        (ResponsibleParty.CUSTOMS, 3.0, 1),
    ]
