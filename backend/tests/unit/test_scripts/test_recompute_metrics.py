"""Tests for the downtime metrics backfill script"""

from datetime import datetime, timedelta, timezone

import pytest

from aog_tracker.repositories.aog_event_repo import AOGEventRepository
from scripts.recompute_metrics import recompute_metrics

T0 = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(mongo_db) -> AOGEventRepository:
    return AOGEventRepository()


@pytest.fixture
def stale_event(repo, make_event):
    """Installed without a procurement request, stored with the whole span as technical time"""
    return repo.create_event(make_event(
        event_id="AOG-stale001",
        reported_at=T0,
        installation_complete_at=T0 + timedelta(hours=5),
        up_and_running_at=T0 + timedelta(hours=8),
        technical_time_hours=8.0,
        total_downtime_hours=8.0,
    ))


def test_updates_stale_metrics(repo, stale_event, capsys):
    counts = recompute_metrics(repo)

    stored = repo.get_event("AOG-stale001")
    assert counts["updated"] == 1
    assert stored.technical_time_hours == 5.0
    assert stored.total_downtime_hours == 8.0
    assert stored.version == stale_event.version + 1
    assert "AOG-stale001" in capsys.readouterr().out


def test_dry_run_writes_nothing(repo, stale_event):
    counts = recompute_metrics(repo, dry_run=True)

    assert counts["updated"] == 1
    assert repo.get_event("AOG-stale001").technical_time_hours == 8.0


def test_skips_legacy_and_current(repo, make_event):
    repo.create_event(make_event(event_id="AOG-legacy01", cleared_at=T0 + timedelta(hours=4)))
    repo.create_event(make_event(
        event_id="AOG-current1",
        reported_at=T0,
        up_and_running_at=T0 + timedelta(hours=2),
        technical_time_hours=2.0,
        total_downtime_hours=2.0,
    ))

    counts = recompute_metrics(repo)

    assert counts == {"scanned": 2, "legacy": 1, "unchanged": 1, "updated": 0, "conflicts": 0}


def test_since_limits_the_scan(repo, stale_event):
    counts = recompute_metrics(repo, since=T0 + timedelta(days=1))
    assert counts["scanned"] == 0


def test_conflict_is_counted_and_run_continues(repo, stale_event, make_event, monkeypatch):
    other = repo.create_event(make_event(
        event_id="AOG-stale002",
        reported_at=T0,
        up_and_running_at=T0 + timedelta(hours=3),
    ))
    snapshot = repo.list_events()
    repo.update_event("AOG-stale001", {"location": "RUH"}, expected_version=stale_event.version)
    monkeypatch.setattr(repo, "list_events", lambda event_filter=None: snapshot)

    counts = recompute_metrics(repo)

    assert counts["conflicts"] == 1
    assert counts["updated"] == 1
    assert repo.get_event("AOG-stale001").technical_time_hours == 8.0
    assert repo.get_event(other.event_id).total_downtime_hours == 3.0
