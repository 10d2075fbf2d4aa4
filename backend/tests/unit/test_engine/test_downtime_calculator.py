"""Tests for three-bucket downtime attribution"""

from datetime import datetime, timedelta, timezone

from aog_tracker.domain.models import MilestoneTimestamps
from aog_tracker.engine.downtime_calculator import (
    hours_between, compute_downtime_metrics, compute_downtime_hours
)

T0 = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def at(h: float) -> datetime:
    return T0 + timedelta(hours=h)


class TestHoursBetween:

    def test_missing_side_is_zero(self):
        assert hours_between(None, at(1)) == 0.0
        assert hours_between(at(1), None) == 0.0

    def test_rounds_to_two_decimals(self):
        assert hours_between(T0, T0 + timedelta(minutes=20)) == 0.33

    def test_negative_span_clamps_to_zero(self):
        assert hours_between(at(5), at(1)) == 0.0

    def test_naive_values_are_utc(self):
        assert hours_between(T0.replace(tzinfo=None), at(2)) == 2.0


class TestComputeDowntimeMetrics:

    def test_full_timeline(self):
        milestones = MilestoneTimestamps(
            reported_at=at(0),
            procurement_requested_at=at(4),
            available_at_store_at=at(124),
            issued_back_at=at(126),
            installation_complete_at=at(132),
            test_start_at=at(132),
            up_and_running_at=at(135),
        )

        metrics = compute_downtime_metrics(milestones, at(0), None)

        assert metrics.technical_time_hours == 12.0
        assert metrics.procurement_time_hours == 120.0
        assert metrics.ops_time_hours == 3.0
        assert metrics.total_downtime_hours == 135.0

    def test_detected_and_cleared_only(self):
        metrics = compute_downtime_metrics(MilestoneTimestamps(), at(0), at(8))

        assert metrics.total_downtime_hours == 8.0
        assert metrics.technical_time_hours == 8.0
        assert metrics.procurement_time_hours == 0.0
        assert metrics.ops_time_hours == 0.0

    def test_open_event_has_no_total(self):
        metrics = compute_downtime_metrics(
            MilestoneTimestamps(reported_at=at(0), procurement_requested_at=at(3)), at(0), None
        )

        assert metrics.total_downtime_hours == 0.0
        assert metrics.technical_time_hours == 3.0

    def test_total_is_not_bucket_sum(self):
        # available at store -> up and running falls in no bucket
        milestones = MilestoneTimestamps(
            reported_at=at(0),
            procurement_requested_at=at(2),
            available_at_store_at=at(10),
            up_and_running_at=at(20),
        )

        metrics = compute_downtime_metrics(milestones, at(0), None)

        assert metrics.technical_time_hours == 2.0
        assert metrics.procurement_time_hours == 8.0
        assert metrics.total_downtime_hours == 20.0

    def test_ops_uses_cleared_fallback(self):
        milestones = MilestoneTimestamps(reported_at=at(0), test_start_at=at(6))

        metrics = compute_downtime_metrics(milestones, at(0), at(9))

        assert metrics.ops_time_hours == 3.0
        assert metrics.total_downtime_hours == 9.0
        assert metrics.technical_time_hours == 6.0

    def test_no_procurement_runs_to_installation(self):
        milestones = MilestoneTimestamps(
            reported_at=at(0),
            installation_complete_at=at(5),
            test_start_at=at(6),
            up_and_running_at=at(8),
        )

        metrics = compute_downtime_metrics(milestones, at(0), None)

        assert metrics.technical_time_hours == 5.0
        assert metrics.procurement_time_hours == 0.0
        assert metrics.ops_time_hours == 2.0

    def test_out_of_order_pair_clamps(self):
        milestones = MilestoneTimestamps(
            reported_at=at(0),
            procurement_requested_at=at(10),
            available_at_store_at=at(4),
        )

        metrics = compute_downtime_metrics(milestones, at(0), None)

        assert metrics.procurement_time_hours == 0.0
        assert metrics.technical_time_hours >= 0.0

    def test_is_deterministic(self):
        milestones = MilestoneTimestamps(reported_at=at(0), available_at_store_at=at(7))
        first = compute_downtime_metrics(milestones, at(0), at(12))
        second = compute_downtime_metrics(milestones, at(0), at(12))
        assert first == second


class TestComputeDowntimeHours:

    def test_open_event(self):
        assert compute_downtime_hours(at(0), None) is None

    def test_cleared_event(self):
        assert compute_downtime_hours(at(0), at(8)) == 8.0
