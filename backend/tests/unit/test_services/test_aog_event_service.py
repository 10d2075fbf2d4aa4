"""Tests for AOGEventService against an in-memory database"""

import pytest
from datetime import datetime, timedelta, timezone

from aog_tracker.domain.enums import (
    AOGWorkflowStatus as S, BlockingReason, CostField, Milestone, PartRequestStatus,
    ResponsibleParty
)
from aog_tracker.domain.errors import (
    AOGNotFoundError, ConcurrencyError, InvalidTimestampOrderError, InvalidTransitionError,
    BlockingReasonRequiredError, ValidationError, PartNotFoundError, NotFoundError,
    DuplicateSpendError, NotBudgetAffectingError, MissingBudgetMappingError, NoCostsError
)
from aog_tracker.domain.models import (
    AOGEventUpdate, AOGEventFilter, PartRequestCreate, PartRequestUpdate, TransitionMetadata
)
from aog_tracker.services.aog_event_service import AOGEventService

T0 = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def at(h: float) -> datetime:
    return T0 + timedelta(hours=h)


@pytest.fixture
def service(mongo_db) -> AOGEventService:
    return AOGEventService()


def walk(service, event_id, actor, path):
    """Apply (status, reason) steps in order"""
    view = None
    for to_status, reason in path:
        view = service.transition_status(event_id, to_status, actor, blocking_reason=reason)
    return view


# =============================================================================
# Create / Read
# =============================================================================

class TestCreateEvent:

    def test_detected_and_cleared_only(self, service, actor, make_create, mongo_db):
        view = service.create_event(make_create(detected_at=at(0), cleared_at=at(8)), actor)

        assert view.event_id.startswith("AOG-")
        assert view.current_status == S.REPORTED
        assert view.reported_at == at(0)
        assert view.up_and_running_at == at(8)
        assert view.total_downtime_hours == 8.0
        assert view.technical_time_hours == 8.0
        assert view.procurement_time_hours == 0.0
        assert view.ops_time_hours == 0.0
        assert view.downtime_hours == 8.0
        assert not view.is_legacy
        assert mongo_db["aog_events"].count_documents({}) == 1

    def test_full_timeline(self, service, actor, make_create):
        view = service.create_event(make_create(
            detected_at=at(0),
            reported_at=at(0),
            procurement_requested_at=at(4),
            available_at_store_at=at(124),
            installation_complete_at=at(132),
            test_start_at=at(132),
            up_and_running_at=at(135),
        ), actor)

        assert view.technical_time_hours == 12.0
        assert view.procurement_time_hours == 120.0
        assert view.ops_time_hours == 3.0
        assert view.total_downtime_hours == 135.0

    def test_milestone_history_for_present_milestones(self, service, actor, make_create):
        view = service.create_event(make_create(detected_at=at(0), test_start_at=at(3)), actor)

        recorded = [(h.milestone, h.timestamp) for h in view.milestone_history]
        assert recorded == [(Milestone.REPORTED_AT, at(0)), (Milestone.TEST_START_AT, at(3))]
        assert all(h.recorded_by == actor.actor_id for h in view.milestone_history)

    def test_out_of_order_is_rejected_and_not_stored(self, service, actor, make_create, mongo_db):
        with pytest.raises(InvalidTimestampOrderError):
            service.create_event(make_create(
                detected_at=at(0),
                procurement_requested_at=at(10),
                available_at_store_at=at(5),
            ), actor)

        assert mongo_db["aog_events"].count_documents({}) == 0

    def test_cleared_before_detected(self, service, actor, make_create):
        with pytest.raises(InvalidTimestampOrderError):
            service.create_event(make_create(detected_at=at(5), cleared_at=at(1)), actor)


class TestReadEvents:

    def test_missing_event(self, service):
        with pytest.raises(AOGNotFoundError) as exc_info:
            service.get_event("AOG-missing")

        assert exc_info.value.http_status == 404

    def test_list_with_filter_and_total(self, service, actor, make_create):
        service.create_event(make_create(aircraft_id="AC-001"), actor)
        service.create_event(make_create(aircraft_id="AC-001", responsible_party=ResponsibleParty.OEM), actor)
        service.create_event(make_create(aircraft_id="AC-002"), actor)

        items, total = service.list_events(AOGEventFilter(aircraft_id="AC-001"), limit=1)

        assert total == 2
        assert len(items) == 1
        assert items[0].aircraft_id == "AC-001"

    def test_list_by_detection_range(self, service, actor, make_create):
        service.create_event(make_create(detected_at=at(0)), actor)
        service.create_event(make_create(detected_at=at(48)), actor)

        items, total = service.list_events(AOGEventFilter(start_date=at(24)))

        assert total == 1
        assert items[0].detected_at == at(48)

    def test_active_events(self, service, actor, make_create):
        service.create_event(make_create(), actor)
        service.create_event(make_create(cleared_at=at(2)), actor)

        assert service.count_active_events() == 1
        assert len(service.get_active_events()) == 1

    def test_legacy_record_is_presented(self, service, mongo_db):
        mongo_db["aog_events"].insert_one({
            "event_id": "AOG-legacy01",
            "aircraft_id": "AC-001",
            "reason_code": "ENG-VIB",
            "responsible_party": "OEM",
            "detected_at": datetime(2023, 6, 1, 0, 0),
            "cleared_at": datetime(2023, 6, 1, 12, 0),
        })

        view = service.get_event("AOG-legacy01")

        assert view.is_legacy
        assert view.current_status == S.BACK_IN_SERVICE
        assert view.technical_time_hours == 12.0
        assert view.total_downtime_hours == 12.0
        stored = mongo_db["aog_events"].find_one({"event_id": "AOG-legacy01"})
        assert "total_downtime_hours" not in stored


# =============================================================================
# Update
# =============================================================================

class TestUpdateEvent:

    def test_absent_null_and_value(self, service, actor, make_create):
        created = service.create_event(make_create(
            detected_at=at(0), test_start_at=at(5), location="RUH"
        ), actor)

        updated = service.update_event(created.event_id, AOGEventUpdate(
            test_start_at=None,
            up_and_running_at=at(9),
        ), actor)

        assert updated.location == "RUH"
        assert updated.test_start_at is None
        assert updated.up_and_running_at == at(9)
        assert updated.total_downtime_hours == 9.0
        assert updated.ops_time_hours == 0.0
        assert updated.technical_time_hours == 9.0
        assert updated.version == created.version + 1

    def test_milestone_history_only_for_new_values(self, service, actor, make_create):
        created = service.create_event(make_create(detected_at=at(0)), actor)

        updated = service.update_event(created.event_id, AOGEventUpdate(
            reported_at=at(0),
            installation_complete_at=at(6),
        ), actor)

        new_entries = updated.milestone_history[len(created.milestone_history):]
        assert [h.milestone for h in new_entries] == [Milestone.INSTALLATION_COMPLETE_AT]

    def test_merged_timeline_is_validated(self, service, actor, make_create):
        created = service.create_event(make_create(detected_at=at(0), test_start_at=at(10)), actor)

        with pytest.raises(InvalidTimestampOrderError):
            service.update_event(created.event_id, AOGEventUpdate(installation_complete_at=at(12)), actor)

        assert service.get_event(created.event_id).installation_complete_at is None

    def test_non_timing_update_keeps_metrics(self, service, actor, make_create):
        created = service.create_event(make_create(detected_at=at(0), cleared_at=at(4)), actor)

        updated = service.update_event(created.event_id, AOGEventUpdate(action_taken="Replaced seal"), actor)

        assert updated.action_taken == "Replaced seal"
        assert updated.total_downtime_hours == 4.0
        assert len(updated.milestone_history) == len(created.milestone_history)

    def test_cost_changes_are_audited(self, service, actor, make_create):
        created = service.create_event(make_create(cost_labor=100.0), actor)

        updated = service.update_event(created.event_id, AOGEventUpdate(
            cost_labor=100.0,
            cost_parts=250.0,
            cost_change_reason="Vendor invoice",
        ), actor)

        assert len(updated.cost_audit_trail) == 1
        entry = updated.cost_audit_trail[0]
        assert entry.field == CostField.COST_PARTS
        assert entry.previous_value == 0.0
        assert entry.new_value == 250.0
        assert entry.reason == "Vendor invoice"
        assert entry.changed_by == actor.actor_id

    def test_required_field_cannot_be_cleared(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        with pytest.raises(ValidationError) as exc_info:
            service.update_event(created.event_id, AOGEventUpdate(reason_code=None), actor)

        assert exc_info.value.details["fields"] == ["reason_code"]

    def test_missing_event(self, service, actor):
        with pytest.raises(AOGNotFoundError):
            service.update_event("AOG-missing", AOGEventUpdate(location="JED"), actor)


# =============================================================================
# Transitions
# =============================================================================

class TestTransitions:

    def test_first_step_records_history(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        view = service.transition_status(
            created.event_id, S.TROUBLESHOOTING, actor,
            notes="Borescope inspection",
            metadata=TransitionMetadata(ops_run_ref="OPS-7"),
        )

        assert view.current_status == S.TROUBLESHOOTING
        assert len(view.status_history) == 1
        entry = view.status_history[0]
        assert (entry.from_status, entry.to_status) == (S.REPORTED, S.TROUBLESHOOTING)
        assert entry.notes == "Borescope inspection"
        assert entry.ops_run_ref == "OPS-7"
        assert entry.actor_id == actor.actor_id

    def test_skipping_a_step_is_rejected(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        with pytest.raises(InvalidTransitionError):
            service.transition_status(created.event_id, S.ISSUE_IDENTIFIED, actor)

        assert service.get_event(created.event_id).status_history == []

    def test_blocking_reason_lifecycle(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)
        walk(service, created.event_id, actor, [
            (S.TROUBLESHOOTING, None),
            (S.ISSUE_IDENTIFIED, None),
            (S.PART_REQUIRED, None),
            (S.PROCUREMENT_REQUESTED, None),
            (S.FINANCE_APPROVAL_PENDING, BlockingReason.FINANCE),
            (S.ORDER_PLACED, None),
            (S.IN_TRANSIT, BlockingReason.VENDOR),
        ])

        with pytest.raises(BlockingReasonRequiredError):
            service.transition_status(created.event_id, S.AT_PORT, actor)

        view = service.transition_status(created.event_id, S.AT_PORT, actor, blocking_reason=BlockingReason.PORT)
        assert view.blocking_reason == BlockingReason.PORT

        with pytest.raises(BlockingReasonRequiredError):
            service.transition_status(created.event_id, S.CUSTOMS_CLEARANCE, actor)
        assert service.get_event(created.event_id).blocking_reason == BlockingReason.PORT

        view = service.transition_status(
            created.event_id, S.CUSTOMS_CLEARANCE, actor, blocking_reason=BlockingReason.CUSTOMS
        )
        assert view.blocking_reason == BlockingReason.CUSTOMS

        view = service.transition_status(created.event_id, S.RECEIVED_IN_STORES, actor)
        assert view.blocking_reason is None
        assert view.status_history[-1].blocking_reason is None

    def test_terminal_state_stamps_cleared_at(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        view = walk(service, created.event_id, actor, [
            (S.TROUBLESHOOTING, None),
            (S.ISSUE_IDENTIFIED, None),
            (S.RESOLVED_NO_PARTS, None),
            (S.BACK_IN_SERVICE, None),
        ])

        assert view.cleared_at is not None
        assert view.total_downtime_hours > 0
        assert view.technical_time_hours == view.total_downtime_hours

        closed = service.transition_status(created.event_id, S.CLOSED, actor)
        assert closed.cleared_at == view.cleared_at

    def test_existing_cleared_at_is_kept(self, service, actor, make_create):
        created = service.create_event(make_create(cleared_at=at(6)), actor)

        view = walk(service, created.event_id, actor, [
            (S.TROUBLESHOOTING, None),
            (S.ISSUE_IDENTIFIED, None),
            (S.RESOLVED_NO_PARTS, None),
            (S.BACK_IN_SERVICE, None),
        ])

        assert view.cleared_at == at(6)
        assert view.total_downtime_hours == 6.0

    def test_legacy_record_without_status_or_version(self, service, actor, mongo_db):
        mongo_db["aog_events"].insert_one({
            "event_id": "AOG-legacy02",
            "aircraft_id": "AC-001",
            "reason_code": "ENG-VIB",
            "responsible_party": "OEM",
            "detected_at": datetime(2023, 6, 1, 0, 0),
        })

        view = service.transition_status("AOG-legacy02", S.TROUBLESHOOTING, actor)

        assert view.current_status == S.TROUBLESHOOTING
        assert view.version == 2
        assert view.status_history[0].from_status == S.REPORTED

    def test_allowed_transitions(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)
        walk(service, created.event_id, actor, [
            (S.TROUBLESHOOTING, None),
            (S.ISSUE_IDENTIFIED, None),
            (S.PART_REQUIRED, None),
            (S.PROCUREMENT_REQUESTED, None),
        ])

        result = service.get_allowed_transitions(created.event_id)

        assert result["current_status"] == S.PROCUREMENT_REQUESTED
        assert result["allowed_transitions"] == [S.FINANCE_APPROVAL_PENDING]
        assert result["blocking_states"] == [S.FINANCE_APPROVAL_PENDING]


class TestConcurrency:

    def test_stale_version_is_rejected(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)
        service.event_repo.update_event(created.event_id, {"location": "RUH"}, expected_version=1)

        with pytest.raises(ConcurrencyError) as exc_info:
            service.event_repo.update_event(created.event_id, {"location": "JED"}, expected_version=1)

        assert exc_info.value.http_status == 409
        assert service.get_event(created.event_id).location == "RUH"

    def test_history_is_appended_not_replaced(self, service, actor, other_actor, make_create):
        created = service.create_event(make_create(), actor)
        service.transition_status(created.event_id, S.TROUBLESHOOTING, actor)
        service.transition_status(created.event_id, S.ISSUE_IDENTIFIED, other_actor)

        history = service.get_history(created.event_id)

        assert [h.actor_id for h in history["status_history"]] == [actor.actor_id, other_actor.actor_id]
        assert len(history["milestone_history"]) == 1


# =============================================================================
# Parts, Attachments, Budget
# =============================================================================

class TestPartRequests:

    def test_add_and_update(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        part = service.add_part_request(created.event_id, PartRequestCreate(
            part_number="P/N 123-45",
            part_description="Hydraulic pump",
            estimated_cost=1200.0,
        ), actor)

        assert part.part_request_id.startswith("PRT-")
        assert part.status == PartRequestStatus.REQUESTED
        assert part.requested_date is not None

        updated = service.update_part_request(created.event_id, part.part_request_id, PartRequestUpdate(
            status=PartRequestStatus.RECEIVED,
            actual_cost=1150.0,
        ), actor)

        assert updated.part_request_id == part.part_request_id
        assert updated.status == PartRequestStatus.RECEIVED
        assert updated.part_number == "P/N 123-45"

        event = service.get_event(created.event_id)
        assert event.current_status == S.REPORTED
        assert event.total_downtime_hours == created.total_downtime_hours

    def test_parts_cost(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)
        first = service.add_part_request(created.event_id, PartRequestCreate(
            part_number="A", part_description="Valve", estimated_cost=100.0
        ), actor)
        service.add_part_request(created.event_id, PartRequestCreate(
            part_number="B", part_description="Seal", estimated_cost=50.0
        ), actor)
        service.update_part_request(created.event_id, first.part_request_id, PartRequestUpdate(actual_cost=90.0), actor)

        cost = service.get_parts_cost(created.event_id)

        assert cost["part_count"] == 2
        assert cost["total_estimated_cost"] == 150.0
        assert cost["total_actual_cost"] == 90.0

    def test_unknown_part(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        with pytest.raises(PartNotFoundError):
            service.update_part_request(created.event_id, "PRT-missing", PartRequestUpdate(vendor="X"), actor)


class TestAttachments:

    def test_add_is_idempotent(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        service.add_attachment(created.event_id, "aog/AC-001/report.pdf", actor, filename="report.pdf")
        view = service.add_attachment(created.event_id, "aog/AC-001/report.pdf", actor)

        assert view.attachments == ["aog/AC-001/report.pdf"]
        assert len(view.attachments_meta) == 1
        assert view.attachments_meta[0].filename == "report.pdf"

    def test_remove(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)
        service.add_attachment(created.event_id, "k1", actor)

        view = service.remove_attachment(created.event_id, "k1", actor)

        assert view.attachments == []
        assert view.attachments_meta == []

    def test_remove_unknown_key(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)

        with pytest.raises(NotFoundError) as exc_info:
            service.remove_attachment(created.event_id, "nope", actor)

        assert exc_info.value.error_code == "ATTACHMENT_NOT_FOUND"


class TestBudget:

    def test_guards_in_order(self, service, actor, make_create):
        created = service.create_event(make_create(), actor)
        event_id = created.event_id

        with pytest.raises(NotBudgetAffectingError):
            service.generate_actual_spend(event_id, actor)

        service.update_budget_integration(event_id, actor, is_budget_affecting=True)
        with pytest.raises(MissingBudgetMappingError):
            service.generate_actual_spend(event_id, actor)

        service.update_budget_integration(event_id, actor, budget_clause_id="CL-7", budget_period="2024-01")
        with pytest.raises(NoCostsError):
            service.generate_actual_spend(event_id, actor)

    def test_generate_and_link(self, service, actor, make_create, mongo_db):
        created = service.create_event(make_create(
            cost_labor=100.0,
            cost_parts=200.0,
            cost_external=50.0,
            is_budget_affecting=True,
            budget_clause_id="CL-7",
            budget_period="2024-01",
        ), actor)

        spend = service.generate_actual_spend(created.event_id, actor, currency="SAR")

        assert spend.amount == 350.0
        assert spend.currency == "SAR"
        assert spend.source_event_id == created.event_id
        assert service.get_event(created.event_id).linked_actual_spend_id == spend.spend_id
        assert len(service.spend_repo.list_for_event(created.event_id)) == 1

        with pytest.raises(DuplicateSpendError) as exc_info:
            service.generate_actual_spend(created.event_id, actor)

        assert exc_info.value.http_status == 409
        assert mongo_db["actual_spends"].count_documents({}) == 1

    def test_concurrent_edit_books_no_spend(self, service, actor, make_create, mongo_db, monkeypatch):
        created = service.create_event(make_create(
            cost_labor=100.0,
            is_budget_affecting=True,
            budget_clause_id="CL-7",
            budget_period="2024-01",
        ), actor)
        stale = service.event_repo.get_event(created.event_id)
        service.event_repo.update_event(created.event_id, {"location": "RUH"}, expected_version=stale.version)
        monkeypatch.setattr(service.event_repo, "get_event_or_raise", lambda event_id: stale)

        with pytest.raises(ConcurrencyError):
            service.generate_actual_spend(created.event_id, actor)

        assert mongo_db["actual_spends"].count_documents({}) == 0
        assert service.get_event(created.event_id).linked_actual_spend_id is None
