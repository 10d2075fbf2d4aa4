"""AOG Event Service - Lifecycle, milestone and sub-entity operations"""
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import (
    AOGEvent, AOGEventView, AOGEventCreate, AOGEventUpdate, AOGEventFilter,
    ActorContext, MilestoneTimestamps, TransitionMetadata, PartRequest,
    PartRequestCreate, PartRequestUpdate, AttachmentMeta, ActualSpend
)
from ..domain.enums import AOGWorkflowStatus, BlockingReason, Milestone
from ..domain.errors import (
    ValidationError, PartNotFoundError, NotFoundError, DuplicateSpendError,
    NotBudgetAffectingError, MissingBudgetMappingError, NoCostsError
)
from ..engine.workflow_definition import WorkflowDefinition
from ..engine.transition_validator import TransitionValidator
from ..engine.milestone_timeline import (
    apply_defaults, validate_milestone_order, validate_detection_window,
    merge_milestones, changed_milestones, present_milestones
)
from ..engine.downtime_calculator import compute_downtime_metrics
from ..engine.legacy_adapter import present_event, infer_status
from ..engine.audit_writer import AuditWriter, HistoryAppend
from ..repositories.aog_event_repo import AOGEventRepository
from ..repositories.spend_repo import ActualSpendRepository
from ..utils.idgen import generate_aog_event_id, generate_part_request_id, generate_actual_spend_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

MILESTONE_FIELDS = tuple(m.value for m in Milestone)

# Any change here invalidates the stored metrics
TIMING_FIELDS = MILESTONE_FIELDS + ("detected_at", "cleared_at")

# Fields an update may change but never clear
REQUIRED_FIELDS = (
    "aircraft_id", "detected_at", "category", "reason_code", "responsible_party",
    "manpower_count", "man_hours", "cost_labor", "cost_parts", "cost_external",
    "internal_cost", "external_cost",
)


class AOGEventService:
    """Service for AOG event operations"""

    def __init__(self, definition: Optional[WorkflowDefinition] = None):
        self.event_repo = AOGEventRepository()
        self.spend_repo = ActualSpendRepository()
        self.validator = TransitionValidator(definition)
        self.audit = AuditWriter()

    # =========================================================================
    # Create / Read
    # =========================================================================

    def create_event(self, data: AOGEventCreate, actor: ActorContext) -> AOGEventView:
        """
        Report a new AOG event

        The event starts in REPORTED. reported_at defaults to detected_at and
        up_and_running_at to cleared_at before the milestone order is checked.
        Every milestone present after defaulting is written to milestone history.
        """
        validate_detection_window(data.detected_at, data.cleared_at)

        milestones = MilestoneTimestamps(**{f: getattr(data, f) for f in MILESTONE_FIELDS})
        milestones = apply_defaults(milestones, data.detected_at, data.cleared_at)
        validate_milestone_order(milestones)

        metrics = compute_downtime_metrics(milestones, data.detected_at, data.cleared_at)
        now = utc_now()

        fields = data.model_dump(exclude=set(MILESTONE_FIELDS))
        fields.update(milestones.model_dump())
        fields.update(metrics.model_dump())

        event = AOGEvent(
            event_id=generate_aog_event_id(),
            current_status=AOGWorkflowStatus.REPORTED,
            milestone_history=self.audit.milestone_entries(
                present_milestones(milestones), actor, recorded_at=now
            ),
            created_at=now,
            updated_at=now,
            updated_by=actor.actor_id,
            **fields
        )
        self.event_repo.create_event(event)

        logger.info(
            f"Reported AOG event {event.event_id}",
            extra={"event_id": event.event_id, "aircraft_id": event.aircraft_id, "actor_id": actor.actor_id}
        )
        return present_event(event)

    def get_event(self, event_id: str) -> AOGEventView:
        """Get one event, shaped for output"""
        return present_event(self.event_repo.get_event_or_raise(event_id))

    def list_events(
        self,
        event_filter: Optional[AOGEventFilter] = None,
        skip: int = 0,
        limit: int = 0
    ) -> Tuple[List[AOGEventView], int]:
        """Filtered events (newest first) and the total match count"""
        events = self.event_repo.list_events(event_filter, skip=skip, limit=limit)
        total = self.event_repo.count_events(event_filter)
        return [present_event(e) for e in events], total

    def get_active_events(self) -> List[AOGEventView]:
        """Events that have not been cleared"""
        return [present_event(e) for e in self.event_repo.list_active()]

    def count_active_events(self) -> int:
        return self.event_repo.count_active()

    def get_history(self, event_id: str) -> Dict[str, Any]:
        """The three append-only logs of an event"""
        event = self.event_repo.get_event_or_raise(event_id)
        return {
            "event_id": event.event_id,
            "status_history": event.status_history,
            "milestone_history": event.milestone_history,
            "cost_audit_trail": event.cost_audit_trail,
        }

    # =========================================================================
    # Update
    # =========================================================================

    def update_event(
        self,
        event_id: str,
        data: AOGEventUpdate,
        actor: ActorContext
    ) -> AOGEventView:
        """
        Apply a partial update

        The merged timeline (stored values overlaid with provided ones) is
        validated before anything is written. Metrics are recomputed as a
        group when any timing field is provided.
        """
        event = self.event_repo.get_event_or_raise(event_id)
        provided = data.provided()

        cleared_required = [f for f in REQUIRED_FIELDS if f in provided and provided[f] is None]
        if cleared_required:
            raise ValidationError(
                "Required fields cannot be cleared",
                details={"fields": cleared_required}
            )

        detected_at = provided.get("detected_at", event.detected_at)
        cleared_at = provided["cleared_at"] if "cleared_at" in provided else event.cleared_at
        validate_detection_window(detected_at, cleared_at)

        stored = event.milestones()
        merged = merge_milestones(stored, provided)
        validate_milestone_order(apply_defaults(merged, detected_at, cleared_at))

        now = utc_now()
        history = HistoryAppend()
        history.add_milestones(self.audit.milestone_entries(
            changed_milestones(stored, provided), actor, recorded_at=now
        ))
        history.add_costs(self.audit.cost_entries(
            event.model_dump(), provided, actor, reason=data.cost_change_reason, changed_at=now
        ))

        updates: Dict[str, Any] = dict(provided)
        updates["updated_by"] = actor.actor_id
        if any(f in provided for f in TIMING_FIELDS):
            metrics = compute_downtime_metrics(merged, detected_at, cleared_at)
            updates.update(metrics.model_dump())

        updated = self.event_repo.update_event(
            event_id, updates, expected_version=event.version, history=history
        )
        logger.info(
            f"Updated AOG event {event_id}",
            extra={"event_id": event_id, "actor_id": actor.actor_id}
        )
        return present_event(updated)

    # =========================================================================
    # Status Transitions
    # =========================================================================

    def transition_status(
        self,
        event_id: str,
        to_status: AOGWorkflowStatus,
        actor: ActorContext,
        notes: Optional[str] = None,
        blocking_reason: Optional[BlockingReason] = None,
        metadata: Optional[TransitionMetadata] = None
    ) -> AOGEventView:
        """
        Move an event to a new status

        Entering a blocking state stores the blocking reason, any other state
        clears it. The first arrival at a terminal state stamps cleared_at
        and refreshes the metrics.
        """
        event = self.event_repo.get_event_or_raise(event_id)
        from_status = infer_status(event)
        self.validator.validate(from_status, to_status, blocking_reason)

        now = utc_now()
        stored_reason = self.validator.resolve_blocking_reason(to_status, blocking_reason)
        updates: Dict[str, Any] = {
            "current_status": to_status,
            "blocking_reason": stored_reason,
            "updated_by": actor.actor_id,
        }

        if self.validator.is_terminal(to_status) and event.cleared_at is None:
            updates["cleared_at"] = now
            metrics = compute_downtime_metrics(event.milestones(), event.detected_at, now)
            updates.update(metrics.model_dump())

        history = HistoryAppend()
        history.add_status(self.audit.status_entry(
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            notes=notes,
            blocking_reason=stored_reason,
            metadata=metadata,
            timestamp=now
        ))

        updated = self.event_repo.update_event(
            event_id, updates, expected_version=event.version, history=history
        )
        logger.info(
            f"AOG event {event_id} moved {from_status.value} -> {to_status.value}",
            extra={
                "event_id": event_id,
                "from_status": from_status.value,
                "to_status": to_status.value,
                "actor_id": actor.actor_id
            }
        )
        return present_event(updated)

    def get_allowed_transitions(self, event_id: str) -> Dict[str, Any]:
        """Current status and the statuses it may move to"""
        event = self.event_repo.get_event_or_raise(event_id)
        current = infer_status(event)
        return {
            "event_id": event_id,
            "current_status": current,
            "allowed_transitions": self.validator.allowed_transitions(current),
            "blocking_states": [
                s for s in self.validator.allowed_transitions(current)
                if self.validator.is_blocking(s)
            ],
        }

    # =========================================================================
    # Part Requests
    # =========================================================================

    def add_part_request(
        self,
        event_id: str,
        data: PartRequestCreate,
        actor: ActorContext
    ) -> PartRequest:
        """Attach a new part request; workflow state and metrics are untouched"""
        event = self.event_repo.get_event_or_raise(event_id)
        fields = data.model_dump()
        fields["requested_date"] = data.requested_date or utc_now()
        part = PartRequest(part_request_id=generate_part_request_id(), **fields)
        parts = [p.model_dump() for p in event.part_requests] + [part.model_dump()]
        self.event_repo.update_event(
            event_id,
            {"part_requests": parts, "updated_by": actor.actor_id},
            expected_version=event.version
        )
        logger.info(
            f"Added part request {part.part_request_id} to {event_id}",
            extra={"event_id": event_id, "part_request_id": part.part_request_id}
        )
        return part

    def update_part_request(
        self,
        event_id: str,
        part_request_id: str,
        data: PartRequestUpdate,
        actor: ActorContext
    ) -> PartRequest:
        """Merge provided fields into a part request, keeping its id"""
        event = self.event_repo.get_event_or_raise(event_id)
        index = next(
            (i for i, p in enumerate(event.part_requests) if p.part_request_id == part_request_id),
            None
        )
        if index is None:
            raise PartNotFoundError(
                f"Part request {part_request_id} not found on AOG event {event_id}",
                details={"event_id": event_id, "part_request_id": part_request_id}
            )

        merged = event.part_requests[index].model_dump()
        merged.update(data.model_dump(exclude_unset=True))
        merged["part_request_id"] = part_request_id
        part = PartRequest.model_validate(merged)

        parts = [p.model_dump() for p in event.part_requests]
        parts[index] = part.model_dump()
        self.event_repo.update_event(
            event_id,
            {"part_requests": parts, "updated_by": actor.actor_id},
            expected_version=event.version
        )
        logger.info(
            f"Updated part request {part_request_id}",
            extra={"event_id": event_id, "part_request_id": part_request_id, "status": part.status.value}
        )
        return part

    def get_parts_cost(self, event_id: str) -> Dict[str, Any]:
        """Estimated and actual part spend for an event"""
        event = self.event_repo.get_event_or_raise(event_id)
        return {
            "event_id": event_id,
            "part_count": len(event.part_requests),
            "total_estimated_cost": round(sum(p.estimated_cost or 0.0 for p in event.part_requests), 2),
            "total_actual_cost": self.calculate_total_parts_cost(event.part_requests),
        }

    @staticmethod
    def calculate_total_parts_cost(parts: List[PartRequest]) -> float:
        """Sum of actual costs; parts without one count as 0"""
        return round(sum(p.actual_cost or 0.0 for p in parts), 2)

    # =========================================================================
    # Attachments
    # =========================================================================

    def add_attachment(
        self,
        event_id: str,
        key: str,
        actor: ActorContext,
        filename: Optional[str] = None
    ) -> AOGEventView:
        """Reference an uploaded file by its storage key"""
        event = self.event_repo.get_event_or_raise(event_id)
        if key in event.attachments:
            return present_event(event)

        meta = AttachmentMeta(key=key, filename=filename, uploaded_at=utc_now(), uploaded_by=actor.actor_id)
        updated = self.event_repo.update_event(
            event_id,
            {
                "attachments": event.attachments + [key],
                "attachments_meta": [m.model_dump() for m in event.attachments_meta] + [meta.model_dump()],
                "updated_by": actor.actor_id,
            },
            expected_version=event.version
        )
        return present_event(updated)

    def remove_attachment(self, event_id: str, key: str, actor: ActorContext) -> AOGEventView:
        """Drop an attachment reference"""
        event = self.event_repo.get_event_or_raise(event_id)
        if key not in event.attachments:
            raise NotFoundError(
                f"Attachment {key} not found on AOG event {event_id}",
                details={"event_id": event_id, "key": key},
                error_code="ATTACHMENT_NOT_FOUND"
            )

        updated = self.event_repo.update_event(
            event_id,
            {
                "attachments": [k for k in event.attachments if k != key],
                "attachments_meta": [m.model_dump() for m in event.attachments_meta if m.key != key],
                "updated_by": actor.actor_id,
            },
            expected_version=event.version
        )
        return present_event(updated)

    # =========================================================================
    # Budget Integration
    # =========================================================================

    def update_budget_integration(
        self,
        event_id: str,
        actor: ActorContext,
        budget_clause_id: Optional[str] = None,
        budget_period: Optional[str] = None,
        is_budget_affecting: Optional[bool] = None
    ) -> AOGEventView:
        """Set the budget mapping fields that were provided"""
        event = self.event_repo.get_event_or_raise(event_id)
        updates: Dict[str, Any] = {"updated_by": actor.actor_id}
        if budget_clause_id is not None:
            updates["budget_clause_id"] = budget_clause_id
        if budget_period is not None:
            updates["budget_period"] = budget_period
        if is_budget_affecting is not None:
            updates["is_budget_affecting"] = is_budget_affecting

        updated = self.event_repo.update_event(event_id, updates, expected_version=event.version)
        return present_event(updated)

    def generate_actual_spend(
        self,
        event_id: str,
        actor: ActorContext,
        currency: str = "USD",
        notes: Optional[str] = None
    ) -> ActualSpend:
        """
        Book the event's labor, parts and external costs as an actual spend

        Guards, in order: not already linked, budget affecting, mapped to a
        clause and period, and carrying a positive cost.
        """
        event = self.event_repo.get_event_or_raise(event_id)

        if event.linked_actual_spend_id:
            raise DuplicateSpendError(
                f"AOG event {event_id} is already linked to spend {event.linked_actual_spend_id}",
                details={"event_id": event_id, "linked_actual_spend_id": event.linked_actual_spend_id}
            )
        if not event.is_budget_affecting:
            raise NotBudgetAffectingError(
                f"AOG event {event_id} is not marked as budget affecting",
                details={"event_id": event_id}
            )
        if not event.budget_clause_id or not event.budget_period:
            raise MissingBudgetMappingError(
                f"AOG event {event_id} has no budget clause or period",
                details={
                    "event_id": event_id,
                    "budget_clause_id": event.budget_clause_id,
                    "budget_period": event.budget_period
                }
            )
        amount = event.cost_labor + event.cost_parts + event.cost_external
        if amount <= 0:
            raise NoCostsError(
                f"AOG event {event_id} has no costs to book",
                details={"event_id": event_id}
            )

        spend = ActualSpend(
            spend_id=generate_actual_spend_id(),
            budget_clause_id=event.budget_clause_id,
            budget_period=event.budget_period,
            aircraft_id=event.aircraft_id,
            amount=round(amount, 2),
            currency=currency,
            source_event_id=event_id,
            notes=notes or f"AOG {event.reason_code}",
            created_by=actor.actor_id,
            created_at=utc_now(),
        )
        # Spend is inserted only after the version-guarded link lands
        self.event_repo.update_event(
            event_id,
            {"linked_actual_spend_id": spend.spend_id, "updated_by": actor.actor_id},
            expected_version=event.version
        )
        self.spend_repo.create_spend(spend)
        logger.info(
            f"Linked AOG event {event_id} to spend {spend.spend_id}",
            extra={"event_id": event_id, "actor_id": actor.actor_id}
        )
        return spend
