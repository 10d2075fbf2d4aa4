"""Audit Writer - Append-only status, milestone and cost history"""
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..domain.models import (
    ActorContext, StatusHistoryEntry, MilestoneHistoryEntry, CostAuditEntry,
    TransitionMetadata
)
from ..domain.enums import AOGWorkflowStatus, BlockingReason, Milestone, CostField
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class HistoryAppend:
    """
    Entries queued for one event write.

    The repository turns this into a single $push so the entries land in
    the same atomic update as the field changes they describe. Nothing
    here can remove or rewrite an existing entry.
    """

    def __init__(self):
        self._entries: Dict[str, List[Any]] = {
            "status_history": [],
            "milestone_history": [],
            "cost_audit_trail": [],
        }

    def add_status(self, entry: StatusHistoryEntry) -> None:
        self._entries["status_history"].append(entry)

    def add_milestones(self, entries: Sequence[MilestoneHistoryEntry]) -> None:
        self._entries["milestone_history"].extend(entries)

    def add_costs(self, entries: Sequence[CostAuditEntry]) -> None:
        self._entries["cost_audit_trail"].extend(entries)

    def is_empty(self) -> bool:
        return not any(self._entries.values())

    def as_push(self) -> Dict[str, List[Dict[str, Any]]]:
        """{log name: [entry dicts]} for non-empty logs"""
        return {
            log: [entry.model_dump() for entry in entries]
            for log, entries in self._entries.items()
            if entries
        }


class AuditWriter:
    """
    Build immutable history entries

    All state changes produce history entries; the entries are frozen
    models and are only ever appended.
    """

    def status_entry(
        self,
        from_status: AOGWorkflowStatus,
        to_status: AOGWorkflowStatus,
        actor: ActorContext,
        notes: Optional[str] = None,
        blocking_reason: Optional[BlockingReason] = None,
        metadata: Optional[TransitionMetadata] = None,
        timestamp: Optional[datetime] = None
    ) -> StatusHistoryEntry:
        """Entry for a successful transition"""
        metadata = metadata or TransitionMetadata()
        entry = StatusHistoryEntry(
            from_status=from_status,
            to_status=to_status,
            timestamp=timestamp or utc_now(),
            actor_id=actor.actor_id,
            actor_role=actor.role,
            notes=notes,
            blocking_reason=blocking_reason,
            part_request_id=metadata.part_request_id,
            finance_ref=metadata.finance_ref,
            shipping_ref=metadata.shipping_ref,
            ops_run_ref=metadata.ops_run_ref,
        )
        logger.info(
            f"Status {from_status.value} -> {to_status.value}",
            extra={
                "from_status": from_status.value,
                "to_status": to_status.value,
                "actor_id": actor.actor_id
            }
        )
        return entry

    def milestone_entries(
        self,
        milestones: Sequence[Tuple[Milestone, datetime]],
        actor: ActorContext,
        recorded_at: Optional[datetime] = None
    ) -> List[MilestoneHistoryEntry]:
        """One entry per recorded milestone value"""
        recorded_at = recorded_at or utc_now()
        return [
            MilestoneHistoryEntry(
                milestone=milestone,
                timestamp=value,
                recorded_at=recorded_at,
                recorded_by=actor.actor_id,
            )
            for milestone, value in milestones
        ]

    def cost_entries(
        self,
        previous: Mapping[str, Any],
        provided: Mapping[str, Any],
        actor: ActorContext,
        reason: Optional[str] = None,
        changed_at: Optional[datetime] = None
    ) -> List[CostAuditEntry]:
        """One entry per cost field whose value actually changes"""
        changed_at = changed_at or utc_now()
        entries = []
        for field in CostField:
            if field.value not in provided or provided[field.value] is None:
                continue
            old_value = float(previous.get(field.value) or 0.0)
            new_value = float(provided[field.value])
            if new_value == old_value:
                continue
            entries.append(CostAuditEntry(
                field=field,
                previous_value=old_value,
                new_value=new_value,
                changed_at=changed_at,
                changed_by=actor.actor_id,
                reason=reason,
            ))
        return entries
