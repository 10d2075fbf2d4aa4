"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional, Tuple
from pydantic import AfterValidator, BaseModel, Field, ConfigDict

from .enums import (
    AOGWorkflowStatus, BlockingReason, ResponsibleParty, AOGCategory,
    PartRequestStatus, Milestone, CostField
)
from ..utils.time import ensure_utc


# Every datetime in the domain is timezone-aware UTC, whatever the source
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


# ============================================================================
# Actor
# ============================================================================

class ActorContext(BaseModel):
    """Caller identity, supplied by the upstream identity provider"""
    model_config = ConfigDict(extra="forbid")

    actor_id: str = Field(..., min_length=1, description="User id of the caller")
    role: Optional[str] = Field(None, description="Role of the caller at request time")


# ============================================================================
# Milestones & Metrics
# ============================================================================

class MilestoneTimestamps(BaseModel):
    """The seven milestone timestamps, any of which may be missing"""

    reported_at: Optional[UtcDatetime] = None
    procurement_requested_at: Optional[UtcDatetime] = None
    available_at_store_at: Optional[UtcDatetime] = None
    issued_back_at: Optional[UtcDatetime] = None
    installation_complete_at: Optional[UtcDatetime] = None
    test_start_at: Optional[UtcDatetime] = None
    up_and_running_at: Optional[UtcDatetime] = None

    def ordered(self) -> List[Tuple[Milestone, Optional[datetime]]]:
        """Milestones paired with their values in chronological order"""
        return [(m, getattr(self, m.value)) for m in Milestone]


class DowntimeMetrics(BaseModel):
    """Computed downtime attribution in hours"""
    model_config = ConfigDict(frozen=True)

    technical_time_hours: float = 0.0
    procurement_time_hours: float = 0.0
    ops_time_hours: float = 0.0
    total_downtime_hours: float = 0.0


# ============================================================================
# History Entries (append-only, immutable once built)
# ============================================================================

class TransitionMetadata(BaseModel):
    """Free-form cross references attached to a status transition"""
    part_request_id: Optional[str] = None
    finance_ref: Optional[str] = None
    shipping_ref: Optional[str] = None
    ops_run_ref: Optional[str] = None


class StatusHistoryEntry(BaseModel):
    """One successful status transition"""
    model_config = ConfigDict(frozen=True)

    from_status: AOGWorkflowStatus
    to_status: AOGWorkflowStatus
    timestamp: UtcDatetime
    actor_id: str
    actor_role: Optional[str] = None
    notes: Optional[str] = None
    blocking_reason: Optional[BlockingReason] = None
    part_request_id: Optional[str] = None
    finance_ref: Optional[str] = None
    shipping_ref: Optional[str] = None
    ops_run_ref: Optional[str] = None


class MilestoneHistoryEntry(BaseModel):
    """One recorded milestone value; timestamp may be backdated, recorded_at is wall clock"""
    model_config = ConfigDict(frozen=True)

    milestone: Milestone
    timestamp: UtcDatetime
    recorded_at: UtcDatetime
    recorded_by: str


class CostAuditEntry(BaseModel):
    """One change to a tracked cost field"""
    model_config = ConfigDict(frozen=True)

    field: CostField
    previous_value: float
    new_value: float
    changed_at: UtcDatetime
    changed_by: str
    reason: Optional[str] = None


# ============================================================================
# Part Requests
# ============================================================================

class PartRequest(BaseModel):
    """Part request owned by an AOG event"""
    part_request_id: str
    part_number: str
    part_description: str
    quantity: int = Field(1, ge=1)
    estimated_cost: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    vendor: Optional[str] = None
    requested_date: UtcDatetime
    status: PartRequestStatus = PartRequestStatus.REQUESTED
    invoice_ref: Optional[str] = None
    tracking_number: Optional[str] = None
    eta: Optional[UtcDatetime] = None
    received_date: Optional[UtcDatetime] = None
    issued_date: Optional[UtcDatetime] = None


class PartRequestCreate(BaseModel):
    """Fields accepted when adding a part request"""
    part_number: str = Field(..., min_length=1)
    part_description: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    estimated_cost: Optional[float] = Field(None, ge=0)
    vendor: Optional[str] = None
    requested_date: Optional[UtcDatetime] = Field(None, description="Defaults to now")


class PartRequestUpdate(BaseModel):
    """Partial update of a part request; only provided fields are applied"""
    part_number: Optional[str] = None
    part_description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    estimated_cost: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    vendor: Optional[str] = None
    status: Optional[PartRequestStatus] = None
    invoice_ref: Optional[str] = None
    tracking_number: Optional[str] = None
    eta: Optional[UtcDatetime] = None
    received_date: Optional[UtcDatetime] = None
    issued_date: Optional[UtcDatetime] = None


# ============================================================================
# Attachments
# ============================================================================

class AttachmentMeta(BaseModel):
    """Metadata for an opaque attachment key"""
    key: str
    filename: Optional[str] = None
    uploaded_at: UtcDatetime
    uploaded_by: str


# ============================================================================
# AOG Event
# ============================================================================

class AOGEvent(BaseModel):
    """Persisted AOG event document"""
    model_config = ConfigDict(extra="ignore")

    event_id: str
    aircraft_id: str
    category: AOGCategory = AOGCategory.AOG
    reason_code: str
    responsible_party: ResponsibleParty
    location: Optional[str] = None
    action_taken: Optional[str] = None

    detected_at: UtcDatetime
    cleared_at: Optional[UtcDatetime] = None

    # Legacy records may predate workflow tracking
    current_status: Optional[AOGWorkflowStatus] = None
    blocking_reason: Optional[BlockingReason] = None

    # Milestones
    reported_at: Optional[UtcDatetime] = None
    procurement_requested_at: Optional[UtcDatetime] = None
    available_at_store_at: Optional[UtcDatetime] = None
    issued_back_at: Optional[UtcDatetime] = None
    installation_complete_at: Optional[UtcDatetime] = None
    test_start_at: Optional[UtcDatetime] = None
    up_and_running_at: Optional[UtcDatetime] = None

    # Computed metrics
    technical_time_hours: float = 0.0
    procurement_time_hours: float = 0.0
    ops_time_hours: float = 0.0
    total_downtime_hours: float = 0.0

    # Resources and costs
    manpower_count: int = 0
    man_hours: float = 0.0
    cost_labor: float = 0.0
    cost_parts: float = 0.0
    cost_external: float = 0.0
    internal_cost: float = 0.0
    external_cost: float = 0.0

    # Budget integration
    budget_clause_id: Optional[str] = None
    budget_period: Optional[str] = None
    is_budget_affecting: bool = False
    linked_actual_spend_id: Optional[str] = None

    # Append-only logs
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    milestone_history: List[MilestoneHistoryEntry] = Field(default_factory=list)
    cost_audit_trail: List[CostAuditEntry] = Field(default_factory=list)

    # Owned sub-entities
    part_requests: List[PartRequest] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    attachments_meta: List[AttachmentMeta] = Field(default_factory=list)

    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None
    updated_by: Optional[str] = None
    version: int = 1

    def milestones(self) -> MilestoneTimestamps:
        """Milestone fields as a standalone timeline"""
        return MilestoneTimestamps(**{m.value: getattr(self, m.value) for m in Milestone})

    def metrics(self) -> DowntimeMetrics:
        """Stored metric fields"""
        return DowntimeMetrics(
            technical_time_hours=self.technical_time_hours,
            procurement_time_hours=self.procurement_time_hours,
            ops_time_hours=self.ops_time_hours,
            total_downtime_hours=self.total_downtime_hours,
        )

    @property
    def total_cost(self) -> float:
        """Total spend booked against the event"""
        simplified = self.internal_cost + self.external_cost
        if simplified > 0:
            return simplified
        return self.cost_labor + self.cost_parts + self.cost_external


class AOGEventView(AOGEvent):
    """Event as returned by read paths, with derived fields"""
    is_legacy: bool = False
    downtime_hours: Optional[float] = None


class AOGEventCreate(BaseModel):
    """Fields accepted when reporting a new event"""
    aircraft_id: str = Field(..., min_length=1)
    detected_at: UtcDatetime
    cleared_at: Optional[UtcDatetime] = None
    category: AOGCategory = AOGCategory.AOG
    reason_code: str = Field(..., min_length=1)
    responsible_party: ResponsibleParty
    location: Optional[str] = None
    action_taken: Optional[str] = None

    reported_at: Optional[UtcDatetime] = None
    procurement_requested_at: Optional[UtcDatetime] = None
    available_at_store_at: Optional[UtcDatetime] = None
    issued_back_at: Optional[UtcDatetime] = None
    installation_complete_at: Optional[UtcDatetime] = None
    test_start_at: Optional[UtcDatetime] = None
    up_and_running_at: Optional[UtcDatetime] = None

    manpower_count: int = Field(0, ge=0)
    man_hours: float = Field(0.0, ge=0)
    cost_labor: float = Field(0.0, ge=0)
    cost_parts: float = Field(0.0, ge=0)
    cost_external: float = Field(0.0, ge=0)
    internal_cost: float = Field(0.0, ge=0)
    external_cost: float = Field(0.0, ge=0)

    budget_clause_id: Optional[str] = None
    budget_period: Optional[str] = None
    is_budget_affecting: bool = False
    attachments: List[str] = Field(default_factory=list)


class AOGEventUpdate(BaseModel):
    """
    Partial update of an event.

    Fields left out of the payload keep their stored value, fields sent as
    null are cleared, anything else replaces the stored value. Read the
    provided set with model_dump(exclude_unset=True).
    """
    aircraft_id: Optional[str] = None
    detected_at: Optional[UtcDatetime] = None
    cleared_at: Optional[UtcDatetime] = None
    category: Optional[AOGCategory] = None
    reason_code: Optional[str] = None
    responsible_party: Optional[ResponsibleParty] = None
    location: Optional[str] = None
    action_taken: Optional[str] = None

    reported_at: Optional[UtcDatetime] = None
    procurement_requested_at: Optional[UtcDatetime] = None
    available_at_store_at: Optional[UtcDatetime] = None
    issued_back_at: Optional[UtcDatetime] = None
    installation_complete_at: Optional[UtcDatetime] = None
    test_start_at: Optional[UtcDatetime] = None
    up_and_running_at: Optional[UtcDatetime] = None

    manpower_count: Optional[int] = Field(None, ge=0)
    man_hours: Optional[float] = Field(None, ge=0)
    cost_labor: Optional[float] = Field(None, ge=0)
    cost_parts: Optional[float] = Field(None, ge=0)
    cost_external: Optional[float] = Field(None, ge=0)
    internal_cost: Optional[float] = Field(None, ge=0)
    external_cost: Optional[float] = Field(None, ge=0)
    cost_change_reason: Optional[str] = None

    def provided(self) -> Dict[str, Any]:
        """Fields present in the payload, explicit nulls included"""
        return self.model_dump(exclude_unset=True, exclude={"cost_change_reason"})


# ============================================================================
# Filters
# ============================================================================

class AOGEventFilter(BaseModel):
    """List filter for events"""
    aircraft_id: Optional[str] = None
    responsible_party: Optional[ResponsibleParty] = None
    category: Optional[AOGCategory] = None
    current_status: Optional[AOGWorkflowStatus] = None
    blocking_reason: Optional[BlockingReason] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None


class AnalyticsFilter(BaseModel):
    """Filter for analytics; date range applies to reported_at, falling back to detected_at"""
    aircraft_id: Optional[str] = None
    fleet_group: Optional[str] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None


# ============================================================================
# Registry & Budget
# ============================================================================

class Aircraft(BaseModel):
    """Aircraft registry entry (read-only here)"""
    model_config = ConfigDict(extra="ignore")

    aircraft_id: str
    registration: str
    fleet_group: Optional[str] = None
    aircraft_type: Optional[str] = None
    msn: Optional[str] = None
    owner: Optional[str] = None
    status: Optional[str] = None


class ActualSpend(BaseModel):
    """Actual spend booked from an event"""
    spend_id: str
    budget_clause_id: str
    budget_period: str
    aircraft_id: str
    amount: float
    currency: str = "USD"
    source_event_id: str
    notes: Optional[str] = None
    created_by: str
    created_at: UtcDatetime
