"""
AOG Event Schemas

Request and response models for AOG event API endpoints.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from ....domain.enums import AOGWorkflowStatus, BlockingReason
from ....domain.models import (
    AOGEventView, StatusHistoryEntry, MilestoneHistoryEntry, CostAuditEntry,
    TransitionMetadata
)


# =============================================================================
# Event Schemas
# =============================================================================

class AOGEventListResponse(BaseModel):
    """Response for event list"""
    items: List[AOGEventView]
    total: int
    skip: int
    limit: int


class ActiveCountResponse(BaseModel):
    count: int


class HistoryResponse(BaseModel):
    """Append-only logs of an event"""
    event_id: str
    status_history: List[StatusHistoryEntry]
    milestone_history: List[MilestoneHistoryEntry]
    cost_audit_trail: List[CostAuditEntry]


# =============================================================================
# Lifecycle Schemas
# =============================================================================

class TransitionRequest(BaseModel):
    """Request to move an event to a new status"""
    to_status: AOGWorkflowStatus
    notes: Optional[str] = Field(None, max_length=5000)
    blocking_reason: Optional[BlockingReason] = None
    metadata: Optional[TransitionMetadata] = None


class AllowedTransitionsResponse(BaseModel):
    event_id: str
    current_status: AOGWorkflowStatus
    allowed_transitions: List[AOGWorkflowStatus]
    blocking_states: List[AOGWorkflowStatus]


# =============================================================================
# Sub-entity Schemas
# =============================================================================

class PartsCostResponse(BaseModel):
    event_id: str
    part_count: int
    total_estimated_cost: float
    total_actual_cost: float


class AttachmentRequest(BaseModel):
    """Reference to a file already placed in the attachment store"""
    key: str = Field(..., min_length=1, max_length=1024)
    filename: Optional[str] = Field(None, max_length=500)


class BudgetIntegrationRequest(BaseModel):
    budget_clause_id: Optional[str] = None
    budget_period: Optional[str] = Field(None, description="Budget period, e.g. 2024-01")
    is_budget_affecting: Optional[bool] = None


class ActualSpendRequest(BaseModel):
    currency: str = Field("USD", min_length=3, max_length=3)
    notes: Optional[str] = Field(None, max_length=2000)
