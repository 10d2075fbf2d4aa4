"""
AOG Event Sub-entity Routes

Part requests, attachment references and budget linking. None of these
touch the workflow status or the downtime metrics.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...deps import get_actor_dep, get_correlation_id_dep
from ....domain.models import (
    ActorContext, AOGEventView, PartRequest, PartRequestCreate, PartRequestUpdate,
    ActualSpend
)
from ....domain.errors import DomainError
from ....services.aog_event_service import AOGEventService
from ....utils.logger import get_logger
from .schemas import (
    PartsCostResponse, AttachmentRequest, BudgetIntegrationRequest, ActualSpendRequest
)

logger = get_logger(__name__)
router = APIRouter()


# =============================================================================
# Part Requests
# =============================================================================

@router.post("/{event_id}/parts", response_model=PartRequest, status_code=status.HTTP_201_CREATED)
def add_part_request(
    event_id: str,
    request: PartRequestCreate,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Add a part request in REQUESTED status"""
    try:
        return AOGEventService().add_part_request(event_id, request, actor)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.patch("/{event_id}/parts/{part_request_id}", response_model=PartRequest)
def update_part_request(
    event_id: str,
    part_request_id: str,
    request: PartRequestUpdate,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Update a part request (status, costs, shipping details)"""
    try:
        return AOGEventService().update_part_request(event_id, part_request_id, request, actor)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{event_id}/parts/cost", response_model=PartsCostResponse)
def get_parts_cost(
    event_id: str,
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Estimated and actual part spend"""
    try:
        return PartsCostResponse(**AOGEventService().get_parts_cost(event_id))

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


# =============================================================================
# Attachments
# =============================================================================

@router.post("/{event_id}/attachments", response_model=AOGEventView)
def add_attachment(
    event_id: str,
    request: AttachmentRequest,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Reference an uploaded file by storage key"""
    try:
        return AOGEventService().add_attachment(event_id, request.key, actor, filename=request.filename)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.delete("/{event_id}/attachments", response_model=AOGEventView)
def remove_attachment(
    event_id: str,
    key: str = Query(..., min_length=1, description="Storage key to remove"),
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Remove an attachment reference"""
    try:
        return AOGEventService().remove_attachment(event_id, key, actor)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


# =============================================================================
# Budget
# =============================================================================

@router.patch("/{event_id}/budget", response_model=AOGEventView)
def update_budget_integration(
    event_id: str,
    request: BudgetIntegrationRequest,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Map the event to a budget clause and period"""
    try:
        return AOGEventService().update_budget_integration(
            event_id,
            actor,
            budget_clause_id=request.budget_clause_id,
            budget_period=request.budget_period,
            is_budget_affecting=request.is_budget_affecting
        )

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.post(
    "/{event_id}/budget/actual-spend",
    response_model=ActualSpend,
    status_code=status.HTTP_201_CREATED
)
def generate_actual_spend(
    event_id: str,
    request: ActualSpendRequest,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Book the event's costs as an actual spend against its budget clause"""
    try:
        return AOGEventService().generate_actual_spend(
            event_id, actor, currency=request.currency, notes=request.notes
        )

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
