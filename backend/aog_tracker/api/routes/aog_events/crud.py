"""
AOG Event CRUD Routes

Report, read, list and update AOG events.
"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...deps import get_actor_dep, get_correlation_id_dep, start_of_day, close_of_day
from ....domain.models import (
    ActorContext, AOGEventCreate, AOGEventUpdate, AOGEventFilter, AOGEventView
)
from ....domain.enums import AOGCategory, AOGWorkflowStatus, BlockingReason, ResponsibleParty
from ....domain.errors import DomainError
from ....services.aog_event_service import AOGEventService
from ....utils.logger import get_logger
from .schemas import AOGEventListResponse, ActiveCountResponse, HistoryResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post("/", response_model=AOGEventView, status_code=status.HTTP_201_CREATED)
def create_event(
    request: AOGEventCreate,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Report a new AOG event

    The event starts in REPORTED with reported_at defaulting to detected_at.
    Milestones must be chronological; computed metrics are returned.
    """
    try:
        service = AOGEventService()
        return service.create_event(request, actor)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/", response_model=AOGEventListResponse)
def list_events(
    aircraft_id: Optional[str] = Query(None, description="Filter by aircraft"),
    responsible_party: Optional[ResponsibleParty] = Query(None),
    category: Optional[AOGCategory] = Query(None),
    current_status: Optional[AOGWorkflowStatus] = Query(None),
    blocking_reason: Optional[BlockingReason] = Query(None),
    start_date: Optional[date] = Query(None, description="Detected on or after (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Detected on or before (YYYY-MM-DD)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """List events, newest first. Legacy records come back with synthesized metrics."""
    event_filter = AOGEventFilter(
        aircraft_id=aircraft_id,
        responsible_party=responsible_party,
        category=category,
        current_status=current_status,
        blocking_reason=blocking_reason,
        start_date=start_of_day(start_date),
        end_date=close_of_day(end_date),
    )
    service = AOGEventService()
    items, total = service.list_events(event_filter, skip=skip, limit=limit)
    return AOGEventListResponse(items=items, total=total, skip=skip, limit=limit)


@router.get("/active", response_model=List[AOGEventView])
def get_active_events(correlation_id: str = Depends(get_correlation_id_dep)):
    """Events that have not been cleared yet"""
    return AOGEventService().get_active_events()


@router.get("/active/count", response_model=ActiveCountResponse)
def count_active_events(correlation_id: str = Depends(get_correlation_id_dep)):
    """Number of events that have not been cleared yet"""
    return ActiveCountResponse(count=AOGEventService().count_active_events())


@router.get("/{event_id}", response_model=AOGEventView)
def get_event(
    event_id: str,
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Get one event"""
    try:
        return AOGEventService().get_event(event_id)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.patch("/{event_id}", response_model=AOGEventView)
def update_event(
    event_id: str,
    request: AOGEventUpdate,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Partially update an event

    Omitted fields are left alone, fields sent as null are cleared.
    Timing changes recompute the metrics; cost changes are audited.
    """
    try:
        service = AOGEventService()
        return service.update_event(event_id, request, actor)

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{event_id}/history", response_model=HistoryResponse)
def get_history(
    event_id: str,
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Status, milestone and cost history of an event"""
    try:
        return HistoryResponse(**AOGEventService().get_history(event_id))

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
