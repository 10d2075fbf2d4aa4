"""
AOG Event Lifecycle Routes

Status transitions along the AOG workflow graph.
"""

from fastapi import APIRouter, Depends, HTTPException

from ...deps import get_actor_dep, get_correlation_id_dep
from ....domain.models import ActorContext, AOGEventView
from ....domain.errors import DomainError
from ....services.aog_event_service import AOGEventService
from ....utils.logger import get_logger
from .schemas import TransitionRequest, AllowedTransitionsResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post("/{event_id}/transitions", response_model=AOGEventView)
def transition_status(
    event_id: str,
    request: TransitionRequest,
    actor: ActorContext = Depends(get_actor_dep),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Move an event to its next status

    FINANCE_APPROVAL_PENDING, IN_TRANSIT, AT_PORT and CUSTOMS_CLEARANCE
    require a blocking_reason. Reaching BACK_IN_SERVICE or CLOSED stamps
    cleared_at if it is not set yet.
    """
    try:
        service = AOGEventService()
        return service.transition_status(
            event_id=event_id,
            to_status=request.to_status,
            actor=actor,
            notes=request.notes,
            blocking_reason=request.blocking_reason,
            metadata=request.metadata
        )

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{event_id}/allowed-transitions", response_model=AllowedTransitionsResponse)
def get_allowed_transitions(
    event_id: str,
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Statuses the event may move to next"""
    try:
        return AllowedTransitionsResponse(**AOGEventService().get_allowed_transitions(event_id))

    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
