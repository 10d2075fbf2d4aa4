"""Transition Validator - Enforce the AOG status graph"""
from typing import List, Optional

from ..domain.enums import AOGWorkflowStatus, BlockingReason
from ..domain.errors import InvalidTransitionError, BlockingReasonRequiredError
from .workflow_definition import WorkflowDefinition, default_workflow
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TransitionValidator:
    """
    Validate status transitions against a workflow definition

    Given current status F, target T and an optional blocking reason:
    1. T must be in the successor set of F
    2. If T is a blocking state, a blocking reason is mandatory
    """

    def __init__(self, definition: Optional[WorkflowDefinition] = None):
        self.definition = definition or default_workflow()

    def validate(
        self,
        from_status: AOGWorkflowStatus,
        to_status: AOGWorkflowStatus,
        blocking_reason: Optional[BlockingReason] = None
    ) -> None:
        """
        Validate a transition

        Raises:
            InvalidTransitionError: If T is not a permitted successor of F
            BlockingReasonRequiredError: If T is blocking and no reason given
        """
        allowed = self.definition.successors(from_status)
        if to_status not in allowed:
            logger.info(
                f"Rejected transition {from_status.value} -> {to_status.value}",
                extra={"from_status": from_status.value, "to_status": to_status.value}
            )
            raise InvalidTransitionError(
                f"Cannot transition from {from_status.value} to {to_status.value}",
                details={
                    "from_status": from_status.value,
                    "to_status": to_status.value,
                    "allowed_transitions": sorted(s.value for s in allowed)
                }
            )

        if self.definition.requires_blocking_reason(to_status) and blocking_reason is None:
            raise BlockingReasonRequiredError(
                f"Blocking reason required for status {to_status.value}",
                details={"to_status": to_status.value}
            )

    def allowed_transitions(self, status: AOGWorkflowStatus) -> List[AOGWorkflowStatus]:
        """Permitted targets from a status, in declaration order"""
        allowed = self.definition.successors(status)
        return [s for s in AOGWorkflowStatus if s in allowed]

    def resolve_blocking_reason(
        self,
        to_status: AOGWorkflowStatus,
        blocking_reason: Optional[BlockingReason]
    ) -> Optional[BlockingReason]:
        """Blocking reason to store after entering to_status; cleared outside blocking states"""
        if self.definition.requires_blocking_reason(to_status):
            return blocking_reason
        return None

    def is_terminal(self, status: AOGWorkflowStatus) -> bool:
        return self.definition.is_terminal(status)

    def is_blocking(self, status: AOGWorkflowStatus) -> bool:
        return self.definition.requires_blocking_reason(status)
