"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


class InvalidTimestampOrderError(ValidationError):
    """A later milestone precedes an earlier one"""
    error_code = "INVALID_TIMESTAMP_ORDER"
    http_status = 422


class WorkflowDefinitionError(ValidationError):
    """Status graph is malformed (unknown state or cycle)"""
    error_code = "WORKFLOW_DEFINITION_ERROR"
    http_status = 500


# Transition Errors
class TransitionError(DomainError):
    """Status transition rejected"""
    error_code = "TRANSITION_ERROR"
    http_status = 400


class InvalidTransitionError(TransitionError):
    """Target status is not a permitted successor"""
    error_code = "INVALID_TRANSITION"


class BlockingReasonRequiredError(TransitionError):
    """Entering a blocking state without a blocking reason"""
    error_code = "BLOCKING_REASON_REQUIRED"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class AOGNotFoundError(NotFoundError):
    """AOG event not found"""
    error_code = "AOG_NOT_FOUND"


class PartNotFoundError(NotFoundError):
    """Part request not found on the event"""
    error_code = "PART_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class ConcurrencyError(ConflictError):
    """Optimistic concurrency conflict"""
    error_code = "CONCURRENCY_CONFLICT"


# Budget Linking Errors
class BudgetLinkError(DomainError):
    """Actual spend could not be generated for the event"""
    error_code = "BUDGET_LINK_ERROR"
    http_status = 400


class DuplicateSpendError(BudgetLinkError):
    """Event already linked to an actual spend"""
    error_code = "DUPLICATE_SPEND"
    http_status = 409


class NotBudgetAffectingError(BudgetLinkError):
    """Event is not flagged as budget affecting"""
    error_code = "NOT_BUDGET_AFFECTING"


class MissingBudgetMappingError(BudgetLinkError):
    """Budget clause or period missing"""
    error_code = "MISSING_BUDGET_MAPPING"


class NoCostsError(BudgetLinkError):
    """Event carries no costs to book"""
    error_code = "NO_COSTS"
