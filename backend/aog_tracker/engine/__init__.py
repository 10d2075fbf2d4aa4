"""AOG Engine - Lifecycle rules and downtime attribution"""
from .workflow_definition import WorkflowDefinition, default_workflow
from .transition_validator import TransitionValidator
from .milestone_timeline import validate_milestone_order, apply_defaults
from .downtime_calculator import compute_downtime_metrics, hours_between
from .legacy_adapter import is_legacy_event, compute_legacy_metrics, present_event
from .audit_writer import AuditWriter, HistoryAppend

__all__ = [
    "WorkflowDefinition",
    "default_workflow",
    "TransitionValidator",
    "validate_milestone_order",
    "apply_defaults",
    "compute_downtime_metrics",
    "hours_between",
    "is_legacy_event",
    "compute_legacy_metrics",
    "present_event",
    "AuditWriter",
    "HistoryAppend",
]
