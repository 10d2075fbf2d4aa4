"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class AOGWorkflowStatus(str, Enum):
    """Workflow state of an AOG event"""
    REPORTED = "REPORTED"
    TROUBLESHOOTING = "TROUBLESHOOTING"
    ISSUE_IDENTIFIED = "ISSUE_IDENTIFIED"
    RESOLVED_NO_PARTS = "RESOLVED_NO_PARTS"
    PART_REQUIRED = "PART_REQUIRED"
    PROCUREMENT_REQUESTED = "PROCUREMENT_REQUESTED"
    FINANCE_APPROVAL_PENDING = "FINANCE_APPROVAL_PENDING"  # Blocking
    ORDER_PLACED = "ORDER_PLACED"
    IN_TRANSIT = "IN_TRANSIT"  # Blocking
    AT_PORT = "AT_PORT"  # Blocking
    CUSTOMS_CLEARANCE = "CUSTOMS_CLEARANCE"  # Blocking
    RECEIVED_IN_STORES = "RECEIVED_IN_STORES"
    ISSUED_TO_MAINTENANCE = "ISSUED_TO_MAINTENANCE"
    INSTALLED_AND_TESTED = "INSTALLED_AND_TESTED"
    ENGINE_RUN_REQUESTED = "ENGINE_RUN_REQUESTED"
    ENGINE_RUN_COMPLETED = "ENGINE_RUN_COMPLETED"
    BACK_IN_SERVICE = "BACK_IN_SERVICE"  # Terminal
    CLOSED = "CLOSED"  # Terminal


class BlockingReason(str, Enum):
    """External dependency holding up a blocked event"""
    FINANCE = "Finance"
    PORT = "Port"
    CUSTOMS = "Customs"
    VENDOR = "Vendor"
    OPS = "Ops"
    OTHER = "Other"


class ResponsibleParty(str, Enum):
    """Party accountable for the downtime"""
    INTERNAL = "Internal"
    OEM = "OEM"
    CUSTOMS = "Customs"
    FINANCE = "Finance"
    OTHER = "Other"


class AOGCategory(str, Enum):
    """Event category"""
    SCHEDULED = "scheduled"
    UNSCHEDULED = "unscheduled"
    AOG = "aog"


class PartRequestStatus(str, Enum):
    """Lifecycle of a part request owned by an event"""
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    ORDERED = "ORDERED"
    SHIPPED = "SHIPPED"
    RECEIVED = "RECEIVED"
    ISSUED = "ISSUED"


class Milestone(str, Enum):
    """Named milestone timestamps, declared in chronological order"""
    REPORTED_AT = "reported_at"
    PROCUREMENT_REQUESTED_AT = "procurement_requested_at"
    AVAILABLE_AT_STORE_AT = "available_at_store_at"
    ISSUED_BACK_AT = "issued_back_at"
    INSTALLATION_COMPLETE_AT = "installation_complete_at"
    TEST_START_AT = "test_start_at"
    UP_AND_RUNNING_AT = "up_and_running_at"


class CostField(str, Enum):
    """Cost fields tracked by the cost audit trail"""
    COST_LABOR = "cost_labor"
    COST_PARTS = "cost_parts"
    COST_EXTERNAL = "cost_external"


class InsightType(str, Enum):
    """Severity of an automated insight, highest first"""
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"
