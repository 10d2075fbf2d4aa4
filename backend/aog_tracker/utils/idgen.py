"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone


def generate_id(prefix: str) -> str:
    """
    Generate a prefixed unique ID

    Args:
        prefix: Short entity prefix (e.g. AOG, PRT)

    Returns:
        ID string like AOG-1a2b3c4d5e6f
    """
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def generate_aog_event_id() -> str:
    """Generate AOG event ID"""
    return generate_id("AOG")


def generate_part_request_id() -> str:
    """Generate part request ID"""
    return generate_id("PRT")


def generate_actual_spend_id() -> str:
    """Generate actual spend ID"""
    return generate_id("SPD")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
