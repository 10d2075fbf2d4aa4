"""Milestone Timeline - Ordering invariant and defaults for the seven milestones"""
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..domain.enums import Milestone
from ..domain.errors import InvalidTimestampOrderError
from ..domain.models import MilestoneTimestamps
from ..utils.time import ensure_utc, format_iso

# Chronological order; declaration order of the enum
MILESTONE_ORDER: Tuple[Milestone, ...] = tuple(Milestone)


def apply_defaults(
    milestones: MilestoneTimestamps,
    detected_at: Optional[datetime],
    cleared_at: Optional[datetime]
) -> MilestoneTimestamps:
    """
    Fill reported_at from detected_at and up_and_running_at from cleared_at

    Defaults are applied before validation so they take part in the ordering check.
    """
    updates: Dict[str, Any] = {}
    if milestones.reported_at is None and detected_at is not None:
        updates[Milestone.REPORTED_AT.value] = ensure_utc(detected_at)
    if milestones.up_and_running_at is None and cleared_at is not None:
        updates[Milestone.UP_AND_RUNNING_AT.value] = ensure_utc(cleared_at)
    if not updates:
        return milestones
    return milestones.model_copy(update=updates)


def validate_milestone_order(milestones: MilestoneTimestamps) -> None:
    """
    Check that non-null milestones never go backwards

    Nulls are skipped; each value is compared with the nearest earlier
    non-null milestone.

    Raises:
        InvalidTimestampOrderError: naming the offending pair
    """
    previous: Optional[Tuple[Milestone, datetime]] = None
    for milestone, value in milestones.ordered():
        if value is None:
            continue
        if previous is not None and value < previous[1]:
            raise _order_error(previous[0].value, previous[1], milestone.value, value)
        previous = (milestone, value)


def validate_detection_window(detected_at: datetime, cleared_at: Optional[datetime]) -> None:
    """Cleared time may not precede detection"""
    if cleared_at is not None and ensure_utc(cleared_at) < ensure_utc(detected_at):
        raise _order_error("detected_at", detected_at, "cleared_at", cleared_at)


def merge_milestones(
    stored: MilestoneTimestamps,
    provided: Mapping[str, Any]
) -> MilestoneTimestamps:
    """
    Overlay provided milestone values on the stored timeline

    A key missing from provided keeps the stored value; a key mapped to
    None clears it.
    """
    overlay = {m.value: provided[m.value] for m in MILESTONE_ORDER if m.value in provided}
    if not overlay:
        return stored
    return stored.model_copy(update=overlay)


def changed_milestones(
    stored: MilestoneTimestamps,
    provided: Mapping[str, Any]
) -> List[Tuple[Milestone, datetime]]:
    """Milestones set to a new non-null value by provided"""
    changes = []
    for milestone in MILESTONE_ORDER:
        if milestone.value not in provided:
            continue
        new_value = provided[milestone.value]
        if new_value is None:
            continue
        new_value = ensure_utc(new_value)
        if new_value != getattr(stored, milestone.value):
            changes.append((milestone, new_value))
    return changes


def present_milestones(milestones: MilestoneTimestamps) -> List[Tuple[Milestone, datetime]]:
    """Non-null milestones in order"""
    return [(m, value) for m, value in milestones.ordered() if value is not None]


def _order_error(
    previous_field: str,
    previous_value: datetime,
    current_field: str,
    current_value: datetime
) -> InvalidTimestampOrderError:
    return InvalidTimestampOrderError(
        f"Timestamp {current_field} cannot be before {previous_field}",
        details={
            "field": current_field,
            "constraint": f"{current_field} must be >= {previous_field}",
            "previous_milestone": previous_field,
            "previous_value": format_iso(previous_value),
            "current_milestone": current_field,
            "current_value": format_iso(current_value),
        }
    )
