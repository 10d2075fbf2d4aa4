"""API Dependencies - Common dependencies for routes"""
from datetime import date, datetime, time, timezone
from typing import Optional
from fastapi import Header, Query

from ..domain.models import ActorContext, AnalyticsFilter
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id
from ..utils.time import end_of_day


def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


def get_actor_dep(
    x_actor_id: str = Header(..., alias="X-Actor-Id", min_length=1),
    x_actor_role: Optional[str] = Header(None, alias="X-Actor-Role")
) -> ActorContext:
    """
    Caller identity as forwarded by the gateway

    The identity provider authenticates upstream; this service only
    records who acted.
    """
    return ActorContext(actor_id=x_actor_id, role=x_actor_role)


def start_of_day(day: Optional[date]) -> Optional[datetime]:
    if day is None:
        return None
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def close_of_day(day: Optional[date]) -> Optional[datetime]:
    """Inclusive end of a date filter"""
    if day is None:
        return None
    return end_of_day(datetime.combine(day, time.min, tzinfo=timezone.utc))


def get_analytics_filter_dep(
    aircraft_id: Optional[str] = Query(None, description="Limit to one aircraft"),
    fleet_group: Optional[str] = Query(None, description="Limit to a fleet group"),
    start_date: Optional[date] = Query(None, description="Reported on or after (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Reported on or before (YYYY-MM-DD)")
) -> AnalyticsFilter:
    """Analytics query parameters; end_date covers the whole day"""
    return AnalyticsFilter(
        aircraft_id=aircraft_id,
        fleet_group=fleet_group,
        start_date=start_of_day(start_date),
        end_date=close_of_day(end_date),
    )
