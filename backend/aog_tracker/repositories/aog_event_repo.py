"""AOG Event Repository - Data access for AOG events"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pymongo.collection import Collection
from pymongo import DESCENDING

from .mongo_client import get_collection, to_document, AOG_EVENTS
from ..domain.models import AOGEvent, AOGEventFilter
from ..domain.errors import AOGNotFoundError, ConcurrencyError
from ..engine.audit_writer import HistoryAppend
from ..utils.time import utc_now, to_storage
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AOGEventRepository:
    """Repository for AOG event documents"""

    def __init__(self):
        self._events: Collection = get_collection(AOG_EVENTS)

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_event(self, event: AOGEvent) -> AOGEvent:
        """Insert a new event"""
        doc = to_document(event.model_dump())
        doc["_id"] = event.event_id

        self._events.insert_one(doc)
        logger.info(
            f"Created AOG event: {event.event_id}",
            extra={"event_id": event.event_id, "aircraft_id": event.aircraft_id}
        )
        return event

    def get_event(self, event_id: str) -> Optional[AOGEvent]:
        """Get event by ID"""
        doc = self._events.find_one({"event_id": event_id})
        if doc:
            return self._to_model(doc)
        return None

    def get_event_or_raise(self, event_id: str) -> AOGEvent:
        """Get event by ID or raise error"""
        event = self.get_event(event_id)
        if not event:
            raise AOGNotFoundError(
                f"AOG event {event_id} not found",
                details={"event_id": event_id}
            )
        return event

    def update_event(
        self,
        event_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int] = None,
        history: Optional[HistoryAppend] = None
    ) -> AOGEvent:
        """
        Apply field updates and history appends in one atomic write

        With expected_version the write only lands if nobody else has
        updated the event since it was read.
        """
        updates = to_document(dict(updates))
        updates["updated_at"] = to_storage(utc_now())

        filter_query: Dict[str, Any] = {"event_id": event_id}
        if expected_version is not None:
            if expected_version == 1:
                # Records written before versioning carry no version field
                filter_query["$or"] = [{"version": 1}, {"version": None}]
            else:
                filter_query["version"] = expected_version
            updates["version"] = expected_version + 1

        operation: Dict[str, Any] = {"$set": updates}
        if history is not None and not history.is_empty():
            operation["$push"] = {
                log: {"$each": to_document(entries)}
                for log, entries in history.as_push().items()
            }

        result = self._events.find_one_and_update(
            filter_query,
            operation,
            return_document=True
        )

        if result is None:
            if expected_version is not None:
                exists = self._events.find_one({"event_id": event_id})
                if exists:
                    raise ConcurrencyError(
                        f"AOG event {event_id} was modified. Please refresh and try again.",
                        details={"expected_version": expected_version}
                    )
            raise AOGNotFoundError(
                f"AOG event {event_id} not found",
                details={"event_id": event_id}
            )

        logger.info(f"Updated AOG event: {event_id}", extra={"event_id": event_id})
        return self._to_model(result)

    # =========================================================================
    # Queries
    # =========================================================================

    def list_events(
        self,
        event_filter: Optional[AOGEventFilter] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[AOGEvent]:
        """List events matching the filter, newest first"""
        query = self._build_query(event_filter or AOGEventFilter())
        cursor = self._events.find(query).sort("created_at", DESCENDING).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [self._to_model(doc) for doc in cursor]

    def count_events(self, event_filter: Optional[AOGEventFilter] = None) -> int:
        """Count events matching the filter"""
        query = self._build_query(event_filter or AOGEventFilter())
        return self._events.count_documents(query)

    def list_active(self) -> List[AOGEvent]:
        """Events not yet cleared"""
        cursor = self._events.find({"cleared_at": None}).sort("detected_at", DESCENDING)
        return [self._to_model(doc) for doc in cursor]

    def count_active(self) -> int:
        """Number of events not yet cleared"""
        return self._events.count_documents({"cleared_at": None})

    def find_for_analytics(
        self,
        aircraft_ids: Optional[List[str]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[AOGEvent]:
        """
        Snapshot of events for analytics

        The date range applies to reported_at, or to detected_at for
        records that have no reported_at.
        """
        and_conditions: List[Dict[str, Any]] = []

        if aircraft_ids is not None:
            and_conditions.append({"aircraft_id": {"$in": list(aircraft_ids)}})

        if start_date or end_date:
            date_query: Dict[str, Any] = {}
            if start_date:
                date_query["$gte"] = to_storage(start_date)
            if end_date:
                date_query["$lte"] = to_storage(end_date)
            and_conditions.append({"$or": [
                {"reported_at": date_query},
                {"reported_at": None, "detected_at": date_query},
            ]})

        query: Dict[str, Any] = {}
        if len(and_conditions) == 1:
            query = and_conditions[0]
        elif len(and_conditions) > 1:
            query = {"$and": and_conditions}

        return [self._to_model(doc) for doc in self._events.find(query)]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _build_query(self, event_filter: AOGEventFilter) -> Dict[str, Any]:
        """Translate a list filter into a Mongo query"""
        query: Dict[str, Any] = {}
        if event_filter.aircraft_id:
            query["aircraft_id"] = event_filter.aircraft_id
        if event_filter.responsible_party:
            query["responsible_party"] = event_filter.responsible_party.value
        if event_filter.category:
            query["category"] = event_filter.category.value
        if event_filter.current_status:
            query["current_status"] = event_filter.current_status.value
        if event_filter.blocking_reason:
            query["blocking_reason"] = event_filter.blocking_reason.value

        if event_filter.start_date or event_filter.end_date:
            date_query: Dict[str, Any] = {}
            if event_filter.start_date:
                date_query["$gte"] = to_storage(event_filter.start_date)
            if event_filter.end_date:
                date_query["$lte"] = to_storage(event_filter.end_date)
            query["detected_at"] = date_query

        return query

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> AOGEvent:
        doc.pop("_id", None)
        return AOGEvent.model_validate(doc)
