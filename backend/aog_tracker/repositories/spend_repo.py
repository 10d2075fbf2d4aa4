"""Actual Spend Repository - Spend records booked from AOG events"""
from typing import List
from pymongo.collection import Collection

from .mongo_client import get_collection, to_document, ACTUAL_SPENDS
from ..domain.models import ActualSpend
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActualSpendRepository:
    """Repository for actual spend records"""

    def __init__(self):
        self._spends: Collection = get_collection(ACTUAL_SPENDS)

    def create_spend(self, spend: ActualSpend) -> ActualSpend:
        """Insert a spend record"""
        doc = to_document(spend.model_dump())
        doc["_id"] = spend.spend_id
        self._spends.insert_one(doc)
        logger.info(
            f"Created actual spend: {spend.spend_id}",
            extra={"event_id": spend.source_event_id}
        )
        return spend

    def list_for_event(self, event_id: str) -> List[ActualSpend]:
        """Spend records booked from an event"""
        spends = []
        for doc in self._spends.find({"source_event_id": event_id}):
            doc.pop("_id", None)
            spends.append(ActualSpend.model_validate(doc))
        return spends
