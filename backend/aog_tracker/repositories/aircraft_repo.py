"""Aircraft Repository - Read-only lookups against the aircraft registry"""
from typing import Any, Dict, Iterable, List
from pymongo.collection import Collection

from .mongo_client import get_collection, AIRCRAFT
from ..domain.models import Aircraft


class AircraftRepository:
    """Repository for the aircraft registry"""

    def __init__(self):
        self._aircraft: Collection = get_collection(AIRCRAFT)

    def get_registrations(self, aircraft_ids: Iterable[str]) -> Dict[str, str]:
        """Map aircraft id to registration for the given ids"""
        ids = list(set(aircraft_ids))
        if not ids:
            return {}
        aircraft = self._find({"aircraft_id": {"$in": ids}})
        return {a.aircraft_id: a.registration for a in aircraft}

    def find_ids_by_fleet_group(self, fleet_group: str) -> List[str]:
        """Aircraft ids belonging to a fleet group"""
        return [a.aircraft_id for a in self._find({"fleet_group": fleet_group})]

    def _find(self, query: Dict[str, Any]) -> List[Aircraft]:
        aircraft = []
        for doc in self._aircraft.find(query):
            doc.pop("_id", None)
            aircraft.append(Aircraft.model_validate(doc))
        return aircraft
