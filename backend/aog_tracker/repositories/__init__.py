"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection
from .aog_event_repo import AOGEventRepository
from .aircraft_repo import AircraftRepository
from .spend_repo import ActualSpendRepository

__all__ = [
    "get_database",
    "get_collection",
    "AOGEventRepository",
    "AircraftRepository",
    "ActualSpendRepository",
]
