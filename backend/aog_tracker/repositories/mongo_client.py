"""MongoDB Client - Connection and Collection Management"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.time import to_storage
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None

AOG_EVENTS = "aog_events"
AIRCRAFT = "aircraft"
ACTUAL_SPENDS = "actual_spends"


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
        )
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def to_document(value: Any) -> Any:
    """
    Convert model output into BSON-friendly values

    Datetimes become naive UTC (what BSON stores and compares), enums
    their plain values. Containers are converted recursively.
    """
    if isinstance(value, datetime):
        return to_storage(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_document(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_document(item) for item in value]
    return value


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # AOG events collection
    events = db[AOG_EVENTS]
    events.create_index("event_id", unique=True)
    events.create_index([("aircraft_id", ASCENDING), ("reported_at", DESCENDING)])
    events.create_index([("current_status", ASCENDING), ("reported_at", DESCENDING)])
    events.create_index([("blocking_reason", ASCENDING), ("current_status", ASCENDING)])
    events.create_index("detected_at", background=True)
    events.create_index("reported_at", background=True)
    events.create_index("created_at", background=True)

    # Aircraft registry
    aircraft = db[AIRCRAFT]
    aircraft.create_index("aircraft_id", unique=True)
    aircraft.create_index("fleet_group")

    # Actual spends booked from events
    spends = db[ACTUAL_SPENDS]
    spends.create_index("spend_id", unique=True)
    spends.create_index("source_event_id")

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
