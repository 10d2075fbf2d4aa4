"""
Pytest Configuration and Fixtures

This file contains shared fixtures and configuration for all tests.
Database-backed tests run against an in-memory mongomock client that is
patched in wherever the repositories look up their collections.
"""

import pytest
import mongomock
from datetime import datetime, timedelta, timezone
from typing import Generator

from aog_tracker.domain.models import ActorContext, AOGEvent, AOGEventCreate, AOGEventView
from aog_tracker.domain.enums import ResponsibleParty
from aog_tracker.engine.legacy_adapter import present_event
from aog_tracker.repositories import aog_event_repo, aircraft_repo, spend_repo

# Whole-second values only; BSON keeps millisecond precision
T0 = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)


@pytest.fixture
def mongo_db(monkeypatch) -> Generator[mongomock.Database, None, None]:
    """Fresh in-memory database per test"""
    client = mongomock.MongoClient()
    db = client["aog_tracker_test"]

    def _get_collection(name: str):
        return db[name]

    for module in (aog_event_repo, aircraft_repo, spend_repo):
        monkeypatch.setattr(module, "get_collection", _get_collection)

    yield db
    client.close()


@pytest.fixture
def actor() -> ActorContext:
    """Maintenance controller making changes"""
    return ActorContext(actor_id="user-mcc-1", role="maintenance_control")


@pytest.fixture
def other_actor() -> ActorContext:
    return ActorContext(actor_id="user-finance-2", role="finance")


@pytest.fixture
def make_event():
    """Factory for in-memory AOGEvent models"""

    def _make(**overrides) -> AOGEvent:
        fields = {
            "event_id": "AOG-test0001",
            "aircraft_id": "AC-001",
            "reason_code": "HYD-LEAK",
            "responsible_party": ResponsibleParty.INTERNAL,
            "detected_at": T0,
        }
        fields.update(overrides)
        return AOGEvent(**fields)

    return _make


@pytest.fixture
def make_view(make_event):
    """Factory for events as the read paths present them"""

    def _make(**overrides) -> AOGEventView:
        return present_event(make_event(**overrides))

    return _make


@pytest.fixture
def make_create():
    """Factory for create payloads"""

    def _make(**overrides) -> AOGEventCreate:
        fields = {
            "aircraft_id": "AC-001",
            "reason_code": "HYD-LEAK",
            "responsible_party": ResponsibleParty.INTERNAL,
            "detected_at": T0,
        }
        fields.update(overrides)
        return AOGEventCreate(**fields)

    return _make


@pytest.fixture
def seed_aircraft(mongo_db):
    """Registry with two fleet groups"""
    mongo_db["aircraft"].insert_many([
        {"aircraft_id": "AC-001", "registration": "HZ-A01", "fleet_group": "A320"},
        {"aircraft_id": "AC-002", "registration": "HZ-A02", "fleet_group": "A320"},
        {"aircraft_id": "AC-003", "registration": "HZ-B01", "fleet_group": "B777"},
    ])
    return mongo_db
