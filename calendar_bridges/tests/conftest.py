import datetime

import pytest
from model_bakery import baker

from calendar_bridges.models import ResourceMapping
from calendar_bridges.registry import BridgeRegistry
from calendar_bridges.tests.fake_bridges import InMemoryBridge
from reservations.models import Resource


@pytest.fixture
def slot_start():
    return datetime.datetime(2025, 3, 10, 9, 0, tzinfo=datetime.UTC)


@pytest.fixture
def slot_end(slot_start):
    return slot_start + datetime.timedelta(hours=1)


@pytest.fixture
def resource(db):
    return baker.make(Resource, name="Main Hall", active=True)


@pytest.fixture
def resource_mapping(resource):
    return baker.make(
        ResourceMapping,
        resource=resource,
        remote_calendar_id="remote-calendar-1",
        remote_calendar_name="Main Hall calendar",
        active=True,
    )


@pytest.fixture
def bridge_registry():
    registry = BridgeRegistry()
    registry.register("source", InMemoryBridge)
    registry.register("target", InMemoryBridge)
    registry.register("remote_calendar", InMemoryBridge)
    return registry


@pytest.fixture
def source_bridge(bridge_registry):
    return bridge_registry.get("source")


@pytest.fixture
def target_bridge(bridge_registry):
    return bridge_registry.get("target")


@pytest.fixture
def remote_bridge(bridge_registry):
    return bridge_registry.get("remote_calendar")
