from unittest.mock import Mock

import pytest

from calendar_bridges.bridges import (
    BaseCalendarBridge,
    BookingSystemAPIBridge,
    ReservationSystemBridge,
)
from calendar_bridges.constants import BridgeHealthStatus
from calendar_bridges.exceptions import BridgeConfigurationError, BridgeNotFoundError
from calendar_bridges.registry import BridgeRegistry, build_bridge_registry
from calendar_bridges.tests.fake_bridges import InMemoryBridge


class NotABridge:
    def get_events(self, calendar_id, start_date, end_date):
        return []


class BrokenHealthBridge(InMemoryBridge):
    def health_check(self):
        raise RuntimeError("health endpoint down")


class PartialBridge(BaseCalendarBridge):
    bridge_type = "partial"

    def get_calendars(self):
        return []


class TestBridgeRegistry:
    def test_get_instantiates_lazily_and_caches(self):
        registry = BridgeRegistry()
        registry.register("remote", InMemoryBridge, {"failing_event_ids": ["evt-1"]})

        bridge = registry.get("remote")

        assert isinstance(bridge, InMemoryBridge)
        assert bridge.failing_event_ids == {"evt-1"}
        assert registry.get("remote") is bridge

    def test_get_unknown_bridge(self):
        registry = BridgeRegistry()

        with pytest.raises(BridgeNotFoundError) as exc_info:
            registry.get("missing")

        assert exc_info.value.bridge_name == "missing"
        assert str(exc_info.value) == "Calendar bridge 'missing' is not registered."

    def test_register_rejects_incomplete_bridges(self):
        registry = BridgeRegistry()

        with pytest.raises(BridgeConfigurationError, match="missing: get_bridge_type"):
            registry.register("broken", NotABridge)

        assert "broken" not in registry

    def test_register_rejects_base_bridges_without_event_operations(self):
        registry = BridgeRegistry()

        with pytest.raises(
            BridgeConfigurationError,
            match="missing: get_events, create_event, update_event, delete_event",
        ):
            registry.register("partial", PartialBridge)

    def test_get_passes_dependencies_to_the_bridge(self):
        registry = BridgeRegistry()
        service = Mock()
        registry.register(
            "booking_system",
            ReservationSystemBridge,
            dependencies={"calendar_mapping_service": service},
        )

        assert registry.get("booking_system").calendar_mapping_service is service

    def test_reregistering_drops_cached_instance(self):
        registry = BridgeRegistry()
        registry.register("remote", InMemoryBridge)
        first = registry.get("remote")

        registry.register("remote", InMemoryBridge)

        assert registry.get("remote") is not first

    def test_names_and_contains(self):
        registry = BridgeRegistry()
        registry.register("a", InMemoryBridge)
        registry.register("b", InMemoryBridge)

        assert registry.names() == ["a", "b"]
        assert "a" in registry
        assert "c" not in registry

    def test_describe(self):
        registry = BridgeRegistry()
        registry.register("remote", InMemoryBridge)

        info = registry.describe("remote")

        assert info["name"] == "remote"
        assert info["type"] == "in_memory"
        assert info["class_name"] == "InMemoryBridge"
        assert info["capabilities"] == ["read_events", "write_events"]
        assert info["health"]["status"] == BridgeHealthStatus.HEALTHY

    def test_describe_reports_failures(self):
        registry = BridgeRegistry()
        registry.register("broken", BrokenHealthBridge)

        assert registry.describe("broken") == {
            "name": "broken",
            "status": BridgeHealthStatus.ERROR,
            "error": "health endpoint down",
        }

    def test_describe_unknown_bridge(self):
        with pytest.raises(BridgeNotFoundError):
            BridgeRegistry().describe("missing")

    def test_describe_all(self):
        registry = BridgeRegistry()
        registry.register("a", InMemoryBridge)
        registry.register("b", BrokenHealthBridge)

        described = registry.describe_all()

        assert list(described) == ["a", "b"]
        assert described["b"]["status"] == BridgeHealthStatus.ERROR

    def test_close(self):
        registry = BridgeRegistry()
        registry.register("a", InMemoryBridge)
        registry.register("b", InMemoryBridge)
        bridge = registry.get("a")
        bridge_b = registry.get("b")
        bridge_b.close = Mock(side_effect=RuntimeError("already closed"))

        registry.close()

        assert bridge.closed is True
        bridge_b.close.assert_called_once_with()
        assert registry.get("a") is not bridge


class TestBuildBridgeRegistry:
    def test_builds_configured_bridges(self):
        mapping_service = Mock()
        registry = build_bridge_registry(
            {
                "booking_system": {"type": "booking_system"},
                "booking_api": {
                    "type": "booking_system_api",
                    "config": {"api_base_url": "https://booking.example.com/"},
                },
            },
            bridge_dependencies={"calendar_mapping_service": mapping_service},
        )

        assert registry.names() == ["booking_system", "booking_api"]
        booking_bridge = registry.get("booking_system")
        assert isinstance(booking_bridge, ReservationSystemBridge)
        assert booking_bridge.calendar_mapping_service is mapping_service
        api_bridge = registry.get("booking_api")
        assert isinstance(api_bridge, BookingSystemAPIBridge)
        assert api_bridge.api_base_url == "https://booking.example.com"

    def test_missing_bridge_dependency_is_raised_on_first_use(self):
        registry = build_bridge_registry({"booking_system": {"type": "booking_system"}})

        with pytest.raises(BridgeConfigurationError, match="calendar mapping service"):
            registry.get("booking_system")

    def test_unknown_bridge_type(self):
        with pytest.raises(BridgeConfigurationError, match="Unknown calendar bridge type"):
            build_bridge_registry({"remote": {"type": "carrier_pigeon"}})

    def test_empty_settings(self):
        assert build_bridge_registry(None).names() == []

    def test_invalid_bridge_config_is_raised_on_first_use(self):
        registry = build_bridge_registry({"booking_api": {"type": "booking_system_api"}})

        with pytest.raises(BridgeConfigurationError, match="api_base_url"):
            registry.get("booking_api")
