import datetime
import logging
import time
from typing import Any, ClassVar

from calendar_bridges.constants import BridgeHealthStatus
from calendar_bridges.services.dataclasses import BridgeHealthTypedDict


logger = logging.getLogger(__name__)


class BaseCalendarBridge:
    """
    Shared behaviour of the bundled bridges: configuration handling, capability reporting
    and a health check that times a calendar listing. Concrete bridges set `bridge_type` and
    `capabilities`, implement the calendar and event operations of the bridge contract and
    list in `dependencies` the collaborators the registry passes them as keyword arguments.
    """

    bridge_type: ClassVar[str]
    capabilities: ClassVar[frozenset[str]] = frozenset()
    dependencies: ClassVar[tuple[str, ...]] = ()

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config: dict[str, Any] = dict(config or {})
        self.validate_config()
        self.initialize()

    def validate_config(self) -> None:
        """Raise `BridgeConfigurationError` when required settings are missing."""

    def initialize(self) -> None:
        """Set up clients or collaborators once the configuration is validated."""

    def close(self) -> None:
        """Release resources held by the bridge."""

    def get_bridge_type(self) -> str:
        return str(self.bridge_type)

    def get_capabilities(self) -> frozenset[str]:
        return frozenset(str(capability) for capability in self.capabilities)

    def health_check(self) -> BridgeHealthTypedDict:
        started_at = time.perf_counter()
        timestamp = datetime.datetime.now(tz=datetime.UTC).isoformat()
        try:
            calendars = self.get_calendars()  # type: ignore[attr-defined]
        except Exception as e:  # noqa: BLE001
            logger.warning("Health check failed for %s bridge: %s", self.get_bridge_type(), e)
            return {
                "status": BridgeHealthStatus.UNHEALTHY,
                "bridge_type": self.get_bridge_type(),
                "error": str(e),
                "timestamp": timestamp,
            }

        return {
            "status": BridgeHealthStatus.HEALTHY,
            "bridge_type": self.get_bridge_type(),
            "response_time_ms": round((time.perf_counter() - started_at) * 1000, 2),
            "calendars_count": len(calendars),
            "capabilities": sorted(self.get_capabilities()),
            "timestamp": timestamp,
        }

