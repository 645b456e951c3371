import logging
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any

from calendar_bridges.bridges import BRIDGE_CLASSES
from calendar_bridges.constants import BridgeHealthStatus
from calendar_bridges.exceptions import BridgeConfigurationError, BridgeNotFoundError
from calendar_bridges.protocols.calendar_bridge import BRIDGE_CONTRACT_METHODS, CalendarBridge
from calendar_bridges.services.dataclasses import BridgeInfoTypedDict


logger = logging.getLogger(__name__)


@dataclass
class BridgeRegistration:
    bridge_cls: type[CalendarBridge]
    config: dict[str, Any] = dataclass_field(default_factory=dict)
    dependencies: dict[str, Any] = dataclass_field(default_factory=dict)


class BridgeRegistry:
    """
    Named bridge configurations. Bridges are instantiated lazily on first lookup and the
    instance is reused for every later lookup of the same name.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, BridgeRegistration] = {}
        self._instances: dict[str, CalendarBridge] = {}

    def register(
        self,
        name: str,
        bridge_cls: type[CalendarBridge],
        config: Mapping[str, Any] | None = None,
        dependencies: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Register a bridge class under `name`. Re-registering a name drops its cached instance.
        `dependencies` are passed to the bridge constructor as keyword arguments.
        :raises BridgeConfigurationError: if `bridge_cls` doesn't implement the bridge contract.
        """
        missing = [
            method
            for method in BRIDGE_CONTRACT_METHODS
            if not callable(getattr(bridge_cls, method, None))
        ]
        if not isinstance(bridge_cls, type) or missing:
            raise BridgeConfigurationError(
                f"Bridge '{name}' doesn't implement the calendar bridge contract "
                f"(missing: {', '.join(missing) or 'not a class'})."
            )

        self._registrations[name] = BridgeRegistration(
            bridge_cls=bridge_cls,
            config=dict(config or {}),
            dependencies=dict(dependencies or {}),
        )
        self._instances.pop(name, None)
        logger.info("Calendar bridge registered: %s (%s)", name, bridge_cls.__name__)

    def get(self, name: str) -> CalendarBridge:
        """
        Return the bridge registered under `name`, instantiating it on first use.
        :raises BridgeNotFoundError: if no bridge is registered under `name`.
        """
        registration = self._registrations.get(name)
        if registration is None:
            raise BridgeNotFoundError(name)

        if name not in self._instances:
            self._instances[name] = registration.bridge_cls(
                registration.config, **registration.dependencies
            )
            logger.debug("Calendar bridge instantiated: %s", name)
        return self._instances[name]

    def names(self) -> list[str]:
        return list(self._registrations)

    def __contains__(self, name: object) -> bool:
        return name in self._registrations

    def describe(self, name: str) -> BridgeInfoTypedDict:
        """
        Describe a registered bridge: type, capabilities and current health. Failures while
        building the description are reported in the returned dict instead of raised.
        :raises BridgeNotFoundError: if no bridge is registered under `name`.
        """
        if name not in self._registrations:
            raise BridgeNotFoundError(name)

        try:
            bridge = self.get(name)
            return {
                "name": name,
                "type": bridge.get_bridge_type(),
                "class_name": type(bridge).__name__,
                "capabilities": sorted(bridge.get_capabilities()),
                "health": bridge.health_check(),
            }
        except Exception as e:  # noqa: BLE001
            logger.warning("Failed to describe calendar bridge %s: %s", name, e)
            return {"name": name, "status": BridgeHealthStatus.ERROR, "error": str(e)}

    def describe_all(self) -> dict[str, BridgeInfoTypedDict]:
        return {name: self.describe(name) for name in self.names()}

    def close(self) -> None:
        """Close every instantiated bridge and clear the instance cache."""
        for name, bridge in self._instances.items():
            close = getattr(bridge, "close", None)
            if not callable(close):
                continue
            try:
                close()
            except Exception:
                logger.exception("Failed to close calendar bridge %s", name)
        self._instances.clear()


def build_bridge_registry(
    bridge_settings: Mapping[str, Mapping[str, Any]] | None = None,
    bridge_dependencies: Mapping[str, Any] | None = None,
) -> BridgeRegistry:
    """
    Build a registry from the CALENDAR_BRIDGES setting:
    `{name: {"type": <bridge type>, "config": {...}}}`.
    Each bridge gets the entries of `bridge_dependencies` named in its `dependencies`.
    :raises BridgeConfigurationError: on an unknown bridge type.
    """
    registry = BridgeRegistry()
    available = bridge_dependencies or {}
    for name, bridge_setting in (bridge_settings or {}).items():
        bridge_type = bridge_setting.get("type")
        bridge_cls = BRIDGE_CLASSES.get(bridge_type)  # type: ignore[arg-type]
        if bridge_cls is None:
            raise BridgeConfigurationError(
                f"Unknown calendar bridge type '{bridge_type}' for bridge '{name}'."
            )
        registry.register(
            name,
            bridge_cls,
            bridge_setting.get("config") or {},
            dependencies={
                dependency: available[dependency]
                for dependency in bridge_cls.dependencies
                if dependency in available
            },
        )
    return registry
