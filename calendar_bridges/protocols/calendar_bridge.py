import datetime
from typing import Any, Protocol

from calendar_bridges.services.dataclasses import BridgeCalendarTypedDict, BridgeHealthTypedDict


# Events travel between bridges as plain dicts carrying at least an "id" key.
BridgeEvent = dict[str, Any]


class CalendarBridge(Protocol):
    """
    Capability contract of one calendar system (a remote calendar service or the local
    reservation system). Implementations are instantiated by the bridge registry with their
    configuration dict plus the collaborators they declare, and are reused for sequential
    calls only.
    """

    def __init__(self, config: dict[str, Any] | None = None, **dependencies: Any) -> None: ...

    def get_bridge_type(self) -> str:
        """
        Return the type identifier of this bridge, e.g. "booking_system".
        """
        ...

    def get_capabilities(self) -> frozenset[str]:
        """
        Return the capability tags this bridge supports.
        """
        ...

    def health_check(self) -> BridgeHealthTypedDict:
        """
        Check whether the underlying calendar system is reachable.
        :return: A dict with at least "status", "bridge_type" and "timestamp".
        """
        ...

    def get_calendars(self) -> list[BridgeCalendarTypedDict]:
        """
        List the calendars exposed by this bridge.
        """
        ...

    def get_events(
        self,
        calendar_id: str,
        start_date: datetime.datetime,
        end_date: datetime.datetime,
    ) -> list[BridgeEvent]:
        """
        Retrieve events of a calendar within a date range.
        :param calendar_id: Bridge-specific calendar identifier.
        :param start_date: Start of the window.
        :param end_date: End of the window.
        :return: List of events, each carrying an "id".
        """
        ...

    def create_event(self, calendar_id: str, event: BridgeEvent) -> str:
        """
        Create an event.
        :param calendar_id: Bridge-specific calendar identifier.
        :param event: Event as read from another bridge.
        :return: Identifier of the created event, empty when nothing was created.
        """
        ...

    def update_event(self, calendar_id: str, event_id: str, event: BridgeEvent) -> bool:
        """
        Update an event.
        :return: True when the update was applied.
        """
        ...

    def delete_event(self, calendar_id: str, event_id: str) -> bool:
        """
        Delete an event.
        :return: True when the event no longer exists.
        """
        ...


BRIDGE_CONTRACT_METHODS = (
    "get_bridge_type",
    "get_capabilities",
    "health_check",
    "get_calendars",
    "get_events",
    "create_event",
    "update_event",
    "delete_event",
)
