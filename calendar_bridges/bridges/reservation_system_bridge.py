import datetime
from typing import Any

from calendar_bridges.bridges.base import BaseCalendarBridge
from calendar_bridges.constants import BridgeCapability, BridgeType
from calendar_bridges.exceptions import BridgeConfigurationError, BridgeOperationError
from calendar_bridges.protocols.calendar_bridge import BridgeEvent
from calendar_bridges.services.calendar_mapping_service import CalendarMappingService
from calendar_bridges.services.dataclasses import BridgeCalendarTypedDict
from reservations.models import Resource


class ReservationSystemBridge(BaseCalendarBridge):
    """
    Exposes the local reservation system as a bridge. Calendars are active resources and
    events are the unified, conflict-resolved calendar items of a resource, identified as
    "<item type>:<reservation id>". Reservations are managed in the reservation system
    itself, so this bridge is read-only.
    """

    bridge_type = BridgeType.BOOKING_SYSTEM
    capabilities = frozenset(
        {
            BridgeCapability.READ_EVENTS,
            BridgeCapability.CALENDAR_DISCOVERY,
            BridgeCapability.PRIORITY_RESOLUTION,
        }
    )

    dependencies = ("calendar_mapping_service",)

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        calendar_mapping_service: CalendarMappingService | None = None,
    ) -> None:
        self.calendar_mapping_service = calendar_mapping_service
        super().__init__(config)

    def initialize(self) -> None:
        if self.calendar_mapping_service is None:
            raise BridgeConfigurationError(
                "The reservation system bridge requires a calendar mapping service."
            )

    def get_calendars(self) -> list[BridgeCalendarTypedDict]:
        return [
            {
                "id": str(resource.id),
                "name": resource.name,
                "description": resource.description,
                "bridge_type": self.get_bridge_type(),
            }
            for resource in Resource.objects.filter(active=True).order_by("id")
        ]

    def get_events(
        self,
        calendar_id: str,
        start_date: datetime.datetime,
        end_date: datetime.datetime,
    ) -> list[BridgeEvent]:
        try:
            resource_id = int(calendar_id)
        except (TypeError, ValueError) as e:
            raise BridgeOperationError(
                f"Calendar id '{calendar_id}' is not a resource id.", status_code=400
            ) from e

        items = self.calendar_mapping_service.unify_calendar_items(
            resource_id=resource_id, from_date=start_date, to_date=end_date
        )
        return [
            item.to_bridge_event()
            for item in self.calendar_mapping_service.resolve_time_conflicts(items)
        ]

    def create_event(self, calendar_id: str, event: BridgeEvent) -> str:
        raise BridgeOperationError("The reservation system bridge is read-only.")

    def update_event(self, calendar_id: str, event_id: str, event: BridgeEvent) -> bool:
        raise BridgeOperationError("The reservation system bridge is read-only.")

    def delete_event(self, calendar_id: str, event_id: str) -> bool:
        raise BridgeOperationError("The reservation system bridge is read-only.")
