from calendar_bridges.bridges.base import BaseCalendarBridge
from calendar_bridges.bridges.booking_system_api_bridge import BookingSystemAPIBridge
from calendar_bridges.bridges.reservation_system_bridge import ReservationSystemBridge
from calendar_bridges.constants import BridgeType


# Bridge implementations selectable by the "type" of a CALENDAR_BRIDGES entry.
BRIDGE_CLASSES: dict[str, type[BaseCalendarBridge]] = {
    BridgeType.BOOKING_SYSTEM: ReservationSystemBridge,
    BridgeType.BOOKING_SYSTEM_API: BookingSystemAPIBridge,
}


__all__ = [
    "BRIDGE_CLASSES",
    "BaseCalendarBridge",
    "BookingSystemAPIBridge",
    "ReservationSystemBridge",
]
