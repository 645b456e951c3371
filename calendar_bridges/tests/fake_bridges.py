import copy
import datetime
import itertools
from typing import Any

from calendar_bridges.constants import BridgeCapability, BridgeHealthStatus
from calendar_bridges.exceptions import BridgeOperationError


class InMemoryBridge:
    """
    Calendar bridge test double keeping its calendars in memory. Every write is recorded in
    `calls` so tests can assert on what was propagated.
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = dict(config or {})
        self.calendars: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.failing_event_ids: set[str] = set(self.config.get("failing_event_ids", []))
        self.refuse_updates = False
        self.refuse_deletes = False
        self.closed = False
        self._ids = itertools.count(1)

    def add_event(self, calendar_id: str, event: dict[str, Any]) -> None:
        self.calendars.setdefault(calendar_id, {})[str(event["id"])] = copy.deepcopy(event)

    def remove_event(self, calendar_id: str, event_id: str) -> None:
        self.calendars.get(calendar_id, {}).pop(event_id, None)

    def get_bridge_type(self) -> str:
        return "in_memory"

    def get_capabilities(self) -> frozenset[str]:
        return frozenset({BridgeCapability.READ_EVENTS, BridgeCapability.WRITE_EVENTS})

    def health_check(self):
        return {
            "status": BridgeHealthStatus.HEALTHY,
            "bridge_type": self.get_bridge_type(),
            "calendars_count": len(self.calendars),
            "timestamp": datetime.datetime.now(tz=datetime.UTC).isoformat(),
        }

    def get_calendars(self):
        return [{"id": calendar_id, "name": calendar_id} for calendar_id in self.calendars]

    def get_events(self, calendar_id, start_date, end_date):
        return [copy.deepcopy(event) for event in self.calendars.get(calendar_id, {}).values()]

    def create_event(self, calendar_id, event):
        event_id = str(event.get("id", ""))
        self.calls.append(("create", calendar_id, event_id))
        if event_id in self.failing_event_ids:
            raise BridgeOperationError(f"Remote calendar rejected {event_id}")
        new_id = f"remote-{next(self._ids)}"
        self.add_event(calendar_id, {**event, "id": new_id})
        return new_id

    def update_event(self, calendar_id, event_id, event):
        self.calls.append(("update", calendar_id, event_id))
        if self.refuse_updates or event_id not in self.calendars.get(calendar_id, {}):
            return False
        self.add_event(calendar_id, {**event, "id": event_id})
        return True

    def delete_event(self, calendar_id, event_id):
        self.calls.append(("delete", calendar_id, event_id))
        if self.refuse_deletes:
            return False
        self.remove_event(calendar_id, event_id)
        return True

    def close(self) -> None:
        self.closed = True
