import datetime
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, NotRequired, TypedDict

from calendar_bridges.constants import DEFAULT_PRIORITY_LEVEL, ITEM_TYPE_PRIORITIES


def get_priority_level(item_type: str | None) -> int:
    """Priority of a reservation kind. Unknown kinds get the lowest priority."""
    return ITEM_TYPE_PRIORITIES.get(item_type, DEFAULT_PRIORITY_LEVEL)  # type: ignore[arg-type]


def build_reservation_event_id(item_type: str, item_id: int) -> str:
    return f"{item_type}:{item_id}"


@dataclass(frozen=True)
class CalendarItem:
    """
    One reservation placed on one resource, in the unified timeline. Built on every pass and
    never persisted. `priority_level` is always derived from `item_type`.
    """

    item_type: str
    item_id: int
    start_time: datetime.datetime
    end_time: datetime.datetime
    title: str
    resource_id: int
    organizer_name: str = ""
    organizer_email: str = ""
    description: str = ""
    active: bool = True
    priority_level: int = dataclass_field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "priority_level", get_priority_level(self.item_type))

    @property
    def source_event_id(self) -> str:
        return build_reservation_event_id(self.item_type, self.item_id)

    @property
    def slot_key(self) -> tuple[int, datetime.datetime, datetime.datetime]:
        return (self.resource_id, self.start_time, self.end_time)

    @property
    def reservation_key(self) -> tuple[str, int, int]:
        return (self.item_type, self.item_id, self.resource_id)

    def to_bridge_event(self) -> dict[str, Any]:
        return {
            "id": self.source_event_id,
            "subject": self.title,
            "start": self.start_time.isoformat(),
            "end": self.end_time.isoformat(),
            "description": self.description,
            "organizer": self.organizer_name,
            "organizer_email": self.organizer_email,
            "item_type": str(self.item_type),
            "item_id": self.item_id,
            "resource_id": self.resource_id,
            "priority_level": self.priority_level,
        }


@dataclass
class SyncOptions:
    handle_deletions: bool = False
    skip_updates: bool = False
    dry_run: bool = False


class SyncErrorTypedDict(TypedDict):
    event_id: str
    error: str
    event_data: NotRequired[dict[str, Any]]
    mapping_id: NotRequired[int]
    target_event_id: NotRequired[str | None]


class ProcessedEventTypedDict(TypedDict):
    action: str
    source_event_id: str
    target_event_id: NotRequired[str | None]
    reason: NotRequired[str]
    dry_run: NotRequired[bool]


class SyncResultTypedDict(TypedDict):
    source_bridge: str
    target_bridge: str
    source_events_found: int
    created: int
    updated: int
    deleted: int
    skipped: int
    errors: list[SyncErrorTypedDict]
    processed_events: list[ProcessedEventTypedDict]


class BridgeCalendarTypedDict(TypedDict):
    id: str
    name: str
    description: NotRequired[str]
    bridge_type: NotRequired[str]


class BridgeHealthTypedDict(TypedDict):
    status: str
    bridge_type: str
    timestamp: str
    response_time_ms: NotRequired[float]
    calendars_count: NotRequired[int]
    capabilities: NotRequired[list[str]]
    error: NotRequired[str]


class BridgeInfoTypedDict(TypedDict):
    name: str
    type: NotRequired[str]
    class_name: NotRequired[str]
    capabilities: NotRequired[list[str]]
    health: NotRequired[BridgeHealthTypedDict]
    status: NotRequired[str]
    error: NotRequired[str]


class ItemErrorTypedDict(TypedDict):
    item: str
    error: str


class BulkPopulateResultTypedDict(TypedDict):
    created: int
    errors: list[ItemErrorTypedDict]


class PushResultTypedDict(TypedDict):
    processed: int
    synced: int
    conflicts: int
    skipped: int
    errors: list[ItemErrorTypedDict]


class CancellationResultTypedDict(TypedDict):
    processed: int
    deleted: int
    errors: list[ItemErrorTypedDict]
