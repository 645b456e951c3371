from django.db import models


class ItemType(models.TextChoices):
    """The reservation kinds unified into a single calendar timeline."""

    EVENT = "event", "Event"
    BOOKING = "booking", "Booking"
    ALLOCATION = "allocation", "Allocation"


# Lower value wins an exact time-slot conflict.
ITEM_TYPE_PRIORITIES: dict[str, int] = {
    ItemType.EVENT: 1,
    ItemType.BOOKING: 2,
    ItemType.ALLOCATION: 3,
}
DEFAULT_PRIORITY_LEVEL = 3
REMOTE_ORIGINATED_PRIORITY_LEVEL = 1


class MappingSyncStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SYNCED = "synced", "Synced"
    ERROR = "error", "Error"
    CONFLICT = "conflict", "Conflict"
    IMPORTED = "imported", "Imported"


# Target status -> statuses a row may be in for a guarded update to apply.
ALLOWED_PREVIOUS_SYNC_STATUSES: dict[str, tuple[str, ...]] = {
    MappingSyncStatus.SYNCED: (
        MappingSyncStatus.PENDING,
        MappingSyncStatus.IMPORTED,
        MappingSyncStatus.SYNCED,
    ),
    MappingSyncStatus.ERROR: (
        MappingSyncStatus.PENDING,
        MappingSyncStatus.SYNCED,
        MappingSyncStatus.ERROR,
    ),
    MappingSyncStatus.PENDING: (
        MappingSyncStatus.ERROR,
        MappingSyncStatus.CONFLICT,
        MappingSyncStatus.PENDING,
    ),
    MappingSyncStatus.CONFLICT: (
        MappingSyncStatus.PENDING,
        MappingSyncStatus.ERROR,
        MappingSyncStatus.CONFLICT,
    ),
}

# Statuses picked up by the dispatch queue.
DISPATCHABLE_SYNC_STATUSES = (MappingSyncStatus.PENDING, MappingSyncStatus.ERROR)


class SyncDirection(models.TextChoices):
    A_TO_B = "a_to_b", "Source to target"
    B_TO_A = "b_to_a", "Target to source"
    BIDIRECTIONAL = "bidirectional", "Bidirectional"


class SyncAction(models.TextChoices):
    CREATED = "created", "Created"
    UPDATED = "updated", "Updated"
    DELETED = "deleted", "Deleted"
    SKIPPED = "skipped", "Skipped"


class SkipReason(models.TextChoices):
    UPDATES_DISABLED = "updates_disabled", "Updates disabled"
    UNCHANGED = "unchanged", "Unchanged"


class SyncLogOperation(models.TextChoices):
    SYNC = "sync", "Sync"
    DRY_RUN = "dry_run", "Dry run"


class SyncLogStatus(models.TextChoices):
    SUCCESS = "success", "Success"
    PARTIAL = "partial", "Partial"
    ERROR = "error", "Error"


class BridgeType(models.TextChoices):
    BOOKING_SYSTEM = "booking_system", "Reservation system"
    BOOKING_SYSTEM_API = "booking_system_api", "Booking system REST API"


class BridgeCapability(models.TextChoices):
    READ_EVENTS = "read_events", "Read events"
    WRITE_EVENTS = "write_events", "Write events"
    CALENDAR_DISCOVERY = "calendar_discovery", "Calendar discovery"
    ATTENDEES = "attendees", "Attendees"
    PRIORITY_RESOLUTION = "priority_resolution", "Priority resolution"


class BridgeHealthStatus(models.TextChoices):
    HEALTHY = "healthy", "Healthy"
    UNHEALTHY = "unhealthy", "Unhealthy"
    ERROR = "error", "Error"


REMOTE_EVENT_TITLE_MAX_LENGTH = 255
UNNAMED_EVENT_TITLE = "Unnamed Event"
REMOTE_EVENT_ITEM_TYPE_PROPERTY_ID = (
    "String {66f5a359-4659-4830-9070-00047ec6ac6e} Name BookingSystemType"
)
REMOTE_EVENT_ITEM_ID_PROPERTY_ID = (
    "String {66f5a359-4659-4830-9070-00047ec6ac6f} Name BookingSystemId"
)
DEFAULT_PENDING_BATCH_SIZE = 50
