from .bridge_sync_tasks import (
    cleanup_orphan_mappings_task,
    populate_calendar_mappings_task,
    push_pending_reservations_task,
    requeue_failed_mappings_task,
    sync_between_bridges_task,
)


__all__ = [
    "cleanup_orphan_mappings_task",
    "populate_calendar_mappings_task",
    "push_pending_reservations_task",
    "requeue_failed_mappings_task",
    "sync_between_bridges_task",
]
