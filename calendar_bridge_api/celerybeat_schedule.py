from celery.schedules import crontab  # type: ignore


CELERYBEAT_SCHEDULE = {
    "push_pending_reservations": {
        "schedule": crontab(minute="*/5"),
        "task": "calendar_bridges.tasks.bridge_sync_tasks.push_pending_reservations_task",
    },
    "populate_calendar_mappings": {
        "schedule": crontab(minute=0),
        "task": "calendar_bridges.tasks.bridge_sync_tasks.populate_calendar_mappings_task",
    },
    "requeue_failed_mappings": {
        "schedule": crontab(minute=30),
        "task": "calendar_bridges.tasks.bridge_sync_tasks.requeue_failed_mappings_task",
    },
    "cleanup_orphan_mappings": {
        "schedule": crontab(hour=3, minute=0),
        "task": "calendar_bridges.tasks.bridge_sync_tasks.cleanup_orphan_mappings_task",
    },
}
