import datetime
from typing import Annotated

from django.conf import settings

from dependency_injector.wiring import Provide, inject

from calendar_bridge_api.celery import app
from calendar_bridges.services.bridge_sync_service import BridgeSyncService
from calendar_bridges.services.calendar_mapping_service import CalendarMappingService
from calendar_bridges.services.dataclasses import SyncOptions
from calendar_bridges.services.reservation_push_service import ReservationPushService


@app.task
@inject
def sync_between_bridges_task(
    source_bridge_name: str,
    target_bridge_name: str,
    source_calendar_id: str,
    target_calendar_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
    handle_deletions: bool = False,
    skip_updates: bool = False,
    dry_run: bool = False,
    bridge_sync_service: Annotated[
        BridgeSyncService, Provide["bridge_sync_service"]
    ] = None,  # type: ignore[assignment]
):
    """
    Celery task to synchronize one calendar of a bridge into a calendar of another bridge.
    Dates are ISO strings; the window defaults to now + BRIDGE_SYNC_DEFAULT_WINDOW_DAYS.
    """
    now = datetime.datetime.now(tz=datetime.UTC)
    start = datetime.datetime.fromisoformat(start_date) if start_date else now
    end = (
        datetime.datetime.fromisoformat(end_date)
        if end_date
        else start + datetime.timedelta(days=settings.BRIDGE_SYNC_DEFAULT_WINDOW_DAYS)
    )
    return bridge_sync_service.sync_between_bridges(
        source_bridge_name,
        target_bridge_name,
        source_calendar_id,
        target_calendar_id,
        start,
        end,
        SyncOptions(
            handle_deletions=handle_deletions, skip_updates=skip_updates, dry_run=dry_run
        ),
    )


@app.task
@inject
def push_pending_reservations_task(
    limit: int | None = None,
    reservation_push_service: Annotated[
        ReservationPushService, Provide["reservation_push_service"]
    ] = None,  # type: ignore[assignment]
):
    """
    Celery task to push pending reservation mappings to the remote calendar.
    """
    return reservation_push_service.push_pending(
        limit=limit or settings.BRIDGE_SYNC_PENDING_BATCH_SIZE
    )


@app.task
@inject
def populate_calendar_mappings_task(
    resource_id: int | None = None,
    calendar_mapping_service: Annotated[
        CalendarMappingService, Provide["calendar_mapping_service"]
    ] = None,  # type: ignore[assignment]
):
    """
    Celery task to create pending mappings for reservations that have none yet.
    """
    return calendar_mapping_service.bulk_populate(resource_id=resource_id)


@app.task
@inject
def cleanup_orphan_mappings_task(
    calendar_mapping_service: Annotated[
        CalendarMappingService, Provide["calendar_mapping_service"]
    ] = None,  # type: ignore[assignment]
    reservation_push_service: Annotated[
        ReservationPushService, Provide["reservation_push_service"]
    ] = None,  # type: ignore[assignment]
):
    """
    Celery task to cancel the remote events of gone or inactive reservations, then delete
    the orphan mappings left without a remote event.
    """
    cancellations = reservation_push_service.propagate_cancellations()
    return {
        "cancelled": cancellations["deleted"],
        "cancellation_errors": cancellations["errors"],
        "deleted": calendar_mapping_service.cleanup_orphans(),
    }


@app.task
@inject
def requeue_failed_mappings_task(
    limit: int | None = None,
    calendar_mapping_service: Annotated[
        CalendarMappingService, Provide["calendar_mapping_service"]
    ] = None,  # type: ignore[assignment]
):
    """
    Celery task to move failed and conflicting mappings back to the dispatch queue.
    """
    return calendar_mapping_service.requeue_failed(limit=limit)
