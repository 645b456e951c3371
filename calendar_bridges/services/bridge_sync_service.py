import datetime
import json
import logging
import time
from typing import Any

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.utils import timezone

from calendar_bridges.constants import (
    ALLOWED_PREVIOUS_SYNC_STATUSES,
    MappingSyncStatus,
    SkipReason,
    SyncAction,
    SyncDirection,
    SyncLogOperation,
    SyncLogStatus,
)
from calendar_bridges.exceptions import (
    CreatePropagationError,
    DeletePropagationError,
    InvalidDateRangeError,
    InvalidSourceEventError,
    UpdatePropagationError,
)
from calendar_bridges.models import (
    BRIDGE_EVENT_KEY_FIELDS,
    RESERVATION_KEY_FIELDS,
    BridgeSyncLog,
    MappingRecord,
)
from calendar_bridges.protocols.calendar_bridge import BridgeEvent, CalendarBridge
from calendar_bridges.registry import BridgeRegistry
from calendar_bridges.services.dataclasses import (
    ProcessedEventTypedDict,
    SyncOptions,
    SyncResultTypedDict,
    get_priority_level,
)


logger = logging.getLogger(__name__)

MAX_LOGGED_ERRORS = 10


def normalize_event_data(event: BridgeEvent) -> dict[str, Any]:
    """JSON round-trip of an event, so it compares equal to its stored snapshot."""
    return json.loads(json.dumps(event, cls=DjangoJSONEncoder))


class BridgeSyncService:
    """
    Orchestrates one synchronization run from a source bridge calendar to a target bridge
    calendar: fetches the source events, classifies each one against the stored mappings,
    propagates creates and updates (and, optionally, deletions) to the target and records
    the resulting mappings.

    Failures are isolated per event and reported in the run result. No database transaction
    is held while a bridge is called.
    """

    def __init__(self, bridge_registry: BridgeRegistry) -> None:
        self.bridge_registry = bridge_registry

    def sync_between_bridges(
        self,
        source_bridge_name: str,
        target_bridge_name: str,
        source_calendar_id: str,
        target_calendar_id: str,
        start_date: datetime.datetime,
        end_date: datetime.datetime,
        options: SyncOptions | None = None,
    ) -> SyncResultTypedDict:
        """
        Synchronize the source calendar events within [start_date, end_date] into the target
        calendar.
        :raises BridgeNotFoundError: if either bridge isn't registered.
        :raises InvalidDateRangeError: if start_date is after end_date.
        :return: Counts per action plus the per-event errors and outcomes.
        """
        options = options or SyncOptions()
        source_bridge = self.bridge_registry.get(source_bridge_name)
        target_bridge = self.bridge_registry.get(target_bridge_name)
        if start_date > end_date:
            raise InvalidDateRangeError(start_date, end_date)

        started_at = time.perf_counter()
        logger.info(
            "Starting bridge sync %s:%s -> %s:%s (%s - %s)%s",
            source_bridge_name,
            source_calendar_id,
            target_bridge_name,
            target_calendar_id,
            start_date.isoformat(),
            end_date.isoformat(),
            " [dry run]" if options.dry_run else "",
        )

        result: SyncResultTypedDict = {
            "source_bridge": source_bridge_name,
            "target_bridge": target_bridge_name,
            "source_events_found": 0,
            "created": 0,
            "updated": 0,
            "deleted": 0,
            "skipped": 0,
            "errors": [],
            "processed_events": [],
        }

        try:
            source_events = list(
                source_bridge.get_events(source_calendar_id, start_date, end_date)
            )
        except Exception as e:
            self._record_sync_log(result, options, started_at, error=e)
            raise
        result["source_events_found"] = len(source_events)

        mappings = list(
            MappingRecord.objects.filter_by_bridge_pair(
                source_bridge_name, target_bridge_name, source_calendar_id, target_calendar_id
            ).most_recent_first()
        )
        mappings_by_source_event_id: dict[str, MappingRecord] = {}
        for mapping in mappings:
            mappings_by_source_event_id.setdefault(mapping.source_event_id, mapping)

        for event in source_events:
            mapping = None
            try:
                source_event_id = self._get_source_event_id(event)
                mapping = mappings_by_source_event_id.get(source_event_id)
                processed = self._process_event(
                    source_bridge_name=source_bridge_name,
                    target_bridge_name=target_bridge_name,
                    source_calendar_id=source_calendar_id,
                    target_calendar_id=target_calendar_id,
                    target_bridge=target_bridge,
                    event=event,
                    source_event_id=source_event_id,
                    mapping=mapping,
                    options=options,
                )
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "Failed to sync event %s from %s to %s: %s",
                    event.get("id", "unknown"),
                    source_bridge_name,
                    target_bridge_name,
                    e,
                )
                if mapping is not None and not options.dry_run:
                    self._mark_mapping_error(mapping, str(e))
                result["errors"].append(
                    {
                        "event_id": str(event.get("id", "unknown")),
                        "error": str(e),
                        "event_data": normalize_event_data(event),
                    }
                )
                continue

            result[processed["action"]] += 1  # type: ignore[literal-required]
            result["processed_events"].append(processed)

        if options.handle_deletions:
            self._handle_deleted_events(
                result=result,
                target_bridge=target_bridge,
                target_calendar_id=target_calendar_id,
                mappings=mappings,
                source_events=source_events,
                options=options,
            )

        self._record_sync_log(result, options, started_at)
        logger.info(
            "Bridge sync %s -> %s finished: %s found, %s created, %s updated, %s deleted, "
            "%s skipped, %s errors",
            source_bridge_name,
            target_bridge_name,
            result["source_events_found"],
            result["created"],
            result["updated"],
            result["deleted"],
            result["skipped"],
            len(result["errors"]),
        )
        return result

    def _get_source_event_id(self, event: BridgeEvent) -> str:
        event_id = event.get("id")
        if event_id is None or event_id == "":
            raise InvalidSourceEventError()
        return str(event_id)

    def _get_reservation_fields(
        self, source_bridge_name: str, target_bridge_name: str, event: BridgeEvent
    ) -> dict[str, Any]:
        """
        Reservation key of an event pushed from the reservation system to the remote
        calendar, so the row is shared with the reservation mappings. Empty for any other
        bridge pair or for events that don't describe a reservation.
        """
        if (
            source_bridge_name != settings.RESERVATION_BRIDGE_NAME
            or target_bridge_name != settings.REMOTE_BRIDGE_NAME
        ):
            return {}

        item_type = event.get("item_type")
        item_id = event.get("item_id")
        resource_id = event.get("resource_id")
        if not item_type or item_id is None or resource_id is None:
            return {}
        return {
            "reservation_type": str(item_type),
            "reservation_id": int(item_id),
            "resource_id": int(resource_id),
            "priority_level": get_priority_level(str(item_type)),
        }

    def _mark_mapping_error(self, mapping: MappingRecord, message: str) -> None:
        with transaction.atomic():
            MappingRecord.objects.filter(
                id=mapping.id,
                sync_status__in=ALLOWED_PREVIOUS_SYNC_STATUSES[MappingSyncStatus.ERROR],
            ).update(
                sync_status=MappingSyncStatus.ERROR,
                error_message=message,
                modified=timezone.now(),
            )

    def _process_event(
        self,
        source_bridge_name: str,
        target_bridge_name: str,
        source_calendar_id: str,
        target_calendar_id: str,
        target_bridge: CalendarBridge,
        event: BridgeEvent,
        source_event_id: str,
        mapping: MappingRecord | None,
        options: SyncOptions,
    ) -> ProcessedEventTypedDict:
        snapshot = normalize_event_data(event)

        if mapping is not None and mapping.target_event_id:
            target_event_id = mapping.target_event_id
            if options.skip_updates:
                return {
                    "action": SyncAction.SKIPPED,
                    "source_event_id": source_event_id,
                    "target_event_id": target_event_id,
                    "reason": SkipReason.UPDATES_DISABLED,
                }
            if mapping.event_data == snapshot:
                return {
                    "action": SyncAction.SKIPPED,
                    "source_event_id": source_event_id,
                    "target_event_id": target_event_id,
                    "reason": SkipReason.UNCHANGED,
                }
            if options.dry_run:
                return {
                    "action": SyncAction.UPDATED,
                    "source_event_id": source_event_id,
                    "target_event_id": target_event_id,
                    "dry_run": True,
                }

            if not target_bridge.update_event(target_calendar_id, target_event_id, event):
                raise UpdatePropagationError(
                    f"The target bridge did not apply the update of event {target_event_id}."
                )

            now = timezone.now()
            with transaction.atomic():
                MappingRecord.objects.filter(id=mapping.id).update(
                    event_data=snapshot,
                    sync_status=MappingSyncStatus.SYNCED,
                    error_message=None,
                    last_synced_at=now,
                    modified=now,
                )
            return {
                "action": SyncAction.UPDATED,
                "source_event_id": source_event_id,
                "target_event_id": target_event_id,
            }

        if options.dry_run:
            return {
                "action": SyncAction.CREATED,
                "source_event_id": source_event_id,
                "dry_run": True,
            }

        target_event_id = target_bridge.create_event(target_calendar_id, event)
        if not target_event_id:
            raise CreatePropagationError(
                f"The target bridge returned no identifier for event {source_event_id}."
            )

        now = timezone.now()
        reservation_fields = self._get_reservation_fields(
            source_bridge_name, target_bridge_name, event
        )
        record = MappingRecord(
            source_bridge=source_bridge_name,
            target_bridge=target_bridge_name,
            source_calendar_id=source_calendar_id,
            target_calendar_id=target_calendar_id,
            source_event_id=source_event_id,
            target_event_id=str(target_event_id),
            event_data=snapshot,
            sync_status=MappingSyncStatus.SYNCED,
            sync_direction=SyncDirection.A_TO_B,
            last_synced_at=now,
            created=now,
            modified=now,
            **reservation_fields,
        )
        update_fields = [
            "target_event_id",
            "event_data",
            "sync_status",
            "error_message",
            "last_synced_at",
            "modified",
        ]
        with transaction.atomic():
            if reservation_fields:
                # A row with the same bridge key but no reservation key would collide.
                MappingRecord.objects.filter(
                    source_bridge=source_bridge_name,
                    target_bridge=target_bridge_name,
                    source_calendar_id=source_calendar_id,
                    target_calendar_id=target_calendar_id,
                    source_event_id=source_event_id,
                    reservation_type__isnull=True,
                ).update(**reservation_fields, modified=now)
                MappingRecord.objects.bulk_create(
                    [record],
                    update_conflicts=True,
                    unique_fields=RESERVATION_KEY_FIELDS,
                    update_fields=[*update_fields, "target_calendar_id"],
                )
            else:
                MappingRecord.objects.bulk_create(
                    [record],
                    update_conflicts=True,
                    unique_fields=BRIDGE_EVENT_KEY_FIELDS,
                    update_fields=update_fields,
                )
        return {
            "action": SyncAction.CREATED,
            "source_event_id": source_event_id,
            "target_event_id": str(target_event_id),
        }

    def _handle_deleted_events(
        self,
        result: SyncResultTypedDict,
        target_bridge: CalendarBridge,
        target_calendar_id: str,
        mappings: list[MappingRecord],
        source_events: list[BridgeEvent],
        options: SyncOptions,
    ) -> None:
        """
        Delete the target events of mappings whose source event wasn't fetched this run.
        """
        source_event_ids = {
            str(event["id"]) for event in source_events if event.get("id") not in (None, "")
        }
        for mapping in mappings:
            if mapping.source_event_id in source_event_ids:
                continue

            processed: ProcessedEventTypedDict = {
                "action": SyncAction.DELETED,
                "source_event_id": mapping.source_event_id,
                "target_event_id": mapping.target_event_id,
            }
            if options.dry_run:
                processed["dry_run"] = True
                result["deleted"] += 1
                result["processed_events"].append(processed)
                continue

            try:
                if mapping.target_event_id and not target_bridge.delete_event(
                    target_calendar_id, mapping.target_event_id
                ):
                    raise DeletePropagationError(
                        f"The target bridge did not delete event {mapping.target_event_id}."
                    )
                with transaction.atomic():
                    MappingRecord.objects.filter(id=mapping.id).delete()
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "Failed to propagate deletion of %s (mapping %s): %s",
                    mapping.source_event_id,
                    mapping.id,
                    e,
                )
                self._mark_mapping_error(mapping, str(e))
                result["errors"].append(
                    {
                        "event_id": mapping.source_event_id,
                        "mapping_id": mapping.id,
                        "target_event_id": mapping.target_event_id,
                        "error": str(e),
                        "event_data": mapping.event_data,
                    }
                )
                continue

            result["deleted"] += 1
            result["processed_events"].append(processed)

    def _record_sync_log(
        self,
        result: SyncResultTypedDict,
        options: SyncOptions,
        started_at: float,
        error: Exception | None = None,
    ) -> BridgeSyncLog:
        if error is not None:
            status = SyncLogStatus.ERROR
            error_message = str(error)
        elif result["errors"]:
            status = SyncLogStatus.PARTIAL
            error_message = "; ".join(
                f"{entry['event_id']}: {entry['error']}"
                for entry in result["errors"][:MAX_LOGGED_ERRORS]
            )
        else:
            status = SyncLogStatus.SUCCESS
            error_message = ""

        return BridgeSyncLog.objects.create(
            source_bridge=result["source_bridge"],
            target_bridge=result["target_bridge"],
            operation=SyncLogOperation.DRY_RUN if options.dry_run else SyncLogOperation.SYNC,
            status=status,
            event_count=result["source_events_found"],
            details={
                "created": result["created"],
                "updated": result["updated"],
                "deleted": result["deleted"],
                "skipped": result["skipped"],
                "errors": len(result["errors"]),
                "handle_deletions": options.handle_deletions,
                "skip_updates": options.skip_updates,
            },
            error_message=error_message,
            duration_ms=int((time.perf_counter() - started_at) * 1000),
        )
