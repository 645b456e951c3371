import datetime
import heapq
import logging
import zoneinfo
from collections.abc import Iterable, Iterator
from typing import Any

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from calendar_bridges.constants import (
    ALLOWED_PREVIOUS_SYNC_STATUSES,
    DEFAULT_PENDING_BATCH_SIZE,
    REMOTE_EVENT_ITEM_ID_PROPERTY_ID,
    REMOTE_EVENT_ITEM_TYPE_PROPERTY_ID,
    REMOTE_EVENT_TITLE_MAX_LENGTH,
    REMOTE_ORIGINATED_PRIORITY_LEVEL,
    UNNAMED_EVENT_TITLE,
    MappingSyncStatus,
    SyncDirection,
)
from calendar_bridges.models import RESERVATION_KEY_FIELDS, MappingRecord, ResourceMapping
from calendar_bridges.services.dataclasses import (
    BulkPopulateResultTypedDict,
    CalendarItem,
    build_reservation_event_id,
    get_priority_level,
)
from calendar_bridges.services.reservation_sources import (
    ReservationSource,
    default_reservation_sources,
)


logger = logging.getLogger(__name__)


def sanitize_title(title: str | None) -> str:
    title = (title or "").strip()[:REMOTE_EVENT_TITLE_MAX_LENGTH]
    return title or UNNAMED_EVENT_TITLE


def _unified_order_key(item: CalendarItem):
    return (item.resource_id, item.start_time, item.priority_level)


class CalendarMappingService:
    """
    Service that unifies events, bookings and allocations into one prioritized timeline and
    keeps the reservation side of the `bridge_mappings` table consistent.

    Every write is a single statement (an upsert or a guarded update) wrapped in its own
    `transaction.atomic()` block, so concurrent runs against the same table are safe and a
    failed write never poisons the caller's transaction.
    """

    def __init__(self, sources: Iterable[ReservationSource] | None = None) -> None:
        self.sources: dict[str, ReservationSource] = {
            source.item_type: source
            for source in (sources if sources is not None else default_reservation_sources())
        }

    # Unified view

    def unify_calendar_items(
        self,
        resource_id: int | None = None,
        from_date: datetime.datetime | None = None,
        to_date: datetime.datetime | None = None,
    ) -> Iterator[CalendarItem]:
        """
        Yield active calendar items of every reservation kind, ordered by resource, start
        time and priority. Each call queries the sources again.
        :param resource_id: Only items placed on this resource.
        :param from_date: Only items starting at or after this moment.
        :param to_date: Only items ending at or before this moment.
        """
        streams = [
            source.get_items(resource_id=resource_id, from_date=from_date, to_date=to_date)
            for source in self.sources.values()
        ]
        yield from heapq.merge(*streams, key=_unified_order_key)

    def resolve_time_conflicts(self, items: Iterable[CalendarItem]) -> list[CalendarItem]:
        """
        Keep one item per exact (resource, start, end) slot: the one with the lowest
        priority level, the first one encountered on ties. Partial overlaps are kept.
        """
        slots: dict[tuple, list[CalendarItem]] = {}
        for item in items:
            slots.setdefault(item.slot_key, []).append(item)

        resolved: list[CalendarItem] = []
        for (resource_id, start_time, end_time), slot_items in slots.items():
            winner = min(slot_items, key=lambda slot_item: slot_item.priority_level)
            resolved.append(winner)
            if len(slot_items) == 1:
                continue

            discarded = [
                slot_item.source_event_id for slot_item in slot_items if slot_item is not winner
            ]
            logger.info(
                "Resolved time conflict on resource %s (%s - %s): kept %s, discarded %s",
                resource_id,
                start_time.isoformat(),
                end_time.isoformat(),
                winner.source_event_id,
                ", ".join(discarded),
            )
        return resolved

    def get_calendar_item(
        self, reservation_type: str, reservation_id: int, resource_id: int
    ) -> CalendarItem | None:
        source = self.sources.get(reservation_type)
        if source is None:
            return None
        return source.get_item(reservation_id, resource_id)

    def get_slot_items(self, item: CalendarItem) -> list[CalendarItem]:
        """Items occupying exactly the same slot as `item`, `item` included."""
        return [
            candidate
            for candidate in self.unify_calendar_items(
                resource_id=item.resource_id, from_date=item.start_time, to_date=item.end_time
            )
            if candidate.slot_key == item.slot_key
        ]

    # Remote payload

    def to_remote_event(self, item: CalendarItem) -> dict[str, Any]:
        """
        Build the payload sent to the remote calendar for a unified item.
        """
        tz_name = settings.BRIDGE_SYNC_TIMEZONE
        tz = zoneinfo.ZoneInfo(tz_name)

        def to_remote_datetime(value: datetime.datetime) -> dict[str, str]:
            if timezone.is_naive(value):
                value = timezone.make_aware(value, datetime.UTC)
            return {"dateTime": value.astimezone(tz).isoformat(), "timeZone": tz_name}

        return {
            "subject": sanitize_title(item.title),
            "start": to_remote_datetime(item.start_time),
            "end": to_remote_datetime(item.end_time),
            "body": {
                "contentType": "text",
                "content": item.description or item.title,
            },
            "organizer": {
                "emailAddress": {
                    "name": item.organizer_name,
                    "address": item.organizer_email
                    or settings.BRIDGE_SYNC_FALLBACK_ORGANIZER_EMAIL,
                }
            },
            "isReminderOn": False,
            "showAs": "busy",
            "singleValueExtendedProperties": [
                {"id": REMOTE_EVENT_ITEM_TYPE_PROPERTY_ID, "value": str(item.item_type)},
                {"id": REMOTE_EVENT_ITEM_ID_PROPERTY_ID, "value": str(item.item_id)},
            ],
        }

    # Mapping writes

    def upsert_mapping(
        self,
        reservation_type: str,
        reservation_id: int,
        resource_id: int,
        remote_calendar_id: str,
        remote_event_id: str | None = None,
        sync_status: str = MappingSyncStatus.PENDING,
    ) -> int:
        """
        Insert the mapping of a reservation on a resource, or overwrite its remote event id
        and status when it already exists. Runs as one INSERT ... ON CONFLICT DO UPDATE.
        :return: The id of the mapping row.
        """
        now = timezone.now()
        record = MappingRecord(
            reservation_type=reservation_type,
            reservation_id=reservation_id,
            resource_id=resource_id,
            source_bridge=settings.RESERVATION_BRIDGE_NAME,
            target_bridge=settings.REMOTE_BRIDGE_NAME,
            source_calendar_id=str(resource_id),
            target_calendar_id=remote_calendar_id,
            source_event_id=build_reservation_event_id(reservation_type, reservation_id),
            target_event_id=remote_event_id,
            sync_status=sync_status,
            sync_direction=SyncDirection.A_TO_B,
            priority_level=get_priority_level(reservation_type),
            last_synced_at=now,
            created=now,
            modified=now,
        )
        with transaction.atomic():
            # Rows written by a bridge sync for the same event may lack the reservation key.
            if not MappingRecord.objects.filter_by_reservation(
                reservation_type, reservation_id, resource_id
            ).exists():
                MappingRecord.objects.filter(
                    source_bridge=record.source_bridge,
                    target_bridge=record.target_bridge,
                    source_calendar_id=record.source_calendar_id,
                    target_calendar_id=record.target_calendar_id,
                    source_event_id=record.source_event_id,
                    reservation_type__isnull=True,
                ).update(
                    reservation_type=reservation_type,
                    reservation_id=reservation_id,
                    resource_id=resource_id,
                    priority_level=record.priority_level,
                    modified=now,
                )
            MappingRecord.objects.bulk_create(
                [record],
                update_conflicts=True,
                unique_fields=RESERVATION_KEY_FIELDS,
                update_fields=["target_event_id", "sync_status", "last_synced_at", "modified"],
            )
        if record.pk is not None:
            return record.pk
        return (
            MappingRecord.objects.filter_by_reservation(
                reservation_type, reservation_id, resource_id
            )
            .values_list("id", flat=True)
            .get()
        )

    def update_with_remote_event(
        self,
        reservation_type: str,
        reservation_id: int,
        resource_id: int,
        remote_event_id: str,
        status: str = MappingSyncStatus.SYNCED,
    ) -> bool:
        """
        Record the remote event id of a reservation mapping.
        :return: False when no mapping in a state allowed to move to `status` matched.
        """
        now = timezone.now()
        with transaction.atomic():
            updated = (
                MappingRecord.objects.filter_by_reservation(
                    reservation_type, reservation_id, resource_id
                )
                .filter(sync_status__in=ALLOWED_PREVIOUS_SYNC_STATUSES[status])
                .update(
                    target_event_id=remote_event_id,
                    sync_status=status,
                    error_message=None,
                    last_synced_at=now,
                    last_modified_remote=now,
                    modified=now,
                )
            )
        return updated > 0

    def mark_error(
        self, reservation_type: str, reservation_id: int, resource_id: int, message: str
    ) -> bool:
        return self._transition(
            reservation_type,
            reservation_id,
            resource_id,
            MappingSyncStatus.ERROR,
            error_message=message,
        )

    def mark_conflict(
        self, reservation_type: str, reservation_id: int, resource_id: int, message: str
    ) -> bool:
        return self._transition(
            reservation_type,
            reservation_id,
            resource_id,
            MappingSyncStatus.CONFLICT,
            error_message=message,
        )

    def _transition(
        self,
        reservation_type: str,
        reservation_id: int,
        resource_id: int,
        status: str,
        **fields: Any,
    ) -> bool:
        with transaction.atomic():
            updated = (
                MappingRecord.objects.filter_by_reservation(
                    reservation_type, reservation_id, resource_id
                )
                .filter(sync_status__in=ALLOWED_PREVIOUS_SYNC_STATUSES[status])
                .update(sync_status=status, modified=timezone.now(), **fields)
            )
        return updated > 0

    def requeue_failed(
        self, limit: int | None = None, mapping_ids: Iterable[int] | None = None
    ) -> int:
        """
        Move failed and conflicting rows back to PENDING so the next push retries them.
        :return: Number of rows requeued.
        """
        queryset = MappingRecord.objects.filter(
            sync_status__in=[MappingSyncStatus.ERROR, MappingSyncStatus.CONFLICT]
        )
        if mapping_ids is not None:
            queryset = queryset.filter(id__in=list(mapping_ids))
        if limit is not None:
            limited_ids = queryset.order_by("priority_level", "created").values_list(
                "id", flat=True
            )
            queryset = MappingRecord.objects.filter(id__in=list(limited_ids[:limit]))
        with transaction.atomic():
            return queryset.update(
                sync_status=MappingSyncStatus.PENDING, modified=timezone.now()
            )

    def bulk_populate(self, resource_id: int | None = None) -> BulkPopulateResultTypedDict:
        """
        Create PENDING mappings for every unified item that has none yet, on resources with
        an active remote calendar mapping. A failing item doesn't stop the pass.
        """
        remote_calendars = self.get_remote_calendar_ids()
        existing = MappingRecord.objects.filter_reservation_originated()
        if resource_id is not None:
            existing = existing.filter(resource_id=resource_id)
        existing_keys = set(existing.values_list(*RESERVATION_KEY_FIELDS))

        result: BulkPopulateResultTypedDict = {"created": 0, "errors": []}
        for item in self.unify_calendar_items(resource_id=resource_id):
            remote_calendar_id = remote_calendars.get(item.resource_id)
            if remote_calendar_id is None or item.reservation_key in existing_keys:
                continue
            try:
                self.upsert_mapping(
                    item.item_type, item.item_id, item.resource_id, remote_calendar_id
                )
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "Failed to create calendar mapping for %s on resource %s: %s",
                    item.source_event_id,
                    item.resource_id,
                    e,
                )
                result["errors"].append({"item": item.source_event_id, "error": str(e)})
                continue
            existing_keys.add(item.reservation_key)
            result["created"] += 1

        logger.info(
            "Calendar mapping population finished: %s created, %s errors",
            result["created"],
            len(result["errors"]),
        )
        return result

    def find_orphans(self) -> list[MappingRecord]:
        """
        Mappings whose reservation is no longer active in its kind. Rows without a
        reservation (imported from the remote calendar) are never orphans.
        """
        rows = list(MappingRecord.objects.filter_reservation_originated().order_by("id"))
        ids_by_type: dict[str, set[int]] = {}
        for row in rows:
            ids_by_type.setdefault(row.reservation_type, set()).add(row.reservation_id)

        live: set[tuple[str, int]] = set()
        for reservation_type, source in self.sources.items():
            active_ids = source.filter_active_ids(ids_by_type.get(reservation_type, set()))
            live.update((reservation_type, reservation_id) for reservation_id in active_ids)

        return [row for row in rows if (row.reservation_type, row.reservation_id) not in live]

    def cleanup_orphans(self) -> int:
        """
        Delete orphan mappings that never reached the remote calendar. Orphans that still
        own a remote event are kept until their cancellation is propagated.
        :return: Number of rows deleted.
        """
        orphans = self.find_orphans()
        orphan_ids = [row.id for row in orphans if not row.target_event_id]
        kept = len(orphans) - len(orphan_ids)
        if kept:
            logger.info("Keeping %s orphan calendar mappings with a remote event", kept)
        if not orphan_ids:
            return 0

        with transaction.atomic():
            deleted, _ = MappingRecord.objects.filter(id__in=orphan_ids).delete()
        logger.info("Deleted %s orphan calendar mappings", deleted)
        return deleted

    def delete_mapping(self, mapping_id: int) -> bool:
        with transaction.atomic():
            deleted, _ = MappingRecord.objects.filter(id=mapping_id).delete()
        return deleted > 0

    # Remote-originated rows

    def find_by_remote_event_id(self, remote_event_id: str) -> MappingRecord | None:
        return MappingRecord.objects.filter(target_event_id=remote_event_id).first()

    def create_remote_originated_mapping(
        self,
        remote_event_id: str,
        resource_id: int,
        remote_calendar_id: str,
        event_data: dict[str, Any] | None = None,
    ) -> int:
        """
        Record an event discovered on the remote calendar that has no reservation yet.
        Upserts on the remote event id; an event that already belongs to a reservation
        mapping is left untouched.
        :return: The id of the mapping row.
        """
        existing = self.find_by_remote_event_id(remote_event_id)
        if existing is not None and existing.reservation_type is not None:
            return existing.id

        now = timezone.now()
        record = MappingRecord(
            reservation_type=None,
            reservation_id=None,
            resource_id=resource_id,
            source_bridge=settings.REMOTE_BRIDGE_NAME,
            target_bridge=settings.RESERVATION_BRIDGE_NAME,
            source_calendar_id=remote_calendar_id,
            target_calendar_id=str(resource_id),
            source_event_id=remote_event_id,
            target_event_id=remote_event_id,
            event_data=event_data or {},
            sync_status=MappingSyncStatus.IMPORTED,
            sync_direction=SyncDirection.B_TO_A,
            priority_level=REMOTE_ORIGINATED_PRIORITY_LEVEL,
            last_modified_remote=now,
            created=now,
            modified=now,
        )
        with transaction.atomic():
            MappingRecord.objects.bulk_create(
                [record],
                update_conflicts=True,
                unique_fields=["target_event_id"],
                update_fields=[
                    "resource_id",
                    "target_calendar_id",
                    "event_data",
                    "last_modified_remote",
                    "modified",
                ],
            )
        if record.pk is not None:
            return record.pk
        return (
            MappingRecord.objects.filter(target_event_id=remote_event_id)
            .values_list("id", flat=True)
            .get()
        )

    def link_imported_mapping(
        self, mapping_id: int, reservation_type: str, reservation_id: int
    ) -> bool:
        """
        Attach a reservation to an imported row, moving it to SYNCED.
        :return: False when the row doesn't exist or isn't IMPORTED.
        """
        with transaction.atomic():
            updated = MappingRecord.objects.filter(
                id=mapping_id, sync_status=MappingSyncStatus.IMPORTED
            ).update(
                reservation_type=reservation_type,
                reservation_id=reservation_id,
                priority_level=get_priority_level(reservation_type),
                sync_status=MappingSyncStatus.SYNCED,
                last_synced_at=timezone.now(),
                modified=timezone.now(),
            )
        return updated > 0

    # Reads

    def pending_sync_items(self, limit: int = DEFAULT_PENDING_BATCH_SIZE) -> list[MappingRecord]:
        """
        Rows waiting to be pushed on actively mapped resources, highest priority first, then
        oldest first.
        """
        return list(MappingRecord.objects.pending_for_dispatch()[:limit])

    def get_resource_mappings(self) -> list[ResourceMapping]:
        return list(
            ResourceMapping.objects.filter_active()
            .select_related("resource")
            .order_by("resource_id", "id")
        )

    def get_remote_calendar_ids(self) -> dict[int, str]:
        """Remote calendar id per actively mapped resource (the oldest mapping wins)."""
        remote_calendars: dict[int, str] = {}
        for resource_id, remote_calendar_id in (
            ResourceMapping.objects.filter_active()
            .order_by("resource_id", "created", "id")
            .values_list("resource_id", "remote_calendar_id")
        ):
            remote_calendars.setdefault(resource_id, remote_calendar_id)
        return remote_calendars
