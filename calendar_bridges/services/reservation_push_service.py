import logging

from django.conf import settings

from calendar_bridges.constants import DEFAULT_PENDING_BATCH_SIZE, MappingSyncStatus
from calendar_bridges.exceptions import (
    CreatePropagationError,
    DeletePropagationError,
    MappingNotFoundError,
    UpdatePropagationError,
)
from calendar_bridges.models import MappingRecord
from calendar_bridges.protocols.calendar_bridge import CalendarBridge
from calendar_bridges.registry import BridgeRegistry
from calendar_bridges.services.calendar_mapping_service import CalendarMappingService
from calendar_bridges.services.dataclasses import (
    CalendarItem,
    CancellationResultTypedDict,
    PushResultTypedDict,
)


logger = logging.getLogger(__name__)


class ReservationPushService:
    """
    Pushes pending reservation mappings to the remote calendar bridge, highest priority
    first. Items that lose an exact time-slot conflict are marked as conflicting instead of
    being pushed.
    """

    def __init__(
        self,
        bridge_registry: BridgeRegistry,
        calendar_mapping_service: CalendarMappingService,
    ) -> None:
        self.bridge_registry = bridge_registry
        self.calendar_mapping_service = calendar_mapping_service

    def push_pending(self, limit: int = DEFAULT_PENDING_BATCH_SIZE) -> PushResultTypedDict:
        remote_bridge = self.bridge_registry.get(settings.REMOTE_BRIDGE_NAME)
        result: PushResultTypedDict = {
            "processed": 0,
            "synced": 0,
            "conflicts": 0,
            "skipped": 0,
            "errors": [],
        }

        for mapping in self.calendar_mapping_service.pending_sync_items(limit=limit):
            result["processed"] += 1
            item = self.calendar_mapping_service.get_calendar_item(
                mapping.reservation_type,  # type: ignore[arg-type]
                mapping.reservation_id,  # type: ignore[arg-type]
                mapping.resource_id,  # type: ignore[arg-type]
            )
            if item is None:
                # Reservation gone or inactive, left to the cancellation pass.
                result["skipped"] += 1
                continue

            winner = self._get_slot_winner(item)
            if winner != item:
                self.calendar_mapping_service.mark_conflict(
                    item.item_type,
                    item.item_id,
                    item.resource_id,
                    f"Time slot taken by {winner.source_event_id}",
                )
                result["conflicts"] += 1
                continue

            if mapping.sync_status == MappingSyncStatus.ERROR:
                self.calendar_mapping_service.requeue_failed(mapping_ids=[mapping.id])

            try:
                self._push_item(remote_bridge, mapping, item)
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "Failed to push %s to the remote calendar: %s", item.source_event_id, e
                )
                self.calendar_mapping_service.mark_error(
                    item.item_type, item.item_id, item.resource_id, str(e)
                )
                result["errors"].append({"item": item.source_event_id, "error": str(e)})
                continue
            result["synced"] += 1

        logger.info(
            "Reservation push finished: %s processed, %s synced, %s conflicts, %s skipped, "
            "%s errors",
            result["processed"],
            result["synced"],
            result["conflicts"],
            result["skipped"],
            len(result["errors"]),
        )
        return result

    def propagate_cancellations(self) -> CancellationResultTypedDict:
        """
        Delete the remote events of orphan mappings, then the mappings themselves. A row whose
        remote deletion fails is marked as failed and kept for the next pass.
        """
        result: CancellationResultTypedDict = {"processed": 0, "deleted": 0, "errors": []}

        for mapping in self.calendar_mapping_service.find_orphans():
            if not mapping.target_event_id:
                continue
            result["processed"] += 1
            try:
                target_bridge = self.bridge_registry.get(mapping.target_bridge)
                if not target_bridge.delete_event(
                    mapping.target_calendar_id, mapping.target_event_id
                ):
                    raise DeletePropagationError()
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "Failed to cancel remote event %s of %s: %s",
                    mapping.target_event_id,
                    mapping.source_event_id,
                    e,
                )
                self.calendar_mapping_service.mark_error(
                    mapping.reservation_type,  # type: ignore[arg-type]
                    mapping.reservation_id,  # type: ignore[arg-type]
                    mapping.resource_id,  # type: ignore[arg-type]
                    str(e),
                )
                result["errors"].append({"item": mapping.source_event_id, "error": str(e)})
                continue

            self.calendar_mapping_service.delete_mapping(mapping.id)
            result["deleted"] += 1

        logger.info(
            "Cancellation propagation finished: %s processed, %s deleted, %s errors",
            result["processed"],
            result["deleted"],
            len(result["errors"]),
        )
        return result

    def _get_slot_winner(self, item: CalendarItem) -> CalendarItem:
        slot_items = self.calendar_mapping_service.get_slot_items(item)
        if item not in slot_items:
            slot_items.append(item)
        return self.calendar_mapping_service.resolve_time_conflicts(slot_items)[0]

    def _push_item(
        self, remote_bridge: CalendarBridge, mapping: MappingRecord, item: CalendarItem
    ) -> None:
        payload = self.calendar_mapping_service.to_remote_event(item)
        if mapping.target_event_id:
            if not remote_bridge.update_event(
                mapping.target_calendar_id, mapping.target_event_id, payload
            ):
                raise UpdatePropagationError()
            remote_event_id = mapping.target_event_id
        else:
            remote_event_id = remote_bridge.create_event(mapping.target_calendar_id, payload)
            if not remote_event_id:
                raise CreatePropagationError()

        if not self.calendar_mapping_service.update_with_remote_event(
            item.item_type, item.item_id, item.resource_id, str(remote_event_id)
        ):
            raise MappingNotFoundError(
                f"Mapping of {item.source_event_id} changed while pushing remote event "
                f"{remote_event_id}."
            )
