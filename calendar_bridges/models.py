from django.db import models
from django.utils.translation import gettext_lazy as _

from calendar_bridges.constants import (
    DEFAULT_PRIORITY_LEVEL,
    ItemType,
    MappingSyncStatus,
    SyncDirection,
    SyncLogOperation,
    SyncLogStatus,
)
from calendar_bridges.querysets import MappingRecordQuerySet, ResourceMappingQuerySet
from common.models import BaseModel


RESERVATION_KEY_FIELDS = ("reservation_type", "reservation_id", "resource_id")
BRIDGE_EVENT_KEY_FIELDS = (
    "source_bridge",
    "target_bridge",
    "source_calendar_id",
    "target_calendar_id",
    "source_event_id",
)


class MappingRecord(BaseModel):
    """
    Durable correspondence between an event on a source bridge and its copy on a target
    bridge, plus its sync state.

    Reservation-originated rows carry `reservation_type`/`reservation_id`/`resource_id`;
    rows imported from the remote calendar leave the reservation fields empty until they are
    linked to a reservation.
    """

    reservation_type = models.CharField(
        _("reservation type"), max_length=20, choices=ItemType, null=True, blank=True
    )
    reservation_id = models.PositiveBigIntegerField(_("reservation id"), null=True, blank=True)
    resource_id = models.PositiveBigIntegerField(
        _("resource id"), null=True, blank=True, db_index=True
    )

    source_bridge = models.CharField(_("source bridge"), max_length=50)
    target_bridge = models.CharField(_("target bridge"), max_length=50)
    source_calendar_id = models.CharField(_("source calendar id"), max_length=255)
    target_calendar_id = models.CharField(_("target calendar id"), max_length=255)
    source_event_id = models.CharField(_("source event id"), max_length=255)
    target_event_id = models.CharField(
        _("target event id"), max_length=255, null=True, blank=True, unique=True
    )
    event_data = models.JSONField(_("event data"), default=dict, blank=True)

    sync_status = models.CharField(
        _("sync status"),
        max_length=20,
        choices=MappingSyncStatus,
        default=MappingSyncStatus.PENDING,
        db_index=True,
    )
    sync_direction = models.CharField(
        _("sync direction"),
        max_length=20,
        choices=SyncDirection,
        default=SyncDirection.BIDIRECTIONAL,
    )
    priority_level = models.PositiveSmallIntegerField(
        _("priority level"), default=DEFAULT_PRIORITY_LEVEL
    )
    error_message = models.TextField(_("error message"), null=True, blank=True)
    last_synced_at = models.DateTimeField(_("last synced at"), null=True, blank=True)
    last_modified_remote = models.DateTimeField(_("last modified remote"), null=True, blank=True)

    objects = MappingRecordQuerySet.as_manager()

    class Meta(BaseModel.Meta):
        db_table = "bridge_mappings"
        constraints = [
            models.UniqueConstraint(
                fields=RESERVATION_KEY_FIELDS,
                name="bridge_mappings_unique_reservation",
            ),
            models.UniqueConstraint(
                fields=BRIDGE_EVENT_KEY_FIELDS,
                name="bridge_mappings_unique_bridge_event",
            ),
        ]
        indexes = [
            models.Index(
                fields=["source_bridge", "target_bridge", "source_calendar_id"],
                name="bridge_mappings_pair_idx",
            ),
            models.Index(
                fields=["sync_status", "priority_level", "created"],
                name="bridge_mappings_dispatch_idx",
            ),
        ]

    def __str__(self):
        return (
            f"{self.source_bridge}:{self.source_event_id} -> "
            f"{self.target_bridge}:{self.target_event_id}"
        )


class ResourceMapping(BaseModel):
    """Binds a reservation resource to a calendar on the remote bridge."""

    resource = models.ForeignKey(
        "reservations.Resource",
        on_delete=models.CASCADE,
        related_name="remote_calendar_mappings",
    )
    remote_calendar_id = models.CharField(_("remote calendar id"), max_length=255)
    remote_calendar_name = models.CharField(_("remote calendar name"), max_length=255, blank=True)
    active = models.BooleanField(_("active"), default=True, db_index=True)

    objects = ResourceMappingQuerySet.as_manager()

    class Meta(BaseModel.Meta):
        constraints = [
            models.UniqueConstraint(
                fields=["resource", "remote_calendar_id"],
                name="unique_resource_remote_calendar",
            ),
        ]

    def __str__(self):
        return f"{self.resource_id} -> {self.remote_calendar_name or self.remote_calendar_id}"


class BridgeSyncLog(BaseModel):
    """Audit row written by every bridge-to-bridge synchronization run."""

    source_bridge = models.CharField(_("source bridge"), max_length=50)
    target_bridge = models.CharField(_("target bridge"), max_length=50)
    operation = models.CharField(
        _("operation"), max_length=20, choices=SyncLogOperation, default=SyncLogOperation.SYNC
    )
    status = models.CharField(_("status"), max_length=20, choices=SyncLogStatus)
    event_count = models.PositiveIntegerField(_("event count"), default=0)
    details = models.JSONField(_("details"), default=dict, blank=True)
    error_message = models.TextField(_("error message"), blank=True)
    duration_ms = models.PositiveIntegerField(_("duration (ms)"), default=0)

    class Meta(BaseModel.Meta):
        db_table = "bridge_sync_logs"
        ordering = ("-created",)

    def __str__(self):
        return f"{self.source_bridge} -> {self.target_bridge} ({self.status})"
