"""Django admin interface for calendar bridge mappings."""

from django.contrib import admin
from django.utils.html import format_html

from calendar_bridges.constants import MappingSyncStatus, SyncLogStatus
from calendar_bridges.models import BridgeSyncLog, MappingRecord, ResourceMapping
from calendar_bridges.services.calendar_mapping_service import CalendarMappingService


STATUS_COLORS = {
    MappingSyncStatus.SYNCED: "green",
    MappingSyncStatus.IMPORTED: "green",
    MappingSyncStatus.PENDING: "orange",
    MappingSyncStatus.CONFLICT: "orange",
    MappingSyncStatus.ERROR: "red",
    SyncLogStatus.SUCCESS: "green",
    SyncLogStatus.PARTIAL: "orange",
    SyncLogStatus.ERROR: "red",
}


def colored_status(value: str, label: str):
    return format_html(
        '<span style="color: {};">{}</span>', STATUS_COLORS.get(value, "gray"), label
    )


@admin.register(MappingRecord)
class MappingRecordAdmin(admin.ModelAdmin):
    """Admin interface for bridge mappings."""

    list_display = (
        "id",
        "reservation_type",
        "reservation_id",
        "resource_id",
        "source_bridge",
        "target_bridge",
        "target_event_id",
        "sync_status_display",
        "priority_level",
        "last_synced_at",
    )
    list_filter = ("sync_status", "reservation_type", "sync_direction", "source_bridge")
    search_fields = ("source_event_id", "target_event_id", "target_calendar_id")
    readonly_fields = ("created", "modified", "last_synced_at", "last_modified_remote")
    ordering = ("-created",)
    actions = ("requeue_selected",)

    @admin.display(description="Sync Status", ordering="sync_status")
    def sync_status_display(self, obj: MappingRecord):
        return colored_status(obj.sync_status, obj.get_sync_status_display())

    @admin.action(description="Requeue selected failed or conflicting mappings")
    def requeue_selected(self, request, queryset):
        requeued = CalendarMappingService().requeue_failed(
            mapping_ids=queryset.values_list("id", flat=True)
        )
        self.message_user(request, f"Requeued {requeued} mappings.")


@admin.register(ResourceMapping)
class ResourceMappingAdmin(admin.ModelAdmin):
    list_display = ("id", "resource", "remote_calendar_id", "remote_calendar_name", "active")
    list_filter = ("active",)
    search_fields = ("remote_calendar_id", "remote_calendar_name", "resource__name")
    autocomplete_fields = ("resource",)


@admin.register(BridgeSyncLog)
class BridgeSyncLogAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "created",
        "source_bridge",
        "target_bridge",
        "operation",
        "status_display",
        "event_count",
        "duration_ms",
    )
    list_filter = ("status", "operation", "source_bridge", "target_bridge")
    readonly_fields = [field.name for field in BridgeSyncLog._meta.fields]

    @admin.display(description="Status", ordering="status")
    def status_display(self, obj: BridgeSyncLog):
        return colored_status(obj.status, obj.get_status_display())

    def has_add_permission(self, request):
        return False
