from django_filters import rest_framework as filters

from calendar_bridges.constants import ItemType, MappingSyncStatus
from calendar_bridges.models import BridgeSyncLog, MappingRecord, ResourceMapping


class MappingRecordFilterSet(filters.FilterSet):
    """
    FilterSet for MappingRecord model.
    """

    sync_status = filters.MultipleChoiceFilter(
        field_name="sync_status",
        choices=MappingSyncStatus.choices,
        label="Filter by sync status",
    )
    reservation_type = filters.ChoiceFilter(
        field_name="reservation_type",
        choices=ItemType.choices,
        label="Filter by reservation type",
    )
    reservation_id = filters.NumberFilter(field_name="reservation_id")
    resource_id = filters.NumberFilter(field_name="resource_id")
    source_bridge = filters.CharFilter(field_name="source_bridge")
    target_bridge = filters.CharFilter(field_name="target_bridge")
    source_calendar_id = filters.CharFilter(field_name="source_calendar_id")
    target_calendar_id = filters.CharFilter(field_name="target_calendar_id")
    target_event_id = filters.CharFilter(field_name="target_event_id")
    imported = filters.BooleanFilter(
        field_name="reservation_type",
        lookup_expr="isnull",
        label="Only rows imported from the remote calendar (no reservation attached)",
    )

    class Meta:
        model = MappingRecord
        fields = (
            "sync_status",
            "reservation_type",
            "reservation_id",
            "resource_id",
            "source_bridge",
            "target_bridge",
            "source_calendar_id",
            "target_calendar_id",
            "target_event_id",
            "imported",
        )


class ResourceMappingFilterSet(filters.FilterSet):
    resource = filters.NumberFilter(field_name="resource_id")
    active = filters.BooleanFilter(field_name="active")

    class Meta:
        model = ResourceMapping
        fields = ("resource", "active")


class BridgeSyncLogFilterSet(filters.FilterSet):
    source_bridge = filters.CharFilter(field_name="source_bridge")
    target_bridge = filters.CharFilter(field_name="target_bridge")
    status = filters.CharFilter(field_name="status")
    created_range = filters.DateTimeFromToRangeFilter(field_name="created")

    class Meta:
        model = BridgeSyncLog
        fields = ("source_bridge", "target_bridge", "status", "created_range")
