import datetime

from django.conf import settings
from django.utils import timezone

from rest_framework import serializers

from calendar_bridges.models import BridgeSyncLog, MappingRecord, ResourceMapping


class MappingRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = MappingRecord
        fields = (
            "id",
            "reservation_type",
            "reservation_id",
            "resource_id",
            "source_bridge",
            "target_bridge",
            "source_calendar_id",
            "target_calendar_id",
            "source_event_id",
            "target_event_id",
            "event_data",
            "sync_status",
            "sync_direction",
            "priority_level",
            "error_message",
            "last_synced_at",
            "last_modified_remote",
            "created",
            "modified",
        )
        read_only_fields = fields


class ResourceMappingSerializer(serializers.ModelSerializer):
    resource_name = serializers.CharField(source="resource.name", read_only=True)

    class Meta:
        model = ResourceMapping
        fields = (
            "id",
            "resource",
            "resource_name",
            "remote_calendar_id",
            "remote_calendar_name",
            "active",
            "created",
            "modified",
        )
        read_only_fields = fields


class BridgeSyncLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = BridgeSyncLog
        fields = (
            "id",
            "source_bridge",
            "target_bridge",
            "operation",
            "status",
            "event_count",
            "details",
            "error_message",
            "duration_ms",
            "created",
        )
        read_only_fields = fields


class BridgeSyncRequestSerializer(serializers.Serializer):
    """
    Payload of a sync run triggered through the API. The bridge in the URL is the source.
    """

    target_bridge = serializers.CharField(max_length=50)
    source_calendar_id = serializers.CharField(max_length=255)
    target_calendar_id = serializers.CharField(max_length=255)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    handle_deletions = serializers.BooleanField(default=False)
    skip_updates = serializers.BooleanField(default=False)
    dry_run = serializers.BooleanField(default=False)

    def validate(self, attrs):
        attrs.setdefault("start_date", timezone.now())
        attrs.setdefault(
            "end_date",
            attrs["start_date"]
            + datetime.timedelta(days=settings.BRIDGE_SYNC_DEFAULT_WINDOW_DAYS),
        )
        if attrs["start_date"] > attrs["end_date"]:
            raise serializers.ValidationError(
                {"end_date": "End date must not be before the start date."}
            )
        return attrs


class SyncErrorSerializer(serializers.Serializer):
    event_id = serializers.CharField()
    error = serializers.CharField()
    event_data = serializers.JSONField(required=False)
    mapping_id = serializers.IntegerField(required=False)
    target_event_id = serializers.CharField(required=False, allow_null=True)


class ProcessedEventSerializer(serializers.Serializer):
    action = serializers.CharField()
    source_event_id = serializers.CharField()
    target_event_id = serializers.CharField(required=False, allow_null=True)
    reason = serializers.CharField(required=False)
    dry_run = serializers.BooleanField(required=False)


class SyncResultSerializer(serializers.Serializer):
    source_bridge = serializers.CharField()
    target_bridge = serializers.CharField()
    source_events_found = serializers.IntegerField()
    created = serializers.IntegerField()
    updated = serializers.IntegerField()
    deleted = serializers.IntegerField()
    skipped = serializers.IntegerField()
    errors = SyncErrorSerializer(many=True)
    processed_events = ProcessedEventSerializer(many=True)
