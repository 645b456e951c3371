from typing import Annotated

from dependency_injector.wiring import Provide, inject
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from calendar_bridges.exceptions import (
    BridgeNotFoundError,
    CalendarBridgeError,
    InvalidDateRangeError,
)
from calendar_bridges.filtersets import (
    BridgeSyncLogFilterSet,
    MappingRecordFilterSet,
    ResourceMappingFilterSet,
)
from calendar_bridges.models import BridgeSyncLog, MappingRecord, ResourceMapping
from calendar_bridges.registry import BridgeRegistry
from calendar_bridges.serializers import (
    BridgeSyncLogSerializer,
    BridgeSyncRequestSerializer,
    MappingRecordSerializer,
    ResourceMappingSerializer,
    SyncResultSerializer,
)
from calendar_bridges.services.bridge_sync_service import BridgeSyncService
from calendar_bridges.services.dataclasses import SyncOptions


class BridgeViewSet(viewsets.ViewSet):
    """
    Registered calendar bridges: description, health, calendars and sync runs.
    The `pk` URL segment is the bridge name.
    """

    @inject
    def list(
        self,
        request,
        bridge_registry: Annotated[BridgeRegistry, Provide["bridge_registry"]],
    ):
        return Response(list(bridge_registry.describe_all().values()))

    @inject
    def retrieve(
        self,
        request,
        pk,
        bridge_registry: Annotated[BridgeRegistry, Provide["bridge_registry"]],
    ):
        try:
            return Response(bridge_registry.describe(pk))
        except BridgeNotFoundError as e:
            raise NotFound(str(e)) from e

    @action(methods=["GET"], detail=True, url_path="calendars", url_name="calendars")
    @inject
    def calendars(
        self,
        request,
        pk,
        bridge_registry: Annotated[BridgeRegistry, Provide["bridge_registry"]],
    ):
        try:
            bridge = bridge_registry.get(pk)
        except BridgeNotFoundError as e:
            raise NotFound(str(e)) from e

        try:
            calendars = bridge.get_calendars()
        except CalendarBridgeError as e:
            raise ValidationError({"non_field_errors": [str(e)]}) from e
        return Response(calendars)

    @extend_schema(request=BridgeSyncRequestSerializer, responses=SyncResultSerializer)
    @action(methods=["POST"], detail=True, url_path="sync", url_name="sync")
    @inject
    def sync(
        self,
        request,
        pk,
        bridge_sync_service: Annotated[BridgeSyncService, Provide["bridge_sync_service"]],
    ):
        serializer = BridgeSyncRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = bridge_sync_service.sync_between_bridges(
                pk,
                data["target_bridge"],
                data["source_calendar_id"],
                data["target_calendar_id"],
                data["start_date"],
                data["end_date"],
                SyncOptions(
                    handle_deletions=data["handle_deletions"],
                    skip_updates=data["skip_updates"],
                    dry_run=data["dry_run"],
                ),
            )
        except BridgeNotFoundError as e:
            raise NotFound(str(e)) from e
        except InvalidDateRangeError as e:
            raise ValidationError({"end_date": [str(e)]}) from e
        except CalendarBridgeError as e:
            raise ValidationError({"non_field_errors": [str(e)]}) from e

        return Response(SyncResultSerializer(result).data, status=status.HTTP_200_OK)


class MappingRecordViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read-only access to the bridge mappings table.
    """

    queryset = MappingRecord.objects.all().most_recent_first()
    serializer_class = MappingRecordSerializer
    filterset_class = MappingRecordFilterSet


class ResourceMappingViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ResourceMapping.objects.select_related("resource").order_by("resource_id", "id")
    serializer_class = ResourceMappingSerializer
    filterset_class = ResourceMappingFilterSet


class BridgeSyncLogViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = BridgeSyncLog.objects.all()
    serializer_class = BridgeSyncLogSerializer
    filterset_class = BridgeSyncLogFilterSet
