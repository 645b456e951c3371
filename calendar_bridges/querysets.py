from django.db import models

from calendar_bridges.constants import DISPATCHABLE_SYNC_STATUSES


class MappingRecordQuerySet(models.QuerySet):
    """
    Custom QuerySet for MappingRecord.
    """

    def filter_by_bridge_pair(
        self,
        source_bridge: str,
        target_bridge: str,
        source_calendar_id: str | None = None,
        target_calendar_id: str | None = None,
    ):
        queryset = self.filter(source_bridge=source_bridge, target_bridge=target_bridge)
        if source_calendar_id is not None:
            queryset = queryset.filter(source_calendar_id=source_calendar_id)
        if target_calendar_id is not None:
            queryset = queryset.filter(target_calendar_id=target_calendar_id)
        return queryset

    def filter_by_reservation(self, reservation_type: str, reservation_id: int, resource_id: int):
        return self.filter(
            reservation_type=reservation_type,
            reservation_id=reservation_id,
            resource_id=resource_id,
        )

    def filter_reservation_originated(self):
        return self.filter(reservation_type__isnull=False, reservation_id__isnull=False)

    def most_recent_first(self):
        return self.order_by("-created", "-id")

    def pending_for_dispatch(self):
        """
        Rows waiting to be pushed (pending or failed) on resources with an active remote
        calendar mapping, in dispatch priority order.
        """
        from calendar_bridges.models import ResourceMapping

        active_resource_ids = ResourceMapping.objects.filter_active().values("resource_id")
        return self.filter(
            sync_status__in=DISPATCHABLE_SYNC_STATUSES,
            resource_id__in=active_resource_ids,
        ).order_by("priority_level", "created", "id")


class ResourceMappingQuerySet(models.QuerySet):
    def filter_active(self):
        return self.filter(active=True, resource__active=True)
