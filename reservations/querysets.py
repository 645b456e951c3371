import datetime

from django.db import models


class ReservationQuerySet(models.QuerySet):
    """
    QuerySet shared by the reservation kinds (events, bookings and allocations).
    """

    def filter_active(self):
        return self.filter(active=True)

    def filter_by_resource(self, resource_id: int):
        return self.filter(resources__id=resource_id)

    def filter_within(
        self,
        from_date: datetime.datetime | None = None,
        to_date: datetime.datetime | None = None,
    ):
        """Keep reservations that start at or after `from_date` and end at or before `to_date`."""
        queryset = self
        if from_date is not None:
            queryset = queryset.filter(start_time__gte=from_date)
        if to_date is not None:
            queryset = queryset.filter(end_time__lte=to_date)
        return queryset
