import datetime
from collections.abc import Iterable, Iterator
from typing import Any, ClassVar, Protocol

from django.db import models

from calendar_bridges.constants import ItemType
from calendar_bridges.services.dataclasses import CalendarItem
from reservations.models import Allocation, Booking, Event


class ReservationSource(Protocol):
    """One typed reservation kind feeding the unified calendar timeline."""

    item_type: str

    def get_items(
        self,
        resource_id: int | None = None,
        from_date: datetime.datetime | None = None,
        to_date: datetime.datetime | None = None,
    ) -> Iterator[CalendarItem]:
        """
        Yield active items, one per (reservation, resource) pair, ordered by resource and
        start time.
        """
        ...

    def get_item(self, reservation_id: int, resource_id: int) -> CalendarItem | None:
        """
        Return the item of an active reservation on a resource, or None when the reservation
        is inactive, missing, or not placed on that resource.
        """
        ...

    def filter_active_ids(self, reservation_ids: Iterable[int]) -> set[int]:
        """
        Return the subset of `reservation_ids` that still exist and are active.
        """
        ...


class ModelReservationSource:
    """
    Reservation source backed by a reservation model and its many-to-many to `Resource`.
    Items are read from the through table so a reservation placed on N resources yields N
    items.
    """

    model: ClassVar[type[models.Model]]
    item_type: ClassVar[str]
    # Name of the foreign key to the reservation on the auto-created through model.
    link_field: ClassVar[str]

    def _links(self):
        through = self.model.resources.through  # type: ignore[attr-defined]
        return through.objects.filter(**{f"{self.link_field}__active": True}).select_related(
            self.link_field
        )

    def build_item(self, reservation: Any, resource_id: int) -> CalendarItem:
        raise NotImplementedError("Concrete sources must implement build_item")

    def get_items(
        self,
        resource_id: int | None = None,
        from_date: datetime.datetime | None = None,
        to_date: datetime.datetime | None = None,
    ) -> Iterator[CalendarItem]:
        links = self._links()
        if resource_id is not None:
            links = links.filter(resource_id=resource_id)
        if from_date is not None:
            links = links.filter(**{f"{self.link_field}__start_time__gte": from_date})
        if to_date is not None:
            links = links.filter(**{f"{self.link_field}__end_time__lte": to_date})

        links = links.order_by("resource_id", f"{self.link_field}__start_time", "id")
        for link in links.iterator(chunk_size=500):
            yield self.build_item(getattr(link, self.link_field), link.resource_id)

    def get_item(self, reservation_id: int, resource_id: int) -> CalendarItem | None:
        link = (
            self._links()
            .filter(**{f"{self.link_field}_id": reservation_id}, resource_id=resource_id)
            .first()
        )
        if link is None:
            return None
        return self.build_item(getattr(link, self.link_field), link.resource_id)

    def filter_active_ids(self, reservation_ids: Iterable[int]) -> set[int]:
        queryset = self.model.objects.filter(  # type: ignore[attr-defined]
            id__in=list(reservation_ids), active=True
        )
        return set(queryset.values_list("id", flat=True))


class EventReservationSource(ModelReservationSource):
    model = Event
    item_type = ItemType.EVENT
    link_field = "event"

    def build_item(self, reservation: Event, resource_id: int) -> CalendarItem:
        return CalendarItem(
            item_type=self.item_type,
            item_id=reservation.id,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            title=reservation.name or reservation.description,
            resource_id=resource_id,
            organizer_name=reservation.contact_name,
            organizer_email=reservation.contact_email,
            description=reservation.description,
            active=reservation.active,
        )


class BookingReservationSource(ModelReservationSource):
    model = Booking
    item_type = ItemType.BOOKING
    link_field = "booking"

    def build_item(self, reservation: Booking, resource_id: int) -> CalendarItem:
        return CalendarItem(
            item_type=self.item_type,
            item_id=reservation.id,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            title=f"Booking - {reservation.group_name}",
            resource_id=resource_id,
            organizer_name=reservation.group_name,
            organizer_email="",
            description=f"Booking for {reservation.group_name}",
            active=reservation.active,
        )


class AllocationReservationSource(ModelReservationSource):
    model = Allocation
    item_type = ItemType.ALLOCATION
    link_field = "allocation"

    def build_item(self, reservation: Allocation, resource_id: int) -> CalendarItem:
        return CalendarItem(
            item_type=self.item_type,
            item_id=reservation.id,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            title=f"Allocation - {reservation.organization_name}",
            resource_id=resource_id,
            organizer_name=reservation.organization_name,
            organizer_email=reservation.organization_email,
            description=f"Allocation for {reservation.organization_name}",
            active=reservation.active,
        )


def default_reservation_sources() -> list[ReservationSource]:
    return [
        EventReservationSource(),
        BookingReservationSource(),
        AllocationReservationSource(),
    ]
