from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import BaseModel
from reservations.querysets import ReservationQuerySet


class Resource(BaseModel):
    """
    A bookable resource (a room, a hall, a piece of equipment). Resources are the calendars
    of the reservation system.
    """

    name = models.CharField(_("name"), max_length=255)
    description = models.TextField(_("description"), blank=True)
    active = models.BooleanField(_("active"), default=True)

    def __str__(self):
        return self.name


class Reservation(BaseModel):
    start_time = models.DateTimeField(_("start time"), db_index=True)
    end_time = models.DateTimeField(_("end time"))
    active = models.BooleanField(_("active"), default=True, db_index=True)

    objects = ReservationQuerySet.as_manager()

    class Meta(BaseModel.Meta):
        abstract = True
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gte=models.F("start_time")),
                name="%(app_label)s_%(class)s_ends_after_start",
            ),
        ]


class Event(Reservation):
    name = models.CharField(_("name"), max_length=255, blank=True)
    description = models.TextField(_("description"), blank=True)
    contact_name = models.CharField(_("contact name"), max_length=255, blank=True)
    contact_email = models.EmailField(_("contact email"), blank=True)
    resources = models.ManyToManyField(Resource, related_name="events", blank=True)

    class Meta(Reservation.Meta):
        pass

    def __str__(self):
        return self.name or self.description or f"Event {self.pk}"


class Booking(Reservation):
    group_name = models.CharField(_("group name"), max_length=255)
    resources = models.ManyToManyField(Resource, related_name="bookings", blank=True)

    class Meta(Reservation.Meta):
        pass

    def __str__(self):
        return f"Booking - {self.group_name}"


class Allocation(Reservation):
    organization_name = models.CharField(_("organization name"), max_length=255)
    organization_email = models.EmailField(_("organization email"), blank=True)
    resources = models.ManyToManyField(Resource, related_name="allocations", blank=True)

    class Meta(Reservation.Meta):
        pass

    def __str__(self):
        return f"Allocation - {self.organization_name}"
