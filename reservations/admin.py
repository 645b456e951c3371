from django.contrib import admin

from reservations.models import Allocation, Booking, Event, Resource


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "active", "created")
    list_filter = ("active",)
    search_fields = ("name",)


class ReservationAdmin(admin.ModelAdmin):
    list_filter = ("active",)
    date_hierarchy = "start_time"
    filter_horizontal = ("resources",)
    ordering = ("-start_time",)


@admin.register(Event)
class EventAdmin(ReservationAdmin):
    list_display = ("id", "name", "start_time", "end_time", "contact_email", "active")
    search_fields = ("name", "description", "contact_name", "contact_email")


@admin.register(Booking)
class BookingAdmin(ReservationAdmin):
    list_display = ("id", "group_name", "start_time", "end_time", "active")
    search_fields = ("group_name",)


@admin.register(Allocation)
class AllocationAdmin(ReservationAdmin):
    list_display = ("id", "organization_name", "start_time", "end_time", "active")
    search_fields = ("organization_name", "organization_email")
