from django.apps import AppConfig


class CalendarBridgesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "calendar_bridges"
    verbose_name = "Calendar Bridges"
