import django.utils.timezone
import model_utils.fields
from django.db import migrations, models


def timestamp_fields():
    return [
        (
            "created",
            model_utils.fields.AutoCreatedField(
                db_index=True,
                default=django.utils.timezone.now,
                editable=False,
                verbose_name="created",
            ),
        ),
        (
            "modified",
            model_utils.fields.AutoLastModifiedField(
                db_index=True,
                default=django.utils.timezone.now,
                editable=False,
                verbose_name="modified",
            ),
        ),
        ("meta", models.JSONField(blank=True, default=dict, verbose_name="meta")),
    ]


def reservation_fields():
    return [
        ("start_time", models.DateTimeField(db_index=True, verbose_name="start time")),
        ("end_time", models.DateTimeField(verbose_name="end time")),
        ("active", models.BooleanField(db_index=True, default=True, verbose_name="active")),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Resource",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                *timestamp_fields(),
                ("name", models.CharField(max_length=255, verbose_name="name")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                ("active", models.BooleanField(default=True, verbose_name="active")),
            ],
            options={
                "abstract": False,
                "get_latest_by": "created",
            },
        ),
        migrations.CreateModel(
            name="Event",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                *timestamp_fields(),
                *reservation_fields(),
                ("name", models.CharField(blank=True, max_length=255, verbose_name="name")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                (
                    "contact_name",
                    models.CharField(blank=True, max_length=255, verbose_name="contact name"),
                ),
                (
                    "contact_email",
                    models.EmailField(blank=True, max_length=254, verbose_name="contact email"),
                ),
                (
                    "resources",
                    models.ManyToManyField(
                        blank=True, related_name="events", to="reservations.resource"
                    ),
                ),
            ],
            options={
                "abstract": False,
                "get_latest_by": "created",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_time__gte=models.F("start_time")),
                        name="reservations_event_ends_after_start",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                *timestamp_fields(),
                *reservation_fields(),
                ("group_name", models.CharField(max_length=255, verbose_name="group name")),
                (
                    "resources",
                    models.ManyToManyField(
                        blank=True, related_name="bookings", to="reservations.resource"
                    ),
                ),
            ],
            options={
                "abstract": False,
                "get_latest_by": "created",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_time__gte=models.F("start_time")),
                        name="reservations_booking_ends_after_start",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Allocation",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                *timestamp_fields(),
                *reservation_fields(),
                (
                    "organization_name",
                    models.CharField(max_length=255, verbose_name="organization name"),
                ),
                (
                    "organization_email",
                    models.EmailField(
                        blank=True, max_length=254, verbose_name="organization email"
                    ),
                ),
                (
                    "resources",
                    models.ManyToManyField(
                        blank=True, related_name="allocations", to="reservations.resource"
                    ),
                ),
            ],
            options={
                "abstract": False,
                "get_latest_by": "created",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_time__gte=models.F("start_time")),
                        name="reservations_allocation_ends_after_start",
                    )
                ],
            },
        ),
    ]
