import django.db.models.deletion
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


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("reservations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="MappingRecord",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                *timestamp_fields(),
                (
                    "reservation_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("event", "Event"),
                            ("booking", "Booking"),
                            ("allocation", "Allocation"),
                        ],
                        max_length=20,
                        null=True,
                        verbose_name="reservation type",
                    ),
                ),
                (
                    "reservation_id",
                    models.PositiveBigIntegerField(
                        blank=True, null=True, verbose_name="reservation id"
                    ),
                ),
                (
                    "resource_id",
                    models.PositiveBigIntegerField(
                        blank=True, db_index=True, null=True, verbose_name="resource id"
                    ),
                ),
                ("source_bridge", models.CharField(max_length=50, verbose_name="source bridge")),
                ("target_bridge", models.CharField(max_length=50, verbose_name="target bridge")),
                (
                    "source_calendar_id",
                    models.CharField(max_length=255, verbose_name="source calendar id"),
                ),
                (
                    "target_calendar_id",
                    models.CharField(max_length=255, verbose_name="target calendar id"),
                ),
                (
                    "source_event_id",
                    models.CharField(max_length=255, verbose_name="source event id"),
                ),
                (
                    "target_event_id",
                    models.CharField(
                        blank=True,
                        max_length=255,
                        null=True,
                        unique=True,
                        verbose_name="target event id",
                    ),
                ),
                (
                    "event_data",
                    models.JSONField(blank=True, default=dict, verbose_name="event data"),
                ),
                (
                    "sync_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("synced", "Synced"),
                            ("error", "Error"),
                            ("conflict", "Conflict"),
                            ("imported", "Imported"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=20,
                        verbose_name="sync status",
                    ),
                ),
                (
                    "sync_direction",
                    models.CharField(
                        choices=[
                            ("a_to_b", "Source to target"),
                            ("b_to_a", "Target to source"),
                            ("bidirectional", "Bidirectional"),
                        ],
                        default="bidirectional",
                        max_length=20,
                        verbose_name="sync direction",
                    ),
                ),
                (
                    "priority_level",
                    models.PositiveSmallIntegerField(default=3, verbose_name="priority level"),
                ),
                (
                    "error_message",
                    models.TextField(blank=True, null=True, verbose_name="error message"),
                ),
                (
                    "last_synced_at",
                    models.DateTimeField(blank=True, null=True, verbose_name="last synced at"),
                ),
                (
                    "last_modified_remote",
                    models.DateTimeField(
                        blank=True, null=True, verbose_name="last modified remote"
                    ),
                ),
            ],
            options={
                "db_table": "bridge_mappings",
                "abstract": False,
                "get_latest_by": "created",
                "indexes": [
                    models.Index(
                        fields=["source_bridge", "target_bridge", "source_calendar_id"],
                        name="bridge_mappings_pair_idx",
                    ),
                    models.Index(
                        fields=["sync_status", "priority_level", "created"],
                        name="bridge_mappings_dispatch_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("reservation_type", "reservation_id", "resource_id"),
                        name="bridge_mappings_unique_reservation",
                    ),
                    models.UniqueConstraint(
                        fields=(
                            "source_bridge",
                            "target_bridge",
                            "source_calendar_id",
                            "target_calendar_id",
                            "source_event_id",
                        ),
                        name="bridge_mappings_unique_bridge_event",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ResourceMapping",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                *timestamp_fields(),
                (
                    "remote_calendar_id",
                    models.CharField(max_length=255, verbose_name="remote calendar id"),
                ),
                (
                    "remote_calendar_name",
                    models.CharField(
                        blank=True, max_length=255, verbose_name="remote calendar name"
                    ),
                ),
                (
                    "active",
                    models.BooleanField(db_index=True, default=True, verbose_name="active"),
                ),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="remote_calendar_mappings",
                        to="reservations.resource",
                    ),
                ),
            ],
            options={
                "abstract": False,
                "get_latest_by": "created",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("resource", "remote_calendar_id"),
                        name="unique_resource_remote_calendar",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="BridgeSyncLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                *timestamp_fields(),
                ("source_bridge", models.CharField(max_length=50, verbose_name="source bridge")),
                ("target_bridge", models.CharField(max_length=50, verbose_name="target bridge")),
                (
                    "operation",
                    models.CharField(
                        choices=[("sync", "Sync"), ("dry_run", "Dry run")],
                        default="sync",
                        max_length=20,
                        verbose_name="operation",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("success", "Success"),
                            ("partial", "Partial"),
                            ("error", "Error"),
                        ],
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "event_count",
                    models.PositiveIntegerField(default=0, verbose_name="event count"),
                ),
                ("details", models.JSONField(blank=True, default=dict, verbose_name="details")),
                ("error_message", models.TextField(blank=True, verbose_name="error message")),
                (
                    "duration_ms",
                    models.PositiveIntegerField(default=0, verbose_name="duration (ms)"),
                ),
            ],
            options={
                "db_table": "bridge_sync_logs",
                "ordering": ("-created",),
                "abstract": False,
                "get_latest_by": "created",
            },
        ),
    ]
