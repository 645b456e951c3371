"""Django management command for synchronizing a calendar between two bridges."""

import datetime
from typing import Annotated, Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError, CommandParser

from dependency_injector.wiring import Provide, inject

from calendar_bridges.exceptions import CalendarBridgeError
from calendar_bridges.services.bridge_sync_service import BridgeSyncService
from calendar_bridges.services.dataclasses import SyncOptions


def parse_datetime_argument(value: str) -> datetime.datetime:
    parsed = datetime.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


class Command(BaseCommand):
    """Management command for synchronizing a calendar between two bridges."""

    help = "Synchronize events of a source bridge calendar into a target bridge calendar"

    def add_arguments(self, parser: CommandParser) -> None:
        """Add command arguments."""
        parser.add_argument("source_bridge", help="Name of the source bridge")
        parser.add_argument("target_bridge", help="Name of the target bridge")
        parser.add_argument("source_calendar_id", help="Calendar ID on the source bridge")
        parser.add_argument("target_calendar_id", help="Calendar ID on the target bridge")
        parser.add_argument(
            "--start-date",
            type=parse_datetime_argument,
            help="Start of the sync window, ISO 8601 (default: now)",
        )
        parser.add_argument(
            "--end-date",
            type=parse_datetime_argument,
            help=(
                "End of the sync window, ISO 8601 "
                "(default: start + BRIDGE_SYNC_DEFAULT_WINDOW_DAYS days)"
            ),
        )
        parser.add_argument(
            "--handle-deletions",
            action="store_true",
            help="Delete target events whose source event no longer exists",
        )
        parser.add_argument(
            "--skip-updates",
            action="store_true",
            help="Only create missing events, never update existing ones",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be synchronized without writing anything",
        )

    @inject
    def handle(
        self,
        *args: Any,
        bridge_sync_service: Annotated[
            BridgeSyncService, Provide["bridge_sync_service"]
        ] = None,  # type: ignore[assignment]
        **options: Any,
    ) -> None:
        """Execute the sync command."""
        start_date = options.get("start_date") or datetime.datetime.now(tz=datetime.UTC)
        end_date = options.get("end_date") or start_date + datetime.timedelta(
            days=settings.BRIDGE_SYNC_DEFAULT_WINDOW_DAYS
        )
        dry_run = options["dry_run"]

        try:
            result = bridge_sync_service.sync_between_bridges(
                options["source_bridge"],
                options["target_bridge"],
                options["source_calendar_id"],
                options["target_calendar_id"],
                start_date,
                end_date,
                SyncOptions(
                    handle_deletions=options["handle_deletions"],
                    skip_updates=options["skip_updates"],
                    dry_run=dry_run,
                ),
            )
        except CalendarBridgeError as e:
            raise CommandError(str(e)) from e

        summary = (
            f"{result['source_events_found']} events found: {result['created']} created, "
            f"{result['updated']} updated, {result['deleted']} deleted, "
            f"{result['skipped']} skipped, {len(result['errors'])} errors"
        )
        for error in result["errors"]:
            self.stdout.write(self.style.ERROR(f"Event {error['event_id']}: {error['error']}"))

        if dry_run:
            self.stdout.write(self.style.WARNING(f"DRY RUN: {summary}"))
        elif result["errors"]:
            self.stdout.write(self.style.WARNING(f"Sync finished with errors. {summary}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"Sync finished. {summary}"))
