"""Django management command for cleaning up orphan calendar mappings."""

from typing import Annotated, Any

from django.core.management.base import BaseCommand, CommandParser

from dependency_injector.wiring import Provide, inject

from calendar_bridges.services.calendar_mapping_service import CalendarMappingService
from calendar_bridges.services.reservation_push_service import ReservationPushService


class Command(BaseCommand):
    """Management command for cleaning up orphan calendar mappings."""

    help = (
        "Cancel the remote events of reservations that no longer exist or are inactive, "
        "then delete their calendar mappings"
    )

    def add_arguments(self, parser: CommandParser) -> None:
        """Add command arguments."""
        parser.add_argument(
            "--requeue-errors",
            action="store_true",
            help="Also move failed and conflicting mappings back to pending",
        )

    @inject
    def handle(
        self,
        *args: Any,
        calendar_mapping_service: Annotated[
            CalendarMappingService, Provide["calendar_mapping_service"]
        ] = None,  # type: ignore[assignment]
        reservation_push_service: Annotated[
            ReservationPushService, Provide["reservation_push_service"]
        ] = None,  # type: ignore[assignment]
        **options: Any,
    ) -> None:
        """Execute the cleanup command."""
        cancellations = reservation_push_service.propagate_cancellations()
        self.stdout.write(
            self.style.SUCCESS(f"Cancelled {cancellations['deleted']} remote events")
        )
        for error in cancellations["errors"]:
            self.stdout.write(
                self.style.WARNING(f"Could not cancel {error['item']}: {error['error']}")
            )

        deleted_count = calendar_mapping_service.cleanup_orphans()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted_count} orphan calendar mappings"))

        if options["requeue_errors"]:
            requeued_count = calendar_mapping_service.requeue_failed()
            self.stdout.write(
                self.style.SUCCESS(f"Requeued {requeued_count} failed calendar mappings")
            )
