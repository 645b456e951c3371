"""Django management command for creating pending calendar mappings."""

from typing import Annotated, Any

from django.core.management.base import BaseCommand, CommandParser

from dependency_injector.wiring import Provide, inject

from calendar_bridges.services.calendar_mapping_service import CalendarMappingService


class Command(BaseCommand):
    """Management command for creating pending mappings for unmapped reservations."""

    help = "Create pending calendar mappings for reservations on remotely mapped resources"

    def add_arguments(self, parser: CommandParser) -> None:
        """Add command arguments."""
        parser.add_argument(
            "--resource-id",
            type=int,
            help="Resource ID to populate (optional, populates all if not specified)",
        )

    @inject
    def handle(
        self,
        *args: Any,
        calendar_mapping_service: Annotated[
            CalendarMappingService, Provide["calendar_mapping_service"]
        ] = None,  # type: ignore[assignment]
        **options: Any,
    ) -> None:
        """Execute the populate command."""
        result = calendar_mapping_service.bulk_populate(resource_id=options.get("resource_id"))

        for error in result["errors"]:
            self.stdout.write(self.style.ERROR(f"{error['item']}: {error['error']}"))

        self.stdout.write(
            self.style.SUCCESS(
                f"Created {result['created']} calendar mappings ({len(result['errors'])} errors)"
            )
        )
