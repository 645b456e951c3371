from dependency_injector import containers, providers

from calendar_bridges.registry import build_bridge_registry
from calendar_bridges.services.bridge_sync_service import BridgeSyncService
from calendar_bridges.services.calendar_mapping_service import CalendarMappingService
from calendar_bridges.services.reservation_push_service import ReservationPushService


class AppContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    calendar_mapping_service = providers.Factory(
        CalendarMappingService,
    )

    bridge_registry = providers.Singleton(
        build_bridge_registry,
        bridge_settings=config.CALENDAR_BRIDGES,
        bridge_dependencies=providers.Dict(
            calendar_mapping_service=calendar_mapping_service,
        ),
    )

    bridge_sync_service = providers.Factory(
        BridgeSyncService,
        bridge_registry=bridge_registry,
    )

    reservation_push_service = providers.Factory(
        ReservationPushService,
        bridge_registry=bridge_registry,
        calendar_mapping_service=calendar_mapping_service,
    )


container: AppContainer | None = None  # set during app startup
