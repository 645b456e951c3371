from common.types import RouteDict

from .views import (
    BridgeSyncLogViewSet,
    BridgeViewSet,
    MappingRecordViewSet,
    ResourceMappingViewSet,
)


routes: list[RouteDict] = [
    {
        "regex": r"bridges",
        "viewset": BridgeViewSet,
        "basename": "Bridges",
    },
    {
        "regex": r"bridge-mappings",
        "viewset": MappingRecordViewSet,
        "basename": "BridgeMappings",
    },
    {
        "regex": r"resource-mappings",
        "viewset": ResourceMappingViewSet,
        "basename": "ResourceMappings",
    },
    {
        "regex": r"bridge-sync-logs",
        "viewset": BridgeSyncLogViewSet,
        "basename": "BridgeSyncLogs",
    },
]
