import json
from unittest.mock import MagicMock

from django.urls import reverse

import pytest
from model_bakery import baker
from rest_framework import status

from calendar_bridges.bridges import ReservationSystemBridge
from calendar_bridges.constants import ItemType, MappingSyncStatus, SyncLogStatus
from calendar_bridges.exceptions import BridgeOperationError
from calendar_bridges.models import BridgeSyncLog, MappingRecord, ResourceMapping
from calendar_bridges.services.calendar_mapping_service import CalendarMappingService
from reservations.models import Resource


def assert_response_status_code(response, expected_status_code):
    assert response.status_code == expected_status_code, (
        f"The status error {response.status_code} != {expected_status_code}\n"
        f"Response Payload: {json.dumps(response.json())}"
    )


@pytest.fixture
def registry_override(di_container, bridge_registry):
    with di_container.bridge_registry.override(bridge_registry):
        yield bridge_registry


@pytest.mark.django_db
class TestBridgeViewSet:
    def test_requires_admin(self, anonymous_client):
        response = anonymous_client.get(reverse("api:Bridges-list"))

        assert_response_status_code(response, status.HTTP_403_FORBIDDEN)

    def test_list(self, admin_api_client, registry_override):
        response = admin_api_client.get(reverse("api:Bridges-list"))

        assert_response_status_code(response, status.HTTP_200_OK)
        assert [bridge["name"] for bridge in response.json()] == [
            "source",
            "target",
            "remote_calendar",
        ]
        assert response.json()[0]["health"]["status"] == "healthy"

    def test_retrieve(self, admin_api_client, registry_override):
        response = admin_api_client.get(reverse("api:Bridges-detail", kwargs={"pk": "target"}))

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json()["type"] == "in_memory"
        assert response.json()["capabilities"] == ["read_events", "write_events"]

    def test_retrieve_unknown_bridge(self, admin_api_client, registry_override):
        response = admin_api_client.get(reverse("api:Bridges-detail", kwargs={"pk": "missing"}))

        assert_response_status_code(response, status.HTTP_404_NOT_FOUND)
        assert response.json()["detail"] == "Calendar bridge 'missing' is not registered."

    def test_calendars(self, admin_api_client, registry_override, source_bridge):
        source_bridge.add_event("calendar-1", {"id": "evt-1"})

        response = admin_api_client.get(
            reverse("api:Bridges-calendars", kwargs={"pk": "source"})
        )

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json() == [{"id": "calendar-1", "name": "calendar-1"}]

    def test_calendars_bridge_failure(self, admin_api_client, registry_override, source_bridge):
        source_bridge.get_calendars = MagicMock(side_effect=BridgeOperationError("API down"))

        response = admin_api_client.get(
            reverse("api:Bridges-calendars", kwargs={"pk": "source"})
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json() == {"non_field_errors": ["API down"]}

    def test_sync(self, admin_api_client, registry_override, source_bridge, target_bridge):
        source_bridge.add_event(
            "calendar-1",
            {
                "id": "evt-1",
                "subject": "Team meeting",
                "start": "2025-03-10T09:00:00+00:00",
                "end": "2025-03-10T10:00:00+00:00",
            },
        )

        response = admin_api_client.post(
            reverse("api:Bridges-sync", kwargs={"pk": "source"}),
            {
                "target_bridge": "target",
                "source_calendar_id": "calendar-1",
                "target_calendar_id": "calendar-2",
                "start_date": "2025-03-10T00:00:00Z",
                "end_date": "2025-03-11T00:00:00Z",
            },
            format="json",
        )

        assert_response_status_code(response, status.HTTP_200_OK)
        data = response.json()
        assert data["source_events_found"] == 1
        assert data["created"] == 1
        assert data["errors"] == []
        assert data["processed_events"][0]["source_event_id"] == "evt-1"
        assert target_bridge.calls == [("create", "calendar-2", "evt-1")]
        assert MappingRecord.objects.get().target_event_id == "remote-1"
        assert BridgeSyncLog.objects.get().status == SyncLogStatus.SUCCESS

    def test_sync_dry_run(self, admin_api_client, registry_override, source_bridge, target_bridge):
        source_bridge.add_event("calendar-1", {"id": "evt-1"})

        response = admin_api_client.post(
            reverse("api:Bridges-sync", kwargs={"pk": "source"}),
            {
                "target_bridge": "target",
                "source_calendar_id": "calendar-1",
                "target_calendar_id": "calendar-2",
                "dry_run": True,
            },
            format="json",
        )

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json()["processed_events"][0]["dry_run"] is True
        assert target_bridge.calls == []
        assert not MappingRecord.objects.exists()

    def test_sync_unknown_target_bridge(self, admin_api_client, registry_override):
        response = admin_api_client.post(
            reverse("api:Bridges-sync", kwargs={"pk": "source"}),
            {
                "target_bridge": "missing",
                "source_calendar_id": "calendar-1",
                "target_calendar_id": "calendar-2",
            },
            format="json",
        )

        assert_response_status_code(response, status.HTTP_404_NOT_FOUND)

    def test_sync_invalid_window(self, admin_api_client, registry_override):
        response = admin_api_client.post(
            reverse("api:Bridges-sync", kwargs={"pk": "source"}),
            {
                "target_bridge": "target",
                "source_calendar_id": "calendar-1",
                "target_calendar_id": "calendar-2",
                "start_date": "2025-03-11T00:00:00Z",
                "end_date": "2025-03-10T00:00:00Z",
            },
            format="json",
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert "end_date" in response.json()

    def test_sync_source_bridge_failure(self, admin_api_client, registry_override, source_bridge):
        source_bridge.get_events = MagicMock(side_effect=BridgeOperationError("API down"))

        response = admin_api_client.post(
            reverse("api:Bridges-sync", kwargs={"pk": "source"}),
            {
                "target_bridge": "target",
                "source_calendar_id": "calendar-1",
                "target_calendar_id": "calendar-2",
            },
            format="json",
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json() == {"non_field_errors": ["API down"]}
        assert BridgeSyncLog.objects.get().status == SyncLogStatus.ERROR

    def test_sync_reservation_bridge_with_non_resource_calendar(
        self, admin_api_client, registry_override
    ):
        registry_override.register(
            "booking_system",
            ReservationSystemBridge,
            dependencies={"calendar_mapping_service": CalendarMappingService()},
        )

        response = admin_api_client.post(
            reverse("api:Bridges-sync", kwargs={"pk": "booking_system"}),
            {
                "target_bridge": "remote_calendar",
                "source_calendar_id": "remote-calendar-1",
                "target_calendar_id": "remote-calendar-1",
            },
            format="json",
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert response.json() == {
            "non_field_errors": ["Calendar id 'remote-calendar-1' is not a resource id."]
        }

    def test_sync_requires_calendars(self, admin_api_client, registry_override):
        response = admin_api_client.post(
            reverse("api:Bridges-sync", kwargs={"pk": "source"}),
            {"target_bridge": "target"},
            format="json",
        )

        assert_response_status_code(response, status.HTTP_400_BAD_REQUEST)
        assert set(response.json()) == {"source_calendar_id", "target_calendar_id"}


@pytest.mark.django_db
class TestMappingRecordViewSet:
    def test_list_and_filter(self, admin_api_client, resource):
        service = CalendarMappingService()
        service.upsert_mapping(ItemType.EVENT, 1, resource.id, "remote-calendar-1")
        service.upsert_mapping(
            ItemType.BOOKING,
            2,
            resource.id,
            "remote-calendar-1",
            sync_status=MappingSyncStatus.ERROR,
        )
        service.create_remote_originated_mapping("remote-event-9", resource.id, "remote-calendar-1")

        response = admin_api_client.get(reverse("api:BridgeMappings-list"))

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json()["count"] == 3

        response = admin_api_client.get(
            reverse("api:BridgeMappings-list"), {"sync_status": MappingSyncStatus.ERROR}
        )

        assert [row["reservation_id"] for row in response.json()["results"]] == [2]

        response = admin_api_client.get(reverse("api:BridgeMappings-list"), {"imported": True})

        assert [row["target_event_id"] for row in response.json()["results"]] == [
            "remote-event-9"
        ]

    def test_is_read_only(self, admin_api_client):
        response = admin_api_client.post(reverse("api:BridgeMappings-list"), {}, format="json")

        assert_response_status_code(response, status.HTTP_405_METHOD_NOT_ALLOWED)


@pytest.mark.django_db
class TestResourceMappingViewSet:
    def test_list(self, admin_api_client, resource_mapping):
        baker.make(ResourceMapping, resource=baker.make(Resource), active=False)

        response = admin_api_client.get(reverse("api:ResourceMappings-list"), {"active": True})

        assert_response_status_code(response, status.HTTP_200_OK)
        assert response.json()["results"] == [
            {
                "id": resource_mapping.id,
                "resource": resource_mapping.resource_id,
                "resource_name": "Main Hall",
                "remote_calendar_id": "remote-calendar-1",
                "remote_calendar_name": "Main Hall calendar",
                "active": True,
                "created": response.json()["results"][0]["created"],
                "modified": response.json()["results"][0]["modified"],
            }
        ]


@pytest.mark.django_db
class TestBridgeSyncLogViewSet:
    def test_list_filtered_by_status(self, admin_api_client):
        baker.make(BridgeSyncLog, source_bridge="a", target_bridge="b", status="success")
        failed = baker.make(BridgeSyncLog, source_bridge="a", target_bridge="b", status="error")

        response = admin_api_client.get(
            reverse("api:BridgeSyncLogs-list"), {"status": SyncLogStatus.ERROR}
        )

        assert_response_status_code(response, status.HTTP_200_OK)
        assert [row["id"] for row in response.json()["results"]] == [failed.id]
