import datetime
from unittest.mock import Mock

import pytest
import requests

from calendar_bridges.bridges import BookingSystemAPIBridge
from calendar_bridges.constants import BridgeHealthStatus
from calendar_bridges.exceptions import BridgeConfigurationError, BridgeOperationError


BASE_URL = "https://booking.example.com"


def make_response(status_code=200, json_data=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = b"{}" if json_data is not None else b""
    response.json.return_value = json_data
    return response


@pytest.fixture
def bridge():
    bridge = BookingSystemAPIBridge(
        {"api_base_url": f"{BASE_URL}/", "api_key": "secret-token", "timeout": 5}
    )
    bridge.session = Mock(spec=requests.Session)
    return bridge


class TestBookingSystemAPIBridgeConfig:
    def test_requires_base_url(self):
        with pytest.raises(BridgeConfigurationError, match="api_base_url"):
            BookingSystemAPIBridge({})

    def test_session_headers(self):
        bridge = BookingSystemAPIBridge({"api_base_url": BASE_URL, "api_key": "secret-token"})

        assert bridge.session.headers["Authorization"] == "Bearer secret-token"
        assert bridge.session.headers["Accept"] == "application/json"
        assert bridge.timeout == 30

    def test_without_api_key(self):
        bridge = BookingSystemAPIBridge({"api_base_url": BASE_URL})

        assert "Authorization" not in bridge.session.headers


class TestBookingSystemAPIBridge:
    def test_get_calendars(self, bridge):
        bridge.session.request.return_value = make_response(
            json_data={"resources": [{"id": 3, "name": "Main Hall", "description": None}]}
        )

        calendars = bridge.get_calendars()

        assert calendars == [
            {
                "id": "3",
                "name": "Main Hall",
                "description": "",
                "bridge_type": "booking_system_api",
            }
        ]
        bridge.session.request.assert_called_once_with(
            method="GET", url=f"{BASE_URL}/api/resources", params=None, json=None, timeout=5
        )

    def test_get_events(self, bridge):
        bridge.session.request.return_value = make_response(
            json_data={
                "events": [
                    {
                        "id": 11,
                        "name": "Concert",
                        "start_time": "2025-03-10T09:00:00+00:00",
                        "end_time": "2025-03-10T10:00:00+00:00",
                        "resource_name": "Main Hall",
                        "contact_name": "Ada",
                        "contact_email": "ada@example.com",
                        "attendees": ["ada@example.com", "grace@example.com"],
                        "updated_at": "2025-03-01T12:00:00+00:00",
                    }
                ]
            }
        )
        start_date = datetime.datetime(2025, 3, 10, tzinfo=datetime.UTC)
        end_date = datetime.datetime(2025, 3, 11, tzinfo=datetime.UTC)

        events = bridge.get_events("3", start_date, end_date)

        assert events == [
            {
                "id": "11",
                "subject": "Concert",
                "start": "2025-03-10T09:00:00+00:00",
                "end": "2025-03-10T10:00:00+00:00",
                "location": "Main Hall",
                "description": "",
                "attendees": ["ada@example.com", "grace@example.com"],
                "organizer": "Ada",
                "last_modified": "2025-03-01T12:00:00+00:00",
            }
        ]
        bridge.session.request.assert_called_once_with(
            method="GET",
            url=f"{BASE_URL}/api/resources/3/events",
            params={
                "start_date": "2025-03-10T00:00:00+00:00",
                "end_date": "2025-03-11T00:00:00+00:00",
                "format": "json",
            },
            json=None,
            timeout=5,
        )

    def test_create_event_from_generic_event(self, bridge):
        bridge.session.request.return_value = make_response(201, {"event_id": 42})

        event_id = bridge.create_event(
            "3",
            {
                "id": "event:1",
                "subject": "Concert",
                "start": "2025-03-10T09:00:00+00:00",
                "end": "2025-03-10T10:00:00+00:00",
                "description": "Evening concert",
                "organizer": "Ada",
                "organizer_email": "ada@example.com",
            },
        )

        assert event_id == "42"
        call_kwargs = bridge.session.request.call_args.kwargs
        assert call_kwargs["method"] == "POST"
        assert call_kwargs["url"] == f"{BASE_URL}/api/resources/3/events"
        assert call_kwargs["json"] == {
            "title": "Concert",
            "name": "Concert",
            "start_time": "2025-03-10T09:00:00+00:00",
            "end_time": "2025-03-10T10:00:00+00:00",
            "description": "Evening concert",
            "contact_name": "Ada",
            "contact_email": "ada@example.com",
            "source": "calendar_bridge",
            "bridge_import": True,
        }

    def test_create_event_from_remote_payload(self, bridge):
        bridge.session.request.return_value = make_response(201, {"event_id": "abc"})

        bridge.create_event(
            "3",
            {
                "subject": "Booking - Choir",
                "start": {"dateTime": "2025-03-10T10:00:00+01:00", "timeZone": "Europe/Oslo"},
                "end": {"dateTime": "2025-03-10T11:00:00+01:00", "timeZone": "Europe/Oslo"},
                "body": {"contentType": "text", "content": "Booking for Choir"},
                "organizer": {"emailAddress": {"name": "Choir", "address": "c@example.com"}},
            },
        )

        payload = bridge.session.request.call_args.kwargs["json"]
        assert payload["start_time"] == "2025-03-10T10:00:00+01:00"
        assert payload["end_time"] == "2025-03-10T11:00:00+01:00"
        assert payload["description"] == "Booking for Choir"
        assert payload["contact_name"] == "Choir"
        assert payload["contact_email"] == "c@example.com"

    def test_create_event_without_id(self, bridge):
        bridge.session.request.return_value = make_response(201, {})

        assert bridge.create_event("3", {"subject": "Concert"}) == ""

    def test_update_event(self, bridge):
        bridge.session.request.return_value = make_response(200, {"success": True})

        assert bridge.update_event("3", "42", {"subject": "Concert"}) is True
        call_kwargs = bridge.session.request.call_args.kwargs
        assert call_kwargs["method"] == "PUT"
        assert call_kwargs["url"] == f"{BASE_URL}/api/resources/3/events/42"

    def test_update_event_not_applied(self, bridge):
        bridge.session.request.return_value = make_response(200, {"success": False})

        assert bridge.update_event("3", "42", {"subject": "Concert"}) is False

    def test_delete_event(self, bridge):
        bridge.session.request.return_value = make_response(204)

        assert bridge.delete_event("3", "42") is True
        assert bridge.session.request.call_args.kwargs["method"] == "DELETE"

    def test_delete_missing_event_is_success(self, bridge):
        bridge.session.request.return_value = make_response(404)

        assert bridge.delete_event("3", "42") is True

    def test_delete_event_server_error(self, bridge):
        bridge.session.request.return_value = make_response(500)

        with pytest.raises(BridgeOperationError) as exc_info:
            bridge.delete_event("3", "42")

        assert exc_info.value.status_code == 500

    def test_http_error(self, bridge):
        bridge.session.request.return_value = make_response(503)

        with pytest.raises(BridgeOperationError, match="503 on GET /api/resources"):
            bridge.get_calendars()

    def test_connection_error(self, bridge):
        bridge.session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(BridgeOperationError, match="request failed: refused"):
            bridge.get_calendars()

    def test_invalid_json(self, bridge):
        response = make_response(200, {})
        response.json.side_effect = ValueError("not json")
        bridge.session.request.return_value = response

        with pytest.raises(BridgeOperationError, match="Invalid JSON"):
            bridge.get_calendars()

    def test_health_check_unhealthy(self, bridge):
        bridge.session.request.return_value = make_response(503)

        health = bridge.health_check()

        assert health["status"] == BridgeHealthStatus.UNHEALTHY
        assert "503" in health["error"]

    def test_close(self, bridge):
        bridge.close()

        bridge.session.close.assert_called_once_with()
