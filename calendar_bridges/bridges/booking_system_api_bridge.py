import datetime
import logging
from typing import Any

import requests

from calendar_bridges.bridges.base import BaseCalendarBridge
from calendar_bridges.constants import BridgeCapability, BridgeType
from calendar_bridges.exceptions import BridgeConfigurationError, BridgeOperationError
from calendar_bridges.protocols.calendar_bridge import BridgeEvent
from calendar_bridges.services.dataclasses import BridgeCalendarTypedDict


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


class BookingSystemAPIBridge(BaseCalendarBridge):
    """
    Bridge to a booking system reachable through its REST API. Calendars are the booking
    system's resources.

    Configuration:
        api_base_url: Base URL of the booking system (required).
        api_key: Optional bearer token.
        timeout: Request timeout in seconds.
    """

    bridge_type = BridgeType.BOOKING_SYSTEM_API
    capabilities = frozenset(
        {
            BridgeCapability.READ_EVENTS,
            BridgeCapability.WRITE_EVENTS,
            BridgeCapability.CALENDAR_DISCOVERY,
            BridgeCapability.ATTENDEES,
        }
    )

    def validate_config(self) -> None:
        if not self.config.get("api_base_url"):
            raise BridgeConfigurationError(
                "The booking_system_api bridge requires 'api_base_url' in its configuration."
            )

    def initialize(self) -> None:
        self.api_base_url = self.config["api_base_url"].rstrip("/")
        self.timeout = self.config.get("timeout") or DEFAULT_TIMEOUT_SECONDS
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        if api_key := self.config.get("api_key"):
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    def close(self) -> None:
        self.session.close()

    def _make_request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Make an HTTP request to the booking system API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint (without base URL)
            params: Query parameters
            data: Request body data

        Returns:
            Response data as dictionary

        Raises:
            BridgeOperationError: If the request fails or the response isn't valid JSON
        """
        url = f"{self.api_base_url}/{endpoint.lstrip('/')}"
        try:
            response = self.session.request(
                method=method, url=url, params=params, json=data, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise BridgeOperationError(f"Booking system API request failed: {e!s}") from e

        if response.status_code == 204:  # No Content
            return {}

        if not response.ok:
            logger.error(
                "Booking system API error: %s %s returned %s", method, url, response.status_code
            )
            raise BridgeOperationError(
                f"Booking system API error: {response.status_code} on {method} {endpoint}",
                status_code=response.status_code,
            )

        try:
            return response.json() if response.content else {}
        except ValueError as e:
            raise BridgeOperationError("Invalid JSON response from booking system API") from e

    def get_calendars(self) -> list[BridgeCalendarTypedDict]:
        response = self._make_request("GET", "/api/resources")
        return [
            {
                "id": str(resource["id"]),
                "name": resource.get("name", ""),
                "description": resource.get("description") or "",
                "bridge_type": self.get_bridge_type(),
            }
            for resource in response.get("resources", [])
        ]

    def get_events(
        self,
        calendar_id: str,
        start_date: datetime.datetime,
        end_date: datetime.datetime,
    ) -> list[BridgeEvent]:
        response = self._make_request(
            "GET",
            f"/api/resources/{calendar_id}/events",
            params={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "format": "json",
            },
        )
        return [self._to_bridge_event(event) for event in response.get("events", [])]

    def create_event(self, calendar_id: str, event: BridgeEvent) -> str:
        response = self._make_request(
            "POST", f"/api/resources/{calendar_id}/events", data=self._to_booking_event(event)
        )
        event_id = response.get("event_id")
        return str(event_id) if event_id else ""

    def update_event(self, calendar_id: str, event_id: str, event: BridgeEvent) -> bool:
        response = self._make_request(
            "PUT",
            f"/api/resources/{calendar_id}/events/{event_id}",
            data=self._to_booking_event(event),
        )
        return response.get("success") is True

    def delete_event(self, calendar_id: str, event_id: str) -> bool:
        try:
            response = self._make_request(
                "DELETE", f"/api/resources/{calendar_id}/events/{event_id}"
            )
        except BridgeOperationError as e:
            # Already gone.
            if e.status_code == 404:
                return True
            raise
        return response.get("success", True) is True

    def _to_bridge_event(self, booking_event: dict[str, Any]) -> BridgeEvent:
        attendees = []
        if contact_email := booking_event.get("contact_email"):
            attendees.append(contact_email)
        extra_attendees = booking_event.get("attendees") or []
        if isinstance(extra_attendees, str):
            extra_attendees = [extra_attendees]
        for attendee in extra_attendees:
            if attendee and attendee not in attendees:
                attendees.append(attendee)

        return {
            "id": str(booking_event["id"]),
            "subject": booking_event.get("subject") or booking_event.get("name") or "",
            "start": booking_event.get("start") or booking_event.get("start_time"),
            "end": booking_event.get("end") or booking_event.get("end_time"),
            "location": booking_event.get("location") or booking_event.get("resource_name") or "",
            "description": booking_event.get("description") or "",
            "attendees": attendees,
            "organizer": booking_event.get("organizer") or booking_event.get("contact_name") or "",
            "last_modified": booking_event.get("last_modified") or booking_event.get("updated_at"),
        }

    def _to_booking_event(self, event: BridgeEvent) -> dict[str, Any]:
        """
        Accepts both generic bridge events and remote calendar payloads, where start/end are
        `{"dateTime", "timeZone"}` dicts and the organizer is an `emailAddress` dict.
        """
        start, end = event.get("start"), event.get("end")
        organizer = event.get("organizer") or ""
        organizer_email = event.get("organizer_email", "")
        if isinstance(organizer, dict):
            email_address = organizer.get("emailAddress", {})
            organizer = email_address.get("name", "")
            organizer_email = email_address.get("address", "")
        description = event.get("description")
        if description is None and isinstance(event.get("body"), dict):
            description = event["body"].get("content")
        attendees = event.get("attendees") or []

        return {
            "title": event.get("subject", ""),
            "name": event.get("subject", ""),
            "start_time": start.get("dateTime") if isinstance(start, dict) else start,
            "end_time": end.get("dateTime") if isinstance(end, dict) else end,
            "description": description or "",
            "contact_name": organizer or "Calendar Bridge",
            "contact_email": attendees[0] if attendees else organizer_email,
            "source": "calendar_bridge",
            "bridge_import": True,
        }
