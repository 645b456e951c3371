import datetime

from django.core.exceptions import ImproperlyConfigured


class CalendarBridgeError(Exception):
    """Base exception for calendar bridge errors."""

    default_message = "An error occurred while synchronizing calendar bridges."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


# Registry errors
class BridgeConfigurationError(CalendarBridgeError, ImproperlyConfigured):
    """Raised when a bridge is registered or configured with invalid settings."""

    default_message = "Invalid calendar bridge configuration."


class BridgeNotFoundError(CalendarBridgeError):
    default_message = "Calendar bridge not found."

    def __init__(self, bridge_name: str | None = None):
        self.bridge_name = bridge_name
        super().__init__(
            f"Calendar bridge '{bridge_name}' is not registered." if bridge_name else None
        )


class BridgeOperationError(CalendarBridgeError):
    """Raised by a bridge when it can't perform the requested operation."""

    default_message = "The calendar bridge failed to perform the operation."

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


# Mapping errors
class MappingNotFoundError(CalendarBridgeError):
    default_message = "Calendar mapping not found."


# Sync errors
class InvalidDateRangeError(CalendarBridgeError, ValueError):
    default_message = "The sync window start date must not be after its end date."

    def __init__(
        self,
        start_date: datetime.datetime | None = None,
        end_date: datetime.datetime | None = None,
    ):
        self.start_date = start_date
        self.end_date = end_date
        message = None
        if start_date is not None and end_date is not None:
            message = (
                f"Invalid sync window: start date {start_date.isoformat()} is after "
                f"end date {end_date.isoformat()}."
            )
        super().__init__(message)


class InvalidSourceEventError(CalendarBridgeError):
    default_message = "Source event has no identifier."


class PropagationError(CalendarBridgeError):
    """Raised when the target bridge doesn't apply a propagated change."""

    default_message = "The target bridge did not apply the change."


class CreatePropagationError(PropagationError):
    default_message = "The target bridge did not return an identifier for the created event."


class UpdatePropagationError(PropagationError):
    default_message = "The target bridge did not apply the event update."


class DeletePropagationError(PropagationError):
    default_message = "The target bridge did not delete the event."
