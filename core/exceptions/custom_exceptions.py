"""
SlotBook – centralised custom exceptions.

Every error the scheduler can surface is a subclass of ``SlotBookError`` and
carries the machine-readable ``code`` returned to API clients as ``reason``
together with the HTTP status it maps to.

The taxonomy has three families:

* input errors (400/404) – rejected before any generation or reservation runs;
* business conflicts (409) – expected outcomes, returned to the caller so the
  UI can react (refresh the slot list, offer another time);
* infrastructure errors (503) – a degraded dependency, safe to retry.
"""

from __future__ import annotations


class SlotBookError(Exception):
    """Base class for all custom exceptions in the SlotBook backend."""

    code = "error"
    status_code = 400
    default_message = "An error occurred"

    def __init__(self, message: str | None = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def __str__(self):
        return str(self.message)

    def as_payload(self) -> dict:
        return {"reason": self.code, "detail": self.message}


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------
class InputError(SlotBookError):
    """Malformed request data."""

    code = "InvalidInput"
    status_code = 400
    default_message = "Invalid input"


class SlotRangeError(InputError):
    """Date range is reversed, unbounded or longer than the configured cap."""

    code = "InvalidRange"
    default_message = "Invalid date range"


class InvalidTimezoneError(InputError):
    code = "InvalidTimezone"
    default_message = "Unknown timezone"


class BookingInputError(InputError):
    """Reservation request that can never succeed as submitted."""

    code = "InvalidBooking"
    default_message = "Invalid booking request"


class ResourceNotFoundError(SlotBookError):
    code = "NotFound"
    status_code = 404
    default_message = "Resource not found"

    def __init__(self, resource_type: str, resource_id=None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with ID '{resource_id}' not found"
        super().__init__(message, resource_type=resource_type, resource_id=resource_id)


# ---------------------------------------------------------------------------
# Business conflicts
# ---------------------------------------------------------------------------
class ConflictError(SlotBookError):
    """A legitimate business outcome that prevents the requested change."""

    code = "Conflict"
    status_code = 409
    default_message = "The request conflicts with the current schedule"


class SlotTaken(ConflictError):
    code = "SlotTaken"
    default_message = "This time slot is no longer available. Please select another."


class WindowNoLongerValid(ConflictError):
    code = "WindowNoLongerValid"
    default_message = "The host's availability changed; this time can no longer be booked."


class PastOrTooSoon(ConflictError):
    code = "PastOrTooSoon"
    default_message = "This time is in the past or inside the minimum booking notice."


class InvalidTransition(ConflictError):
    code = "InvalidTransition"
    default_message = "This status change is not allowed."


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------
class StorageUnavailable(SlotBookError):
    """The booking store could not be reached in time; nothing was committed."""

    code = "StorageUnavailable"
    status_code = 503
    default_message = "The booking service is temporarily unavailable. Please try again."


__all__ = [
    "SlotBookError",
    "InputError",
    "SlotRangeError",
    "InvalidTimezoneError",
    "BookingInputError",
    "ResourceNotFoundError",
    "ConflictError",
    "SlotTaken",
    "WindowNoLongerValid",
    "PastOrTooSoon",
    "InvalidTransition",
    "StorageUnavailable",
]
