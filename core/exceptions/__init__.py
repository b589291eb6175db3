"""
SlotBook – centralised custom exceptions.

Import these from `core.exceptions` across the project instead of redefining
ad-hoc `Exception` subclasses in each app.
"""

from .custom_exceptions import (  # noqa: F401
    BookingInputError,
    ConflictError,
    InputError,
    InvalidTimezoneError,
    InvalidTransition,
    PastOrTooSoon,
    ResourceNotFoundError,
    SlotBookError,
    SlotRangeError,
    SlotTaken,
    StorageUnavailable,
    WindowNoLongerValid,
)
from .custom_exceptions import __all__  # noqa: F401
