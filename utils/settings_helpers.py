"""
Accessors for the ``SLOTBOOK`` settings block.
"""

from django.conf import settings

# Fallbacks used when a deployment omits a key from ``settings.SLOTBOOK``
DEFAULTS = {
    "MAX_RANGE_DAYS": 90,
    "DEFAULT_GRANULARITY_MINUTES": 30,
    "MIN_GRANULARITY_MINUTES": 5,
    "MIN_NOTICE_MINUTES": 0,
    "RESERVATION_MAX_ATTEMPTS": 3,
    "RESERVATION_BACKOFF_SECONDS": 0.05,
    "RESERVATION_TIMEOUT_SECONDS": 5.0,
    "CLAIM_BUCKET_MINUTES": 1,
    "AUTO_COMPLETE_GRACE_MINUTES": 0,
}


def scheduler_setting(name):
    """
    Read one scheduler setting, falling back to the built-in default.

    Settings are read on every call so ``override_settings`` works in tests.
    """
    configured = getattr(settings, "SLOTBOOK", {}) or {}
    if name in configured:
        return configured[name]
    try:
        return DEFAULTS[name]
    except KeyError:
        raise KeyError(f"Unknown scheduler setting '{name}'")
