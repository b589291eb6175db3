"""
Timezone helpers for turning recurring local wall-clock windows into UTC.

Window times are interpreted in the window's own timezone for each specific
date, so DST transitions of that zone (not the viewer's) decide the offset.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterator

import pytz

from core.exceptions import InvalidTimezoneError

logger = logging.getLogger(__name__)

UTC = pytz.UTC


def get_timezone(tz_name: str):
    """
    Resolve an IANA timezone name.

    Raises:
        InvalidTimezoneError: if the name is empty or unknown
    """
    if not tz_name:
        raise InvalidTimezoneError("Timezone is required")
    try:
        return pytz.timezone(tz_name)
    except pytz.exceptions.UnknownTimeZoneError:
        raise InvalidTimezoneError(f"Unknown timezone '{tz_name}'", timezone=tz_name)


def is_valid_timezone(tz_name: str) -> bool:
    try:
        get_timezone(tz_name)
    except InvalidTimezoneError:
        return False
    return True


def localize(target_date: date, wall_time: time, tz_name: str) -> datetime:
    """
    Attach ``tz_name`` to a local date and wall-clock time.

    A wall time skipped by a spring-forward transition is moved forward by the
    size of the gap; a repeated wall time in a fall-back transition resolves to
    its first occurrence.
    """
    tz = get_timezone(tz_name)
    naive = datetime.combine(target_date, wall_time)
    try:
        return tz.localize(naive, is_dst=None)
    except pytz.exceptions.AmbiguousTimeError:
        return tz.localize(naive, is_dst=True)
    except pytz.exceptions.NonExistentTimeError:
        # Interpreting with the pre-transition offset lands after the gap
        return tz.normalize(tz.localize(naive, is_dst=False))


def local_to_utc(target_date: date, wall_time: time, tz_name: str) -> datetime:
    """Convert a local date and wall-clock time in ``tz_name`` to a UTC instant."""
    return localize(target_date, wall_time, tz_name).astimezone(UTC)


def ensure_utc(instant: datetime) -> datetime:
    """Normalise an aware datetime to UTC; naive values are rejected."""
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValueError("Datetime must be timezone-aware")
    return instant.astimezone(UTC)


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every date from ``start_date`` to ``end_date`` inclusive."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)
