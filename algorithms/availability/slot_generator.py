"""
Slot generation algorithm.

Turns recurring weekly availability windows into concrete, bookable slots for a
date range. The generator is a pure function: it never touches storage or the
wall clock, so it can run on any number of requests in parallel and every
result is reproducible from its arguments.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from core.exceptions import InputError, InvalidTimezoneError, SlotRangeError

from .time_range import (
    BusyInterval,
    CandidateSlot,
    MeetingRules,
    TimeRange,
    WindowSpec,
    conflicts_with_buffers,
)
from .timezone_utils import ensure_utc, get_timezone, iter_dates, local_to_utc

logger = logging.getLogger(__name__)

DEFAULT_MAX_RANGE_DAYS = 90
DEFAULT_MIN_GRANULARITY_MINUTES = 5
MAX_GRANULARITY_MINUTES = 24 * 60
WINDOW_DATE_PADDING = timedelta(days=2)


def validate_range(
    range_start_date: date,
    range_end_date: date,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
) -> int:
    """
    Check a requested date range and return its length in days (inclusive).

    Raises:
        SlotRangeError: if the range is missing, reversed or longer than the cap
    """
    if range_start_date is None or range_end_date is None:
        raise SlotRangeError("Both ends of the date range are required")
    if range_end_date < range_start_date:
        raise SlotRangeError("Range end must not be before range start")

    span_days = (range_end_date - range_start_date).days + 1
    if span_days > max_range_days:
        raise SlotRangeError(
            f"Range of {span_days} days exceeds the maximum of {max_range_days} days",
            span_days=span_days,
            max_range_days=max_range_days,
        )
    return span_days


def validate_granularity(
    granularity_minutes: int,
    min_granularity_minutes: int = DEFAULT_MIN_GRANULARITY_MINUTES,
) -> int:
    if not isinstance(granularity_minutes, int) or isinstance(granularity_minutes, bool):
        raise InputError("Granularity must be a whole number of minutes")
    if granularity_minutes < min_granularity_minutes or granularity_minutes > MAX_GRANULARITY_MINUTES:
        raise InputError(
            f"Granularity must be between {min_granularity_minutes} and "
            f"{MAX_GRANULARITY_MINUTES} minutes"
        )
    return granularity_minutes


def window_bounds_utc(window: WindowSpec, local_date: date) -> TimeRange:
    """UTC instants of a window's opening on one local date of its timezone."""
    return TimeRange(
        local_to_utc(local_date, window.start_time, window.timezone),
        local_to_utc(local_date, window.end_time, window.timezone),
    )


def usable_windows(windows: Iterable[WindowSpec]) -> List[WindowSpec]:
    """
    Drop malformed windows with a warning so one bad row never blanks a calendar.
    """
    usable = []
    for window in windows:
        if not window.is_well_formed:
            logger.warning(
                f"Skipping malformed availability window {window.window_id} "
                f"(weekday={window.weekday}, {window.start_time}-{window.end_time})"
            )
            continue
        try:
            get_timezone(window.timezone)
        except InvalidTimezoneError:
            logger.warning(
                f"Skipping availability window {window.window_id} "
                f"with unknown timezone '{window.timezone}'"
            )
            continue
        usable.append(window)
    return usable


def fits_window(candidate: TimeRange, bounds: TimeRange, rules: MeetingRules) -> bool:
    """A candidate fits when it and its buffers lie inside the window."""
    return bounds.contains_range(candidate.padded(rules.buffer_before, rules.buffer_after))


def is_within_any_window(
    candidate: TimeRange,
    windows: Iterable[WindowSpec],
    rules: MeetingRules,
) -> bool:
    """
    Check whether a concrete UTC interval is still covered by current availability.

    Used to re-validate a reservation against windows that may have changed
    since the slot list was produced.
    """
    for window in usable_windows(windows):
        local_start = candidate.start.astimezone(get_timezone(window.timezone))
        # Windows never span midnight; the day before covers a buffer that
        # pushes the padded start across the date line.
        for local_date in (local_start.date() - timedelta(days=1), local_start.date()):
            if local_date.weekday() != window.weekday:
                continue
            bounds = window_bounds_utc(window, local_date)
            if bounds.start < bounds.end and fits_window(candidate, bounds, rules):
                return True
    return False


def has_conflict(
    candidate: TimeRange,
    busy_ranges: Sequence[TimeRange],
    rules: MeetingRules,
) -> bool:
    return any(
        conflicts_with_buffers(candidate, busy, rules.buffer_before, rules.buffer_after)
        for busy in busy_ranges
    )


def generate_slots(
    windows: Iterable[WindowSpec],
    existing_bookings: Iterable[BusyInterval],
    meeting_type: MeetingRules,
    range_start_date: date,
    range_end_date: date,
    granularity_minutes: int,
    viewer_timezone: str,
    now: datetime,
    *,
    max_range_days: int = DEFAULT_MAX_RANGE_DAYS,
    min_granularity_minutes: int = DEFAULT_MIN_GRANULARITY_MINUTES,
) -> List[CandidateSlot]:
    """
    Produce the ordered set of bookable slots for a date range.

    Args:
        windows: recurring availability of one meeting type
        existing_bookings: every active booking / blocked period of the host
            that could touch the range (a superset is fine)
        meeting_type: duration, buffers and notice rules
        range_start_date: first viewer-local date to include
        range_end_date: last viewer-local date to include
        granularity_minutes: step between candidate start times
        viewer_timezone: IANA zone used for the date range and for display
        now: the current instant; slots before ``now + min notice`` are dropped

    Returns:
        Slots ordered by ``start_utc``, without duplicates.

    Raises:
        SlotRangeError, InputError, InvalidTimezoneError: on bad arguments
    """
    validate_range(range_start_date, range_end_date, max_range_days)
    validate_granularity(granularity_minutes, min_granularity_minutes)
    viewer_tz = get_timezone(viewer_timezone)
    now = ensure_utc(now)

    rules = meeting_type
    duration = timedelta(minutes=rules.duration)
    step = timedelta(minutes=granularity_minutes)
    buffer_after = timedelta(minutes=rules.buffer_after)

    earliest_start = now + timedelta(minutes=rules.min_notice_minutes)
    latest_start: Optional[datetime] = None
    if rules.max_advance_days is not None:
        latest_start = now + timedelta(days=rules.max_advance_days)

    busy_ranges = sorted(
        (TimeRange(ensure_utc(b.start_utc), ensure_utc(b.end_utc)) for b in existing_bookings),
        key=lambda r: r.start,
    )

    seen = set()
    slots: List[CandidateSlot] = []

    for window in usable_windows(windows):
        # UTC offsets span 26 hours, so a window-local date can sit up to two
        # dates away from the viewer-local date it lands on.
        for local_date in iter_dates(
            range_start_date - WINDOW_DATE_PADDING, range_end_date + WINDOW_DATE_PADDING
        ):
            if local_date.weekday() != window.weekday:
                continue

            bounds = window_bounds_utc(window, local_date)
            if bounds.start >= bounds.end:
                # Window collapsed by a DST transition
                continue

            padded_bounds = bounds.padded(rules.buffer_before, rules.buffer_after)
            relevant_busy = [b for b in busy_ranges if b.overlaps(padded_bounds)]

            # The grid starts at the window opening; buffers only filter it
            slot_start = bounds.start
            while slot_start + duration + buffer_after <= bounds.end:
                candidate = TimeRange(slot_start, slot_start + duration)
                slot_start += step

                if not fits_window(candidate, bounds, rules):
                    continue

                if candidate.start < earliest_start:
                    continue
                if latest_start is not None and candidate.start > latest_start:
                    break

                start_local = candidate.start.astimezone(viewer_tz)
                if not range_start_date <= start_local.date() <= range_end_date:
                    continue
                if has_conflict(candidate, relevant_busy, rules):
                    continue

                key = (candidate.start, candidate.end)
                if key in seen:
                    continue
                seen.add(key)
                slots.append(
                    CandidateSlot(
                        start_utc=candidate.start,
                        end_utc=candidate.end,
                        start_local=start_local,
                        end_local=candidate.end.astimezone(viewer_tz),
                    )
                )

    slots.sort()
    return slots


def group_slots_by_date(slots: Iterable[CandidateSlot]) -> Dict[str, List[CandidateSlot]]:
    """Group slots by their viewer-local calendar date, keeping slot order."""
    grouped: Dict[str, List[CandidateSlot]] = OrderedDict()
    for slot in slots:
        grouped.setdefault(slot.start_local.date().isoformat(), []).append(slot)
    return grouped
