import logging
from datetime import datetime, time, timedelta

from django.core.exceptions import ValidationError
from django.utils import timezone

from algorithms.availability.slot_generator import (
    generate_slots,
    group_slots_by_date,
    validate_range,
)
from algorithms.availability.timezone_utils import UTC
from apps.meetingapp.models import AvailabilityWindow, BlockedTime, MeetingType
from core.exceptions import ResourceNotFoundError
from utils.settings_helpers import scheduler_setting

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Loads a host's schedule from storage and hands it to the slot generator"""

    @staticmethod
    def get_meeting_type(meeting_type_id, host_id=None, active_only=True):
        """
        Fetch a meeting type, optionally checking it belongs to ``host_id``.

        Raises:
            ResourceNotFoundError: if it does not exist, is inactive or has
                another host
        """
        queryset = MeetingType.objects.all()
        if active_only:
            queryset = queryset.filter(is_active=True)
        try:
            meeting_type = queryset.get(id=meeting_type_id)
        except (MeetingType.DoesNotExist, ValidationError, ValueError):
            raise ResourceNotFoundError("Meeting type", meeting_type_id)

        if host_id is not None and str(meeting_type.host_id) != str(host_id):
            raise ResourceNotFoundError("Meeting type", meeting_type_id)
        return meeting_type

    @staticmethod
    def get_window_specs(meeting_type):
        windows = AvailabilityWindow.objects.filter(meeting_type=meeting_type, is_active=True)
        return [window.to_spec() for window in windows]

    @staticmethod
    def get_busy_intervals(host_id, start_utc=None, end_utc=None, exclude_booking_id=None):
        """
        Collect everything that takes time away from a host: active bookings of
        any meeting type and blocked periods.

        ``start_utc``/``end_utc`` narrow the query to intervals touching that
        span; returning a superset is always safe.
        """
        from apps.bookingapp.models import Booking

        bookings = Booking.objects.active().filter(host_id=host_id)
        blocked = BlockedTime.objects.filter(host_id=host_id)
        if start_utc is not None:
            bookings = bookings.filter(end_utc__gt=start_utc)
            blocked = blocked.filter(end_utc__gt=start_utc)
        if end_utc is not None:
            bookings = bookings.filter(start_utc__lt=end_utc)
            blocked = blocked.filter(start_utc__lt=end_utc)
        if exclude_booking_id is not None:
            bookings = bookings.exclude(id=exclude_booking_id)

        busy = [booking.to_busy() for booking in bookings]
        busy.extend(period.to_busy() for period in blocked)
        return busy

    @staticmethod
    def get_available_slots(
        host_id,
        meeting_type_id,
        range_start_date,
        range_end_date,
        viewer_timezone,
        granularity_minutes=None,
        now=None,
    ):
        """
        Get bookable slots of one meeting type for a viewer-local date range.

        Returns a list of ``CandidateSlot`` ordered by start.
        """
        max_range_days = scheduler_setting("MAX_RANGE_DAYS")
        validate_range(range_start_date, range_end_date, max_range_days)

        meeting_type = AvailabilityService.get_meeting_type(meeting_type_id, host_id)
        if granularity_minutes is None:
            granularity_minutes = scheduler_setting("DEFAULT_GRANULARITY_MINUTES")
        now = now or timezone.now()

        windows = AvailabilityService.get_window_specs(meeting_type)

        # Range dates sit at most a day away from UTC dates; widen by buffers too
        padding = timedelta(
            days=2, minutes=meeting_type.buffer_before + meeting_type.buffer_after
        )
        span_start = UTC.localize(datetime.combine(range_start_date, time.min)) - padding
        span_end = UTC.localize(datetime.combine(range_end_date, time.min)) + padding
        busy = AvailabilityService.get_busy_intervals(meeting_type.host_id, span_start, span_end)

        slots = generate_slots(
            windows=windows,
            existing_bookings=busy,
            meeting_type=meeting_type.to_rules(scheduler_setting("MIN_NOTICE_MINUTES")),
            range_start_date=range_start_date,
            range_end_date=range_end_date,
            granularity_minutes=granularity_minutes,
            viewer_timezone=viewer_timezone,
            now=now,
            max_range_days=max_range_days,
            min_granularity_minutes=scheduler_setting("MIN_GRANULARITY_MINUTES"),
        )
        logger.debug(
            f"Generated {len(slots)} slots for meeting type {meeting_type.id} "
            f"({range_start_date} to {range_end_date}, {viewer_timezone})"
        )
        return slots

    @staticmethod
    def get_available_slots_by_date(*args, **kwargs):
        """Same as ``get_available_slots`` but grouped by viewer-local date"""
        return group_slots_by_date(AvailabilityService.get_available_slots(*args, **kwargs))
