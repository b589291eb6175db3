# apps/meetingapp/tests/fixtures.py
from datetime import datetime, time

import pytz

from apps.meetingapp.models import AvailabilityWindow, MeetingType

UTC = pytz.UTC

# Tuesday; every test date below lies after it
NOW = datetime(2030, 1, 1, 0, 0, tzinfo=UTC)
MONDAY = datetime(2030, 1, 7).date()


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def create_meeting_type(
    host_id="host-1",
    slug="intro-call",
    duration=30,
    windows=((0, time(9, 0), time(12, 0), "UTC"),),
    **kwargs,
):
    """Create a meeting type with weekly windows given as (weekday, start, end, timezone)"""
    meeting_type = MeetingType.objects.create(
        host_id=host_id,
        name=kwargs.pop("name", "Intro Call"),
        slug=slug,
        duration=duration,
        **kwargs,
    )
    for weekday, start_time, end_time, tz_name in windows:
        AvailabilityWindow.objects.create(
            meeting_type=meeting_type,
            weekday=weekday,
            start_time=start_time,
            end_time=end_time,
            timezone=tz_name,
        )
    return meeting_type
