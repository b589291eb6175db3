# apps/bookingapp/utils/time_calculator.py
from datetime import datetime, timedelta

from algorithms.availability.timezone_utils import UTC

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def floor_to_bucket(instant, bucket_minutes=1):
    """
    Round an aware datetime down to the start of its claim bucket

    Args:
        instant: Aware datetime
        bucket_minutes: Bucket width in minutes

    Returns:
        Aware UTC datetime at a bucket boundary
    """
    bucket = timedelta(minutes=bucket_minutes)
    return EPOCH + ((instant - EPOCH) // bucket) * bucket


def ceil_to_bucket(instant, bucket_minutes=1):
    """
    Round an aware datetime up to the next bucket boundary (unchanged if on one)
    """
    floored = floor_to_bucket(instant, bucket_minutes)
    if floored == instant:
        return floored
    return floored + timedelta(minutes=bucket_minutes)


def claim_buckets(start_utc, end_utc, bucket_minutes=1):
    """
    List the bucket starts a booking of ``[start_utc, end_utc)`` must claim

    Two half-open ranges overlap only if they share at least one bucket, so a
    unique constraint on the bucket rows excludes overlapping bookings.

    Args:
        start_utc: Aware start of the booking
        end_utc: Aware end of the booking
        bucket_minutes: Bucket width in minutes

    Returns:
        List of aware UTC datetimes, ascending
    """
    if bucket_minutes < 1:
        raise ValueError("bucket_minutes must be at least 1")

    step = timedelta(minutes=bucket_minutes)
    current = floor_to_bucket(start_utc, bucket_minutes)
    end = ceil_to_bucket(end_utc, bucket_minutes)

    buckets = []
    while current < end:
        buckets.append(current)
        current += step
    return buckets


def is_whole_minute(instant):
    return instant.second == 0 and instant.microsecond == 0
