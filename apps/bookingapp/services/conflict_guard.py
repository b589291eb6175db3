"""
Admission control for new bookings.

The slot list a guest chose from may be stale, so every reservation
re-validates the candidate against current storage and inserts the booking
together with its slot claims in one transaction. The unique constraint on
``BookingSlotClaim`` is what finally decides between concurrent overlapping
attempts: the loser gets ``SlotTaken``.
"""

import logging
import random
import time
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import IntegrityError, connection, transaction
from django.db.utils import InterfaceError, OperationalError
from django.utils import timezone

from algorithms.availability.slot_generator import has_conflict, is_within_any_window
from algorithms.availability.time_range import TimeRange
from algorithms.availability.timezone_utils import ensure_utc
from apps.bookingapp.models import Booking, BookingSlotClaim, BookingStatus
from apps.bookingapp.utils.time_calculator import claim_buckets, is_whole_minute
from apps.meetingapp.models import MeetingType
from apps.meetingapp.services.availability_service import AvailabilityService
from core.exceptions import (
    BookingInputError,
    PastOrTooSoon,
    SlotTaken,
    StorageUnavailable,
    WindowNoLongerValid,
)
from utils.settings_helpers import scheduler_setting

logger = logging.getLogger(__name__)

TRANSIENT_STORAGE_ERRORS = (OperationalError, InterfaceError)


def run_with_storage_retries(operation, description="storage operation"):
    """
    Run ``operation(remaining_seconds)`` retrying transient storage failures.

    Attempts are capped by ``RESERVATION_MAX_ATTEMPTS`` and the whole call by
    ``RESERVATION_TIMEOUT_SECONDS``. Each attempt must be a complete
    transaction so a failed one leaves nothing behind.

    Raises:
        StorageUnavailable: once attempts or time run out
    """
    max_attempts = scheduler_setting("RESERVATION_MAX_ATTEMPTS")
    backoff_base = scheduler_setting("RESERVATION_BACKOFF_SECONDS")
    deadline = time.monotonic() + scheduler_setting("RESERVATION_TIMEOUT_SECONDS")

    attempt = 0
    while True:
        attempt += 1
        remaining = deadline - time.monotonic()
        try:
            return operation(remaining)
        except TRANSIENT_STORAGE_ERRORS as e:
            remaining = deadline - time.monotonic()
            if attempt >= max_attempts or remaining <= 0:
                logger.error(
                    f"{description} failed after {attempt} attempt(s): {e.__class__.__name__}: {e}"
                )
                raise StorageUnavailable(attempts=attempt) from e

            # Exponential backoff with jitter to avoid a thundering herd
            jitter = random.uniform(0.8, 1.2)
            delay = min(backoff_base * (2 ** (attempt - 1)) * jitter, remaining)
            logger.warning(
                f"{description} attempt {attempt} hit {e.__class__.__name__}, "
                f"retrying in {delay:.3f}s"
            )
            if delay > 0:
                time.sleep(delay)


def apply_statement_timeout(remaining_seconds):
    """Bound every statement of the current transaction on PostgreSQL"""
    if connection.vendor != "postgresql" or remaining_seconds is None:
        return
    timeout_ms = max(int(remaining_seconds * 1000), 1)
    with connection.cursor() as cursor:
        cursor.execute(f"SET LOCAL statement_timeout = {timeout_ms}")


class ConflictGuard:
    """Atomic check-and-insert of bookings"""

    @staticmethod
    def validate_candidate(candidate_start, candidate_end):
        """
        Reject requests that can never succeed, before touching storage.

        Returns:
            TimeRange in UTC
        """
        if candidate_start is None or candidate_end is None:
            raise BookingInputError("Both start and end are required")
        try:
            start = ensure_utc(candidate_start)
            end = ensure_utc(candidate_end)
        except ValueError:
            raise BookingInputError("Start and end must include a timezone")
        if end <= start:
            raise BookingInputError("End must be after start")
        if not (is_whole_minute(start) and is_whole_minute(end)):
            raise BookingInputError("Start and end must be whole minutes")
        return TimeRange(start, end)

    @staticmethod
    def find_by_idempotency_key(host_id, idempotency_key):
        if not idempotency_key:
            return None
        return Booking.objects.filter(host_id=host_id, idempotency_key=idempotency_key).first()

    @classmethod
    def reserve_slot(
        cls,
        host_id,
        meeting_type_id,
        candidate_start,
        candidate_end,
        guest=None,
        idempotency_key=None,
        now=None,
    ):
        """
        Reserve ``[candidate_start, candidate_end)`` for a guest.

        Args:
            host_id: Host the meeting type belongs to
            meeting_type_id: Meeting type being booked
            candidate_start: Aware start, normally taken from a generated slot
            candidate_end: Aware end; must equal start + duration
            guest: dict with ``name``, ``email`` and optional ``notes``
            idempotency_key: Optional client key; a repeated key returns the
                booking created by the first request
            now: Current instant, defaults to the wall clock

        Returns:
            The scheduled Booking

        Raises:
            BookingInputError: malformed request
            SlotTaken, WindowNoLongerValid, PastOrTooSoon: business conflicts
            StorageUnavailable: storage kept failing; nothing was committed
        """
        candidate = cls.validate_candidate(candidate_start, candidate_end)
        guest = guest or {}
        if not guest.get("name") or not guest.get("email"):
            raise BookingInputError("Guest name and email are required")

        def attempt(remaining):
            return cls.reserve_in_transaction(
                host_id,
                meeting_type_id,
                candidate,
                guest,
                idempotency_key=idempotency_key,
                now=now,
                remaining_seconds=remaining,
            )

        try:
            booking = run_with_storage_retries(attempt, description=f"Reservation for host {host_id}")
        except SlotTaken:
            # A concurrent request with the same key may have won the race
            existing = cls.find_by_idempotency_key(host_id, idempotency_key)
            if existing is not None:
                logger.info(f"Idempotent replay of booking {existing.id} (key {idempotency_key})")
                return existing
            raise

        return booking

    @classmethod
    def reserve_in_transaction(
        cls,
        host_id,
        meeting_type_id,
        candidate,
        guest,
        idempotency_key=None,
        now=None,
        remaining_seconds=None,
        replacing=None,
    ):
        """
        One reservation attempt as a single transaction.

        ``replacing`` is a booking being rescheduled: it is ignored by the
        conflict check and its claims are released before the new ones are
        inserted. The caller cancels it in the same transaction.
        """
        with transaction.atomic():
            apply_statement_timeout(remaining_seconds)

            existing = cls.find_by_idempotency_key(host_id, idempotency_key)
            if existing is not None:
                logger.info(f"Idempotent replay of booking {existing.id} (key {idempotency_key})")
                return existing

            meeting_type = cls.load_meeting_type(host_id, meeting_type_id)
            rules = meeting_type.to_rules(scheduler_setting("MIN_NOTICE_MINUTES"))

            if candidate.end - candidate.start != timedelta(minutes=rules.duration):
                raise BookingInputError(
                    f"Booking must last exactly {rules.duration} minutes",
                    duration=rules.duration,
                )

            now = ensure_utc(now or timezone.now())
            if candidate.start < now + timedelta(minutes=rules.min_notice_minutes):
                logger.info(f"Rejected {candidate} for host {host_id}: past or inside notice")
                raise PastOrTooSoon()
            if rules.max_advance_days is not None and candidate.start > now + timedelta(
                days=rules.max_advance_days
            ):
                raise WindowNoLongerValid("This time is beyond the booking horizon.")

            windows = AvailabilityService.get_window_specs(meeting_type)
            if not is_within_any_window(candidate, windows, rules):
                logger.info(f"Rejected {candidate} for host {host_id}: outside availability")
                raise WindowNoLongerValid()

            reach = timedelta(minutes=rules.buffer_before + rules.buffer_after)
            busy = AvailabilityService.get_busy_intervals(
                host_id,
                candidate.start - reach,
                candidate.end + reach,
                exclude_booking_id=replacing.id if replacing is not None else None,
            )
            if has_conflict(candidate, [interval.range for interval in busy], rules):
                logger.info(f"Rejected {candidate} for host {host_id}: slot taken")
                raise SlotTaken()

            if replacing is not None:
                cls.release(replacing)

            try:
                # Savepoint so a constraint violation leaves the outer transaction usable
                with transaction.atomic():
                    booking = Booking.objects.create(
                        host_id=host_id,
                        meeting_type=meeting_type,
                        guest_name=guest["name"],
                        guest_email=guest["email"],
                        guest_notes=guest.get("notes") or "",
                        start_utc=candidate.start,
                        end_utc=candidate.end,
                        status=BookingStatus.SCHEDULED,
                        location_details=meeting_type.location_details,
                        idempotency_key=idempotency_key or None,
                        status_changed_at=now,
                    )
                    cls.claim(booking)
            except IntegrityError as e:
                logger.info(f"Rejected {candidate} for host {host_id}: claim collision ({e})")
                raise SlotTaken()

        logger.info(
            f"Reserved booking {booking.id} for host {host_id} "
            f"({booking.start_utc.isoformat()} - {booking.end_utc.isoformat()})"
        )
        return booking

    @staticmethod
    def load_meeting_type(host_id, meeting_type_id):
        try:
            meeting_type = MeetingType.objects.get(id=meeting_type_id)
        except (MeetingType.DoesNotExist, ValidationError, ValueError):
            raise BookingInputError(f"Unknown meeting type '{meeting_type_id}'")

        if not meeting_type.is_active or str(meeting_type.host_id) != str(host_id):
            raise WindowNoLongerValid("This meeting type is no longer available.")
        return meeting_type

    @staticmethod
    def claimed_range(booking):
        """
        Range a booking holds exclusively: the meeting plus its larger buffer.

        Two meetings of one type whose gap is shorter than the buffer then
        share at least one bucket, so the constraint enforces buffers too.
        """
        meeting_type = booking.meeting_type
        reach = max(meeting_type.buffer_before, meeting_type.buffer_after)
        return TimeRange(booking.start_utc, booking.end_utc + timedelta(minutes=reach))

    @classmethod
    def claim(cls, booking):
        """Insert the exclusion claims of a booking"""
        bucket_minutes = scheduler_setting("CLAIM_BUCKET_MINUTES")
        claimed = cls.claimed_range(booking)
        BookingSlotClaim.objects.bulk_create(
            [
                BookingSlotClaim(booking=booking, host_id=booking.host_id, bucket_start=bucket)
                for bucket in claim_buckets(claimed.start, claimed.end, bucket_minutes)
            ]
        )

    @staticmethod
    def release(booking):
        """Delete the claims of a booking so its time can be reserved again"""
        deleted, _ = BookingSlotClaim.objects.filter(booking=booking).delete()
        return deleted
