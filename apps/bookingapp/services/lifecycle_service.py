import logging
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from algorithms.availability.timezone_utils import ensure_utc
from apps.bookingapp.models import Booking, BookingStatus
from apps.bookingapp.services.conflict_guard import (
    ConflictGuard,
    apply_statement_timeout,
    run_with_storage_retries,
)
from core.exceptions import BookingInputError, InvalidTransition, ResourceNotFoundError

logger = logging.getLogger(__name__)


class BookingLifecycleService:
    """
    State machine of a reserved booking.

    ``scheduled`` is the only non-terminal state:

    - cancel: scheduled -> cancelled, before the meeting starts
    - complete: scheduled -> completed, once the meeting has ended
    - no_show: scheduled -> no_show, once the meeting has started
    """

    CANCEL = "cancel"
    COMPLETE = "complete"
    NO_SHOW = "no_show"

    ACTION_TARGETS = {
        CANCEL: BookingStatus.CANCELLED,
        COMPLETE: BookingStatus.COMPLETED,
        NO_SHOW: BookingStatus.NO_SHOW,
    }

    @classmethod
    def apply(cls, booking_id, action, now=None, reason=""):
        """
        Apply a lifecycle action to a booking.

        Raises:
            BookingInputError: unknown action
            ResourceNotFoundError: no such booking
            InvalidTransition: action not allowed in the current state or time
            StorageUnavailable: storage kept failing
        """
        if action not in cls.ACTION_TARGETS:
            raise BookingInputError(
                f"Unknown action '{action}'", allowed=sorted(cls.ACTION_TARGETS)
            )
        now = ensure_utc(now or timezone.now())

        def attempt(remaining):
            return cls._transition(booking_id, action, now, reason, remaining)

        return run_with_storage_retries(attempt, description=f"{action} of booking {booking_id}")

    @classmethod
    def cancel(cls, booking_id, reason="", now=None):
        return cls.apply(booking_id, cls.CANCEL, now=now, reason=reason)

    @classmethod
    def complete(cls, booking_id, now=None):
        return cls.apply(booking_id, cls.COMPLETE, now=now)

    @classmethod
    def mark_no_show(cls, booking_id, now=None):
        return cls.apply(booking_id, cls.NO_SHOW, now=now)

    @staticmethod
    def lock_booking(booking_id):
        """Fetch a booking with its row locked for the current transaction"""
        try:
            return Booking.objects.select_for_update().get(id=booking_id)
        except (Booking.DoesNotExist, ValidationError, ValueError):
            raise ResourceNotFoundError("Booking", booking_id)

    @classmethod
    def check_transition(cls, booking, action, now):
        """
        Validate a transition; returns False when it is an idempotent no-op.
        """
        target = cls.ACTION_TARGETS[action]

        if action == cls.COMPLETE and booking.status == BookingStatus.COMPLETED:
            return False

        if booking.status != BookingStatus.SCHEDULED:
            raise InvalidTransition(
                f"Cannot {action.replace('_', ' ')} a booking that is {booking.status}",
                current_status=booking.status,
                target_status=target,
            )

        if action == cls.CANCEL and now >= booking.start_utc:
            raise InvalidTransition("Bookings can only be cancelled before they start")
        if action == cls.COMPLETE and now < booking.end_utc:
            raise InvalidTransition("Bookings can only be completed after they end")
        if action == cls.NO_SHOW and now < booking.start_utc:
            raise InvalidTransition("A booking can only be marked as no-show after it starts")
        return True

    @classmethod
    def _transition(cls, booking_id, action, now, reason="", remaining_seconds=None):
        with transaction.atomic():
            apply_statement_timeout(remaining_seconds)
            booking = cls.lock_booking(booking_id)

            if not cls.check_transition(booking, action, now):
                return booking

            previous = booking.status
            cls._set_status(booking, cls.ACTION_TARGETS[action], now, reason)

        logger.info(f"Booking {booking.id}: {previous} -> {booking.status}")
        return booking

    @staticmethod
    def _set_status(booking, status, now, reason=""):
        booking.status = status
        booking.status_changed_at = now
        update_fields = ["status", "status_changed_at", "updated_at"]
        if status == BookingStatus.CANCELLED:
            booking.cancellation_reason = reason or ""
            update_fields.append("cancellation_reason")
        booking.save(update_fields=update_fields)

        if status == BookingStatus.CANCELLED:
            # Cancelled time is free again immediately
            ConflictGuard.release(booking)

    @classmethod
    def reschedule(cls, booking_id, new_start, new_end, now=None, reason="Rescheduled"):
        """
        Move a booking by reserving the new time and cancelling the old booking
        in one transaction; the old booking keeps its times for history.

        Returns:
            The new scheduled Booking
        """
        candidate = ConflictGuard.validate_candidate(new_start, new_end)
        now = ensure_utc(now or timezone.now())

        def attempt(remaining):
            with transaction.atomic():
                apply_statement_timeout(remaining)
                old = cls.lock_booking(booking_id)
                cls.check_transition(old, cls.CANCEL, now)

                new_booking = ConflictGuard.reserve_in_transaction(
                    old.host_id,
                    old.meeting_type_id,
                    candidate,
                    {"name": old.guest_name, "email": old.guest_email, "notes": old.guest_notes},
                    now=now,
                    replacing=old,
                )
                cls._set_status(old, BookingStatus.CANCELLED, now, reason)
            logger.info(f"Booking {old.id} rescheduled to {new_booking.id}")
            return new_booking

        return run_with_storage_retries(attempt, description=f"Reschedule of booking {booking_id}")

    @classmethod
    def auto_complete_finished(cls, grace_minutes=0, now=None):
        """
        Complete every scheduled booking that ended more than ``grace_minutes`` ago.

        Returns:
            Number of bookings completed
        """
        now = ensure_utc(now or timezone.now())
        cutoff = now - timedelta(minutes=grace_minutes)
        finished_ids = list(
            Booking.objects.filter(status=BookingStatus.SCHEDULED, end_utc__lte=cutoff)
            .order_by("end_utc")
            .values_list("id", flat=True)
        )

        count = 0
        for booking_id in finished_ids:
            try:
                booking = cls.complete(booking_id, now=now)
            except InvalidTransition as e:
                # Changed state since the query ran
                logger.info(f"Skipping auto-complete of booking {booking_id}: {e}")
                continue
            if booking.status == BookingStatus.COMPLETED:
                count += 1
        return count
