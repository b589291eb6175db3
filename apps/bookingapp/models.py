# apps/bookingapp/models.py
import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _
from model_utils import FieldTracker

from algorithms.availability.time_range import BusyInterval, TimeRange
from apps.meetingapp.models import MeetingType


class BookingStatus(models.TextChoices):
    """Booking states; everything but SCHEDULED is terminal"""

    SCHEDULED = "scheduled", _("Scheduled")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")
    NO_SHOW = "no_show", _("No Show")


class BookingQuerySet(models.QuerySet):
    def active(self):
        """Bookings that still take time away from their host"""
        return self.exclude(status=BookingStatus.CANCELLED)


class Booking(models.Model):
    """Reserved meeting between a host and a guest; never physically deleted"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    host_id = models.CharField(_("Host ID"), max_length=64, db_index=True)
    meeting_type = models.ForeignKey(
        MeetingType,
        on_delete=models.PROTECT,
        related_name="bookings",
        verbose_name=_("Meeting Type"),
    )
    guest_name = models.CharField(_("Guest Name"), max_length=255)
    guest_email = models.EmailField(_("Guest Email"))
    guest_notes = models.TextField(_("Guest Notes"), blank=True)
    start_utc = models.DateTimeField(_("Start (UTC)"), db_index=True)
    end_utc = models.DateTimeField(_("End (UTC)"))
    status = models.CharField(
        _("Status"),
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.SCHEDULED,
        db_index=True,
    )
    location_details = models.CharField(_("Location Details"), max_length=500, blank=True)
    cancellation_reason = models.TextField(_("Cancellation Reason"), blank=True)
    idempotency_key = models.CharField(
        _("Idempotency Key"), max_length=255, null=True, blank=True
    )
    status_changed_at = models.DateTimeField(_("Status Changed At"), null=True, blank=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    # Track status changes for signals
    tracker = FieldTracker(fields=["status"])

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-start_utc"]
        indexes = [
            models.Index(fields=["host_id", "start_utc", "end_utc"], name="booking_host_range_idx"),
            models.Index(fields=["host_id", "status", "start_utc"], name="booking_host_status_idx"),
            models.Index(fields=["status", "end_utc"], name="booking_status_end_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["host_id", "idempotency_key"],
                condition=models.Q(idempotency_key__isnull=False),
                name="unique_booking_idempotency_key_per_host",
            ),
            models.CheckConstraint(
                condition=models.Q(end_utc__gt=models.F("start_utc")),
                name="booking_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.guest_name} - {self.meeting_type_id} - {self.start_utc:%Y-%m-%d %H:%M}"

    @property
    def range(self) -> TimeRange:
        return TimeRange(self.start_utc, self.end_utc)

    @property
    def is_active(self):
        return self.status != BookingStatus.CANCELLED

    @property
    def is_terminal(self):
        return self.status != BookingStatus.SCHEDULED

    def to_busy(self) -> BusyInterval:
        return BusyInterval(
            start_utc=self.start_utc,
            end_utc=self.end_utc,
            host_id=self.host_id,
            source="booking",
            source_id=str(self.id),
        )


class BookingSlotClaim(models.Model):
    """
    Exclusive claim of one time bucket of a host by a booking.

    The unique constraint on ``(host_id, bucket_start)`` makes the database
    reject any second booking that would overlap a claimed range.
    """

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="claims",
        verbose_name=_("Booking"),
    )
    host_id = models.CharField(_("Host ID"), max_length=64)
    bucket_start = models.DateTimeField(_("Bucket Start (UTC)"))

    class Meta:
        verbose_name = _("Booking Slot Claim")
        verbose_name_plural = _("Booking Slot Claims")
        constraints = [
            models.UniqueConstraint(
                fields=["host_id", "bucket_start"], name="unique_host_bucket_claim"
            ),
        ]

    def __str__(self):
        return f"{self.host_id} @ {self.bucket_start:%Y-%m-%d %H:%M}"
