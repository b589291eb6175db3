import uuid

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from algorithms.availability.time_range import BusyInterval, MeetingRules, WindowSpec

from .enums import Weekday
from .validators import validate_timezone


class MeetingType(models.Model):
    """Bookable offering of a host"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    host_id = models.CharField(_("Host ID"), max_length=64, db_index=True)
    name = models.CharField(_("Name"), max_length=255)
    slug = models.SlugField(_("Slug"), max_length=120, unique=True)
    description = models.TextField(_("Description"), blank=True)
    duration = models.PositiveIntegerField(
        _("Duration (minutes)"),
        validators=[MinValueValidator(1), MaxValueValidator(1440)],  # Max 24 hours
    )
    buffer_before = models.PositiveIntegerField(
        _("Buffer Before (minutes)"),
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(240)],
    )
    buffer_after = models.PositiveIntegerField(
        _("Buffer After (minutes)"),
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(240)],
    )
    min_notice_minutes = models.PositiveIntegerField(
        _("Minimum Booking Notice (minutes)"),
        null=True,
        blank=True,
        help_text=_("Minimum time before a slot that booking is allowed"),
    )
    max_advance_days = models.PositiveIntegerField(
        _("Maximum Advance Booking (days)"),
        null=True,
        blank=True,
        help_text=_("How far in advance bookings are allowed"),
    )
    location_details = models.CharField(_("Location Details"), max_length=500, blank=True)
    is_active = models.BooleanField(_("Active"), default=True, db_index=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    class Meta:
        verbose_name = _("Meeting Type")
        verbose_name_plural = _("Meeting Types")
        ordering = ["host_id", "name"]
        indexes = [
            models.Index(fields=["host_id", "is_active"], name="meeting_type_host_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(duration__gt=0), name="meeting_type_duration_positive"
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.duration} min)"

    @property
    def total_duration(self):
        """Total duration including buffers"""
        return self.buffer_before + self.duration + self.buffer_after

    def effective_min_notice(self, default_minutes=0):
        if self.min_notice_minutes is None:
            return default_minutes
        return self.min_notice_minutes

    def to_rules(self, default_min_notice=0) -> MeetingRules:
        """Freeze the scheduling parameters for one generation or reservation call"""
        return MeetingRules(
            duration=self.duration,
            buffer_before=self.buffer_before,
            buffer_after=self.buffer_after,
            min_notice_minutes=self.effective_min_notice(default_min_notice),
            max_advance_days=self.max_advance_days,
        )


class AvailabilityWindow(models.Model):
    """Recurring weekly opening of a meeting type, in the host's local time"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    meeting_type = models.ForeignKey(
        MeetingType,
        on_delete=models.CASCADE,
        related_name="windows",
        verbose_name=_("Meeting Type"),
    )
    weekday = models.IntegerField(_("Weekday"), choices=Weekday.choices)
    start_time = models.TimeField(_("Start Time"))
    end_time = models.TimeField(_("End Time"))
    timezone = models.CharField(
        _("Timezone"), max_length=64, default="UTC", validators=[validate_timezone]
    )
    is_active = models.BooleanField(_("Active"), default=True)

    class Meta:
        verbose_name = _("Availability Window")
        verbose_name_plural = _("Availability Windows")
        ordering = ["weekday", "start_time"]
        indexes = [
            models.Index(fields=["meeting_type", "is_active"], name="window_type_active_idx"),
        ]

    def __str__(self):
        return (
            f"{self.get_weekday_display()}: {self.start_time.strftime('%H:%M')} - "
            f"{self.end_time.strftime('%H:%M')} ({self.timezone})"
        )

    def clean(self):
        # Windows never span midnight
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError(_("Start time must be before end time"))

    def to_spec(self) -> WindowSpec:
        return WindowSpec(
            weekday=self.weekday,
            start_time=self.start_time.replace(second=0, microsecond=0),
            end_time=self.end_time.replace(second=0, microsecond=0),
            timezone=self.timezone,
            meeting_type_id=str(self.meeting_type_id),
            window_id=str(self.id),
        )


class BlockedTime(models.Model):
    """One-off period during which a host cannot be booked"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    host_id = models.CharField(_("Host ID"), max_length=64, db_index=True)
    start_utc = models.DateTimeField(_("Start (UTC)"))
    end_utc = models.DateTimeField(_("End (UTC)"))
    reason = models.CharField(_("Reason"), max_length=255, blank=True)
    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)

    class Meta:
        verbose_name = _("Blocked Time")
        verbose_name_plural = _("Blocked Times")
        ordering = ["start_utc"]
        indexes = [
            models.Index(fields=["host_id", "start_utc", "end_utc"], name="blocked_host_range_idx"),
        ]

    def __str__(self):
        return f"{self.host_id}: {self.start_utc:%Y-%m-%d %H:%M} - {self.end_utc:%H:%M}"

    def clean(self):
        if self.start_utc and self.end_utc and self.start_utc >= self.end_utc:
            raise ValidationError(_("Start must be before end"))

    def to_busy(self) -> BusyInterval:
        return BusyInterval(
            start_utc=self.start_utc,
            end_utc=self.end_utc,
            host_id=self.host_id,
            source="blocked_time",
            source_id=str(self.id),
        )
