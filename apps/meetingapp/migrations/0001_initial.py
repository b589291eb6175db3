import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import apps.meetingapp.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MeetingType",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("host_id", models.CharField(db_index=True, max_length=64, verbose_name="Host ID")),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("slug", models.SlugField(max_length=120, unique=True, verbose_name="Slug")),
                ("description", models.TextField(blank=True, verbose_name="Description")),
                (
                    "duration",
                    models.PositiveIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(1440),
                        ],
                        verbose_name="Duration (minutes)",
                    ),
                ),
                (
                    "buffer_before",
                    models.PositiveIntegerField(
                        default=0,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(240),
                        ],
                        verbose_name="Buffer Before (minutes)",
                    ),
                ),
                (
                    "buffer_after",
                    models.PositiveIntegerField(
                        default=0,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(240),
                        ],
                        verbose_name="Buffer After (minutes)",
                    ),
                ),
                (
                    "min_notice_minutes",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Minimum time before a slot that booking is allowed",
                        null=True,
                        verbose_name="Minimum Booking Notice (minutes)",
                    ),
                ),
                (
                    "max_advance_days",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="How far in advance bookings are allowed",
                        null=True,
                        verbose_name="Maximum Advance Booking (days)",
                    ),
                ),
                ("location_details", models.CharField(blank=True, max_length=500, verbose_name="Location Details")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
            ],
            options={
                "verbose_name": "Meeting Type",
                "verbose_name_plural": "Meeting Types",
                "ordering": ["host_id", "name"],
                "indexes": [models.Index(fields=["host_id", "is_active"], name="meeting_type_host_active_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("duration__gt", 0)), name="meeting_type_duration_positive"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="BlockedTime",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("host_id", models.CharField(db_index=True, max_length=64, verbose_name="Host ID")),
                ("start_utc", models.DateTimeField(verbose_name="Start (UTC)")),
                ("end_utc", models.DateTimeField(verbose_name="End (UTC)")),
                ("reason", models.CharField(blank=True, max_length=255, verbose_name="Reason")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
            ],
            options={
                "verbose_name": "Blocked Time",
                "verbose_name_plural": "Blocked Times",
                "ordering": ["start_utc"],
                "indexes": [
                    models.Index(fields=["host_id", "start_utc", "end_utc"], name="blocked_host_range_idx")
                ],
            },
        ),
        migrations.CreateModel(
            name="AvailabilityWindow",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "weekday",
                    models.IntegerField(
                        choices=[
                            (0, "Monday"),
                            (1, "Tuesday"),
                            (2, "Wednesday"),
                            (3, "Thursday"),
                            (4, "Friday"),
                            (5, "Saturday"),
                            (6, "Sunday"),
                        ],
                        verbose_name="Weekday",
                    ),
                ),
                ("start_time", models.TimeField(verbose_name="Start Time")),
                ("end_time", models.TimeField(verbose_name="End Time")),
                (
                    "timezone",
                    models.CharField(
                        default="UTC",
                        max_length=64,
                        validators=[apps.meetingapp.validators.validate_timezone],
                        verbose_name="Timezone",
                    ),
                ),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                (
                    "meeting_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="windows",
                        to="meetingapp.meetingtype",
                        verbose_name="Meeting Type",
                    ),
                ),
            ],
            options={
                "verbose_name": "Availability Window",
                "verbose_name_plural": "Availability Windows",
                "ordering": ["weekday", "start_time"],
                "indexes": [
                    models.Index(fields=["meeting_type", "is_active"], name="window_type_active_idx")
                ],
            },
        ),
    ]
