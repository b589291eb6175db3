import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("meetingapp", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("host_id", models.CharField(db_index=True, max_length=64, verbose_name="Host ID")),
                ("guest_name", models.CharField(max_length=255, verbose_name="Guest Name")),
                ("guest_email", models.EmailField(max_length=254, verbose_name="Guest Email")),
                ("guest_notes", models.TextField(blank=True, verbose_name="Guest Notes")),
                ("start_utc", models.DateTimeField(db_index=True, verbose_name="Start (UTC)")),
                ("end_utc", models.DateTimeField(verbose_name="End (UTC)")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("no_show", "No Show"),
                        ],
                        db_index=True,
                        default="scheduled",
                        max_length=20,
                        verbose_name="Status",
                    ),
                ),
                ("location_details", models.CharField(blank=True, max_length=500, verbose_name="Location Details")),
                ("cancellation_reason", models.TextField(blank=True, verbose_name="Cancellation Reason")),
                (
                    "idempotency_key",
                    models.CharField(blank=True, max_length=255, null=True, verbose_name="Idempotency Key"),
                ),
                ("status_changed_at", models.DateTimeField(blank=True, null=True, verbose_name="Status Changed At")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                (
                    "meeting_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="meetingapp.meetingtype",
                        verbose_name="Meeting Type",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-start_utc"],
                "indexes": [
                    models.Index(fields=["host_id", "start_utc", "end_utc"], name="booking_host_range_idx"),
                    models.Index(fields=["host_id", "status", "start_utc"], name="booking_host_status_idx"),
                    models.Index(fields=["status", "end_utc"], name="booking_status_end_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("idempotency_key__isnull", False)),
                        fields=("host_id", "idempotency_key"),
                        name="unique_booking_idempotency_key_per_host",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("end_utc__gt", models.F("start_utc"))),
                        name="booking_end_after_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingSlotClaim",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("host_id", models.CharField(max_length=64, verbose_name="Host ID")),
                ("bucket_start", models.DateTimeField(verbose_name="Bucket Start (UTC)")),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="claims",
                        to="bookingapp.booking",
                        verbose_name="Booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking Slot Claim",
                "verbose_name_plural": "Booking Slot Claims",
                "constraints": [
                    models.UniqueConstraint(fields=("host_id", "bucket_start"), name="unique_host_bucket_claim")
                ],
            },
        ),
    ]
