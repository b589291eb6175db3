# apps/bookingapp/serializers.py
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from apps.bookingapp.models import Booking
from apps.bookingapp.services.lifecycle_service import BookingLifecycleService


class GuestSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingSerializer(serializers.ModelSerializer):
    """Read-only representation of a booking"""

    meeting_type_name = serializers.CharField(source="meeting_type.name", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "host_id",
            "meeting_type",
            "meeting_type_name",
            "guest_name",
            "guest_email",
            "guest_notes",
            "start_utc",
            "end_utc",
            "status",
            "location_details",
            "cancellation_reason",
            "status_changed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Serializer for reserving a slot"""

    host_id = serializers.CharField(max_length=64)
    meeting_type_id = serializers.UUIDField()
    start_utc = serializers.DateTimeField()
    end_utc = serializers.DateTimeField()
    guest = GuestSerializer()
    idempotency_key = serializers.CharField(
        max_length=255, required=False, allow_blank=True, allow_null=True
    )

    def validate(self, data):
        """Validate that the requested range is not empty"""
        if data["end_utc"] <= data["start_utc"]:
            raise serializers.ValidationError(_("End time must be after start time"))
        return data


class BookingActionSerializer(serializers.Serializer):
    """Serializer for lifecycle actions"""

    action = serializers.ChoiceField(choices=sorted(BookingLifecycleService.ACTION_TARGETS))
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class BookingRescheduleSerializer(serializers.Serializer):
    """Serializer for moving a booking to another slot"""

    start_utc = serializers.DateTimeField()
    end_utc = serializers.DateTimeField()

    def validate(self, data):
        if data["end_utc"] <= data["start_utc"]:
            raise serializers.ValidationError(_("End time must be after start time"))
        return data
