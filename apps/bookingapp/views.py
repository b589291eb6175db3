"""
Booking app views for SlotBook
Handles reservation of slots and the lifecycle of the resulting bookings
"""

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.response import Response

from apps.bookingapp.filters import BookingFilter
from apps.bookingapp.models import Booking
from apps.bookingapp.serializers import (
    BookingActionSerializer,
    BookingCreateSerializer,
    BookingRescheduleSerializer,
    BookingSerializer,
)
from apps.bookingapp.services.conflict_guard import ConflictGuard
from apps.bookingapp.services.lifecycle_service import BookingLifecycleService

IDEMPOTENCY_HEADER = "Idempotency-Key"


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    API endpoint for bookings.

    - POST reserves a slot (409 when it is no longer bookable)
    - PATCH applies a lifecycle action: cancel, complete or no_show
    - GET lists or retrieves bookings
    """

    queryset = Booking.objects.select_related("meeting_type")
    serializer_class = BookingSerializer
    permission_classes = [permissions.AllowAny]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = BookingFilter
    ordering_fields = ["start_utc", "created_at", "status"]
    ordering = ["start_utc"]
    http_method_names = ["get", "post", "patch", "head", "options"]

    def get_throttles(self):
        # Reservations share the stricter "booking" rate
        self.throttle_scope = "booking" if self.action in ("create", "reschedule") else None
        return super().get_throttles()

    def create(self, request, *args, **kwargs):
        """Reserve a slot through the conflict guard"""
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        idempotency_key = request.headers.get(IDEMPOTENCY_HEADER) or data.get("idempotency_key")

        booking = ConflictGuard.reserve_slot(
            host_id=data["host_id"],
            meeting_type_id=data["meeting_type_id"],
            candidate_start=data["start_utc"],
            candidate_end=data["end_utc"],
            guest=dict(data["guest"]),
            idempotency_key=idempotency_key or None,
        )
        return Response(
            {"booking_id": str(booking.id), "status": booking.status},
            status=status.HTTP_201_CREATED,
        )

    def partial_update(self, request, *args, **kwargs):
        """Apply a lifecycle action"""
        serializer = BookingActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = BookingLifecycleService.apply(
            kwargs[self.lookup_field],
            serializer.validated_data["action"],
            reason=serializer.validated_data.get("reason", ""),
        )
        return Response({"booking_id": str(booking.id), "status": booking.status})

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):
        """Move a booking to another slot; the old booking is cancelled"""
        serializer = BookingRescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        new_booking = BookingLifecycleService.reschedule(
            pk,
            serializer.validated_data["start_utc"],
            serializer.validated_data["end_utc"],
        )
        return Response(
            {"booking_id": str(new_booking.id), "status": new_booking.status, "replaces": pk},
            status=status.HTTP_201_CREATED,
        )
