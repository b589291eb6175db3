# apps/bookingapp/filters.py
from django.utils import timezone
from django_filters import rest_framework as filters

from apps.bookingapp.models import Booking, BookingStatus


class BookingFilter(filters.FilterSet):
    """Filters for listing a host's bookings"""

    host_id = filters.CharFilter(field_name="host_id")
    meeting_type = filters.UUIDFilter(field_name="meeting_type__id")

    # Status filtering
    status = filters.MultipleChoiceFilter(field_name="status", choices=BookingStatus.choices)

    # Time range filtering
    start_after = filters.IsoDateTimeFilter(field_name="start_utc", lookup_expr="gte")
    start_before = filters.IsoDateTimeFilter(field_name="start_utc", lookup_expr="lt")
    upcoming = filters.BooleanFilter(method="filter_upcoming")

    class Meta:
        model = Booking
        fields = ["host_id", "meeting_type", "status", "start_after", "start_before"]

    def filter_upcoming(self, queryset, name, value):
        now = timezone.now()
        if value:
            return queryset.filter(start_utc__gte=now, status=BookingStatus.SCHEDULED)
        return queryset.filter(start_utc__lt=now)
