"""
Meeting app views
Public endpoints for browsing meeting types and their bookable slots
"""

from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.meetingapp.models import MeetingType
from apps.meetingapp.serializers import MeetingTypeSerializer, SlotQuerySerializer, SlotSerializer
from apps.meetingapp.services.availability_service import AvailabilityService


class MeetingTypeBySlugView(generics.RetrieveAPIView):
    """Public booking page data for one meeting type"""

    queryset = MeetingType.objects.filter(is_active=True).prefetch_related("windows")
    serializer_class = MeetingTypeSerializer
    permission_classes = [permissions.AllowAny]
    lookup_field = "slug"


class SlotListView(APIView):
    """
    List bookable slots of a meeting type.

    Query parameters: host_id, meeting_type_id, from, to (viewer-local dates),
    viewer_timezone, optional granularity (minutes) and group_by=date.
    """

    permission_classes = [permissions.AllowAny]

    def get(self, request):
        query = SlotQuerySerializer.from_query_params(request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        options = {
            "host_id": params["host_id"],
            "meeting_type_id": params["meeting_type_id"],
            "range_start_date": params["range_start"],
            "range_end_date": params["range_end"],
            "viewer_timezone": params["viewer_timezone"],
            "granularity_minutes": params.get("granularity"),
        }

        if params.get("group_by") == "date":
            grouped = AvailabilityService.get_available_slots_by_date(**options)
            data = {
                day: SlotSerializer(day_slots, many=True).data for day, day_slots in grouped.items()
            }
            return Response(data, status=status.HTTP_200_OK)

        slots = AvailabilityService.get_available_slots(**options)
        return Response(SlotSerializer(slots, many=True).data, status=status.HTTP_200_OK)
