from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from .models import AvailabilityWindow, MeetingType


class AvailabilityWindowSerializer(serializers.ModelSerializer):
    weekday_name = serializers.SerializerMethodField()

    class Meta:
        model = AvailabilityWindow
        fields = ("id", "weekday", "weekday_name", "start_time", "end_time", "timezone", "is_active")
        read_only_fields = ("id",)

    def get_weekday_name(self, obj):
        return str(obj.get_weekday_display())

    def validate(self, data):
        start_time = data.get("start_time", getattr(self.instance, "start_time", None))
        end_time = data.get("end_time", getattr(self.instance, "end_time", None))
        if start_time and end_time and start_time >= end_time:
            raise serializers.ValidationError(_("Start time must be before end time"))
        return data


class MeetingTypeSerializer(serializers.ModelSerializer):
    """Public view of a meeting type, as shown on a booking page"""

    windows = serializers.SerializerMethodField()

    class Meta:
        model = MeetingType
        fields = (
            "id",
            "host_id",
            "name",
            "slug",
            "description",
            "duration",
            "buffer_before",
            "buffer_after",
            "min_notice_minutes",
            "max_advance_days",
            "location_details",
            "windows",
        )
        read_only_fields = fields

    def get_windows(self, obj):
        windows = obj.windows.filter(is_active=True)
        return AvailabilityWindowSerializer(windows, many=True).data


class SlotQuerySerializer(serializers.Serializer):
    """Query parameters of the slot listing"""

    host_id = serializers.CharField(max_length=64)
    meeting_type_id = serializers.UUIDField()
    # "from" is a keyword; the view maps the query parameter onto range_start
    range_start = serializers.DateField()
    range_end = serializers.DateField()
    viewer_timezone = serializers.CharField(max_length=64, required=False, default="UTC")
    granularity = serializers.IntegerField(required=False)
    group_by = serializers.ChoiceField(choices=["date"], required=False)

    @classmethod
    def from_query_params(cls, query_params):
        data = {
            key: query_params.get(key)
            for key in ("host_id", "meeting_type_id", "viewer_timezone", "granularity", "group_by")
            if query_params.get(key) not in (None, "")
        }
        if query_params.get("from"):
            data["range_start"] = query_params.get("from")
        if query_params.get("to"):
            data["range_end"] = query_params.get("to")
        return cls(data=data)


class SlotSerializer(serializers.Serializer):
    start_utc = serializers.DateTimeField()
    end_utc = serializers.DateTimeField()
    start_local = serializers.SerializerMethodField()
    end_local = serializers.SerializerMethodField()

    # DRF would re-render aware datetimes in the server zone; keep the viewer's offset
    def get_start_local(self, obj):
        return obj.start_local.isoformat()

    def get_end_local(self, obj):
        return obj.end_local.isoformat()
