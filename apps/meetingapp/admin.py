# apps/meetingapp/admin.py
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from apps.meetingapp.models import AvailabilityWindow, BlockedTime, MeetingType


class AvailabilityWindowInline(admin.TabularInline):
    """Inline admin for weekly availability windows"""

    model = AvailabilityWindow
    extra = 0


@admin.register(MeetingType)
class MeetingTypeAdmin(admin.ModelAdmin):
    """Admin configuration for meeting types"""

    list_display = [
        "name",
        "slug",
        "host_id",
        "duration",
        "buffers",
        "is_active",
    ]
    list_filter = ["is_active", "duration"]
    search_fields = ["name", "slug", "host_id"]
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ["created_at", "updated_at"]
    inlines = [AvailabilityWindowInline]

    def buffers(self, obj):
        return f"{obj.buffer_before} / {obj.buffer_after}"

    buffers.short_description = _("Buffers (before / after)")


@admin.register(BlockedTime)
class BlockedTimeAdmin(admin.ModelAdmin):
    list_display = ["host_id", "start_utc", "end_utc", "reason"]
    search_fields = ["host_id", "reason"]
    date_hierarchy = "start_utc"
