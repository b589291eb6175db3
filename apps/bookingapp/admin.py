# apps/bookingapp/admin.py
from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from apps.bookingapp.models import Booking, BookingSlotClaim
from apps.bookingapp.services.lifecycle_service import BookingLifecycleService
from core.exceptions import ConflictError


class BookingSlotClaimInline(admin.TabularInline):
    """Inline admin for the exclusion claims of a booking"""

    model = BookingSlotClaim
    extra = 0
    can_delete = False
    readonly_fields = ["host_id", "bucket_start"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin configuration for bookings; status changes go through lifecycle actions"""

    list_display = [
        "id",
        "guest_name",
        "meeting_type_name",
        "host_id",
        "start_utc",
        "end_utc",
        "status",
    ]
    list_filter = ["status", "start_utc", "meeting_type"]
    search_fields = ["guest_name", "guest_email", "host_id", "meeting_type__name"]
    readonly_fields = [
        "host_id",
        "meeting_type",
        "start_utc",
        "end_utc",
        "status",
        "status_changed_at",
        "idempotency_key",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "start_utc"
    inlines = [BookingSlotClaimInline]
    actions = ["cancel_bookings", "complete_bookings", "mark_no_show"]

    def meeting_type_name(self, obj):
        return obj.meeting_type.name

    meeting_type_name.short_description = _("Meeting Type")

    def has_add_permission(self, request):
        # Bookings are created through the reservation API only
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def _apply(self, request, queryset, action):
        done = 0
        for booking in queryset:
            try:
                BookingLifecycleService.apply(booking.id, action, reason=_("Changed by admin"))
                done += 1
            except ConflictError as e:
                self.message_user(request, f"{booking.id}: {e}", level=messages.WARNING)
        self.message_user(request, _("%(count)d booking(s) updated") % {"count": done})

    @admin.action(description=_("Cancel selected bookings"))
    def cancel_bookings(self, request, queryset):
        self._apply(request, queryset, BookingLifecycleService.CANCEL)

    @admin.action(description=_("Complete selected bookings"))
    def complete_bookings(self, request, queryset):
        self._apply(request, queryset, BookingLifecycleService.COMPLETE)

    @admin.action(description=_("Mark selected bookings as no-show"))
    def mark_no_show(self, request, queryset):
        self._apply(request, queryset, BookingLifecycleService.NO_SHOW)
