from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class MeetingAppConfig(AppConfig):
    name = "apps.meetingapp"
    label = "meetingapp"
    verbose_name = _("Meeting Types & Availability")
