# apps/meetingapp/urls.py
from django.urls import path

from apps.meetingapp.views import MeetingTypeBySlugView, SlotListView

urlpatterns = [
    path("slots/", SlotListView.as_view(), name="slot-list"),
    path("meeting-types/<slug:slug>/", MeetingTypeBySlugView.as_view(), name="meeting-type-detail"),
]
