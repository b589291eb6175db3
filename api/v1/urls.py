# api/v1/urls.py
from django.urls import include, path

# API URLs
urlpatterns = [
    # Slot listing and public meeting type pages
    path("", include("apps.meetingapp.urls")),
    # Reservations and booking lifecycle
    path("", include("apps.bookingapp.urls")),
]
