# apps/bookingapp/urls.py
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.bookingapp.views import BookingViewSet

router = DefaultRouter()
router.register(r"bookings", BookingViewSet, basename="booking")

urlpatterns = [
    path("", include(router.urls)),
]
