# apps/bookingapp/tests/test_views.py
from unittest.mock import patch

from django.db.utils import OperationalError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.bookingapp.models import Booking, BookingSlotClaim, BookingStatus
from apps.bookingapp.services.conflict_guard import ConflictGuard
from apps.meetingapp.tests.fixtures import create_meeting_type, utc


class BookingViewSetTest(TestCase):
    """Test cases for the BookingViewSet"""

    def setUp(self):
        """Set up test data"""
        self.client = APIClient()
        self.meeting_type = create_meeting_type()
        self.list_url = reverse("booking-list")
        self.payload = {
            "host_id": "host-1",
            "meeting_type_id": str(self.meeting_type.id),
            "start_utc": "2030-01-07T09:00:00Z",
            "end_utc": "2030-01-07T09:30:00Z",
            "guest": {"name": "Ada Guest", "email": "ada@example.com"},
        }

    def post_booking(self, extra=None, **overrides):
        payload = dict(self.payload)
        payload.update(overrides)
        return self.client.post(self.list_url, payload, format="json", **(extra or {}))

    def detail_url(self, booking_id):
        return reverse("booking-detail", kwargs={"pk": booking_id})

    def test_create_booking(self):
        response = self.post_booking()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], BookingStatus.SCHEDULED)
        booking = Booking.objects.get(id=response.data["booking_id"])
        self.assertEqual(booking.start_utc, utc(2030, 1, 7, 9, 0))
        self.assertEqual(booking.guest_email, "ada@example.com")

    def test_create_booking_in_other_timezone_notation(self):
        response = self.post_booking(
            start_utc="2030-01-07T04:00:00-05:00", end_utc="2030-01-07T04:30:00-05:00"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        booking = Booking.objects.get(id=response.data["booking_id"])
        self.assertEqual(booking.start_utc, utc(2030, 1, 7, 9, 0))

    def test_slot_taken(self):
        self.post_booking()
        response = self.post_booking(
            start_utc="2030-01-07T09:15:00Z", end_utc="2030-01-07T09:45:00Z"
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["reason"], "SlotTaken")
        self.assertEqual(Booking.objects.count(), 1)

    def test_window_no_longer_valid(self):
        response = self.post_booking(
            start_utc="2030-01-07T13:00:00Z", end_utc="2030-01-07T13:30:00Z"
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["reason"], "WindowNoLongerValid")

    def test_past_slot(self):
        response = self.post_booking(
            start_utc="2020-01-06T09:00:00Z", end_utc="2020-01-06T09:30:00Z"
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["reason"], "PastOrTooSoon")

    def test_wrong_duration(self):
        response = self.post_booking(end_utc="2030-01-07T10:00:00Z")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["reason"], "InvalidBooking")

    def test_invalid_payload(self):
        response = self.post_booking(guest={"name": "Ada"}, end_utc="2030-01-07T08:00:00Z")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["reason"], "InvalidInput")
        self.assertIn("guest", response.data["detail"])

    def test_idempotency_key_header(self):
        first = self.post_booking(extra={"HTTP_IDEMPOTENCY_KEY": "req-1"})
        second = self.post_booking(extra={"HTTP_IDEMPOTENCY_KEY": "req-1"})

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data["booking_id"], second.data["booking_id"])
        self.assertEqual(Booking.objects.count(), 1)

    def test_idempotency_key_field(self):
        first = self.post_booking(idempotency_key="req-2")
        second = self.post_booking(idempotency_key="req-2")

        self.assertEqual(first.data["booking_id"], second.data["booking_id"])

    def test_storage_unavailable(self):
        with patch.object(
            ConflictGuard,
            "reserve_in_transaction",
            side_effect=OperationalError("database is locked"),
        ):
            response = self.post_booking()

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data["reason"], "StorageUnavailable")
        self.assertEqual(Booking.objects.count(), 0)

    def test_list_and_filter_bookings(self):
        self.post_booking()
        self.post_booking(start_utc="2030-01-07T10:00:00Z", end_utc="2030-01-07T10:30:00Z")
        other = create_meeting_type(host_id="host-2", slug="other-intro")
        self.post_booking(host_id="host-2", meeting_type_id=str(other.id))

        response = self.client.get(self.list_url, {"host_id": "host-1"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 2)
        self.assertEqual(
            [item["start_utc"] for item in response.data["results"]],
            ["2030-01-07T09:00:00Z", "2030-01-07T10:00:00Z"],
        )

        response = self.client.get(
            self.list_url, {"host_id": "host-1", "start_after": "2030-01-07T09:30:00Z"}
        )
        self.assertEqual(response.data["count"], 1)

    def test_retrieve_booking(self):
        booking_id = self.post_booking().data["booking_id"]

        response = self.client.get(self.detail_url(booking_id))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["meeting_type_name"], "Intro Call")

    def test_cancel_booking(self):
        booking_id = self.post_booking().data["booking_id"]

        response = self.client.patch(
            self.detail_url(booking_id), {"action": "cancel", "reason": "Sick"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], BookingStatus.CANCELLED)
        self.assertEqual(Booking.objects.get(id=booking_id).cancellation_reason, "Sick")
        self.assertEqual(BookingSlotClaim.objects.count(), 0)

        # The freed slot can be reserved again
        self.assertEqual(self.post_booking().status_code, status.HTTP_201_CREATED)

    def test_complete_before_end(self):
        booking_id = self.post_booking().data["booking_id"]

        response = self.client.patch(self.detail_url(booking_id), {"action": "complete"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["reason"], "InvalidTransition")

    def test_complete_finished_booking(self):
        booking = Booking.objects.create(
            host_id="host-1",
            meeting_type=self.meeting_type,
            guest_name="Past Guest",
            guest_email="past@example.com",
            start_utc=utc(2020, 1, 6, 9, 0),
            end_utc=utc(2020, 1, 6, 9, 30),
        )

        response = self.client.patch(self.detail_url(booking.id), {"action": "complete"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], BookingStatus.COMPLETED)

    def test_unknown_action(self):
        booking_id = self.post_booking().data["booking_id"]

        response = self.client.patch(self.detail_url(booking_id), {"action": "archive"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["reason"], "InvalidInput")

    def test_action_on_unknown_booking(self):
        response = self.client.patch(
            self.detail_url("00000000-0000-0000-0000-000000000000"), {"action": "cancel"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["reason"], "NotFound")

    def test_reschedule_booking(self):
        booking_id = self.post_booking().data["booking_id"]

        response = self.client.post(
            reverse("booking-reschedule", kwargs={"pk": booking_id}),
            {"start_utc": "2030-01-07T11:00:00Z", "end_utc": "2030-01-07T11:30:00Z"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["replaces"], booking_id)
        self.assertEqual(Booking.objects.get(id=booking_id).status, BookingStatus.CANCELLED)
        self.assertEqual(
            Booking.objects.get(id=response.data["booking_id"]).start_utc, utc(2030, 1, 7, 11, 0)
        )

    def test_put_and_delete_are_not_allowed(self):
        booking_id = self.post_booking().data["booking_id"]

        self.assertEqual(
            self.client.delete(self.detail_url(booking_id)).status_code,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        )
        self.assertEqual(
            self.client.put(self.detail_url(booking_id), {}, format="json").status_code,
            status.HTTP_405_METHOD_NOT_ALLOWED,
        )
