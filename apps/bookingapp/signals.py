# apps/bookingapp/signals.py
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.bookingapp.models import Booking

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Booking)
def booking_post_save(sender, instance, created, **kwargs):
    """
    Handle post-save signal for Bookings.
    Writes an audit line for every creation and status change.
    """
    if created:
        logger.info(
            f"Booking {instance.id} created for host {instance.host_id} "
            f"({instance.start_utc.isoformat()} - {instance.end_utc.isoformat()})"
        )
    elif instance.tracker.has_changed("status"):
        logger.info(
            f"Booking {instance.id} status changed: "
            f"{instance.tracker.previous('status')} -> {instance.status}"
        )
