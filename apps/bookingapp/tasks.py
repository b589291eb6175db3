# apps/bookingapp/tasks.py
import logging

from celery import shared_task

from apps.bookingapp.services.lifecycle_service import BookingLifecycleService
from utils.settings_helpers import scheduler_setting

logger = logging.getLogger(__name__)


@shared_task
def auto_complete_finished_bookings():
    """Complete scheduled bookings whose meeting has ended"""
    grace_minutes = scheduler_setting("AUTO_COMPLETE_GRACE_MINUTES")
    count = BookingLifecycleService.auto_complete_finished(grace_minutes=grace_minutes)
    if count:
        logger.info(f"Auto-completed {count} finished bookings")
    return f"Completed {count} bookings"
