"""
Celery configuration for SlotBook.

Sets up the Celery application used for housekeeping jobs such as completing
bookings whose meeting time has passed.
"""

import logging
import os

from celery import Celery
from celery.signals import task_failure, task_retry, task_success

logger = logging.getLogger(__name__)

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "slotbook.settings.production")

app = Celery("slotbook")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.timezone = "UTC"

app.conf.task_routes = {
    "apps.bookingapp.tasks.*": {"queue": "bookings"},
}

app.conf.beat_schedule = {
    "auto-complete-finished-bookings": {
        "task": "apps.bookingapp.tasks.auto_complete_finished_bookings",
        "schedule": 900.0,  # Every 15 minutes
        "options": {"expires": 600},
    },
}


@task_success.connect
def task_success_handler(sender=None, **kwargs):
    logger.info(f"Task {sender.name} succeeded")


@task_failure.connect
def task_failure_handler(sender=None, exception=None, **kwargs):
    logger.error(f"Task {sender.name} failed: {exception}")


@task_retry.connect
def task_retry_handler(sender=None, reason=None, **kwargs):
    logger.warning(f"Task {sender.name} retrying: {reason}")
