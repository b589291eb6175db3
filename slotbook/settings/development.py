"""
Development settings for SlotBook.

These settings override the base settings for local development environments.
"""

from .base import *
from .base import config

DEBUG = config("DEBUG", default=True, cast=bool)

ALLOWED_HOSTS = ["*"]

DATABASES["default"]["HOST"] = config("POSTGRES_HOST", default="localhost")

# Local cache so throttling works without Redis
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Run Celery tasks inline during development
CELERY_TASK_ALWAYS_EAGER = True
