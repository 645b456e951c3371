from decouple import config  # type: ignore
from dj_database_url import parse as db_url

from .base import *


SECRET_KEY = "test"  # nosec

DATABASES = {
    "default": config("DATABASE_URL", default="sqlite://:memory:", cast=db_url),
}

STATIC_ROOT = base_dir_join("staticfiles")
STATIC_URL = "/static/"

# Speed up password hashing
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Celery
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

RESERVATION_BRIDGE_NAME = "booking_system"
REMOTE_BRIDGE_NAME = "remote_calendar"
CALENDAR_BRIDGES = {
    RESERVATION_BRIDGE_NAME: {
        "type": "booking_system",
        "config": {},
    },
}

BRIDGE_SYNC_TIMEZONE = "Europe/Oslo"
BRIDGE_SYNC_FALLBACK_ORGANIZER_EMAIL = "noreply@example.com"
BRIDGE_SYNC_PENDING_BATCH_SIZE = 50
