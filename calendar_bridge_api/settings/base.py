import os

from decouple import config  # type: ignore
from dj_database_url import parse as db_url

from calendar_bridge_api.celerybeat_schedule import CELERYBEAT_SCHEDULE


BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def base_dir_join(*args):
    return os.path.join(BASE_DIR, *args)


DEBUG = True

ADMINS = (("Admin", "foo@example.com"),)

ALLOWED_HOSTS: list[str] = []

DATABASES = {
    "default": config(
        "DATABASE_URL", default=f"sqlite:///{base_dir_join('db.sqlite3')}", cast=db_url
    ),
}
INTERNAL_INSTALLED_APPS = [
    "di_core",
    "common",
    "reservations",
    "calendar_bridges",
]
DI_WIRED_PACKAGES = [
    "calendar_bridges.tasks",
    "calendar_bridges.management",
]
DI_WIRED_MODULES = [
    "calendar_bridges.views",
]
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "drf_spectacular",
    "django_guid",
    "django_filters",
    *INTERNAL_INSTALLED_APPS,
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_guid.middleware.guid_middleware",
]

ROOT_URLCONF = "calendar_bridge_api.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [base_dir_join("templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "calendar_bridge_api.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

REST_FRAMEWORK = {
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.LimitOffsetPagination",
    "PAGE_SIZE": 10,
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAdminUser",
    ],
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True

REDIS_URL = config("REDIS_URL", default="redis://localhost:6379/0")

# Celery
# Recommended settings for reliability: https://gist.github.com/fjsj/da41321ac96cf28a96235cb20e7236f6
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TASK_ACKS_LATE = True
CELERY_TIMEZONE = TIME_ZONE
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default=REDIS_URL)
CELERY_BROKER_TRANSPORT_OPTIONS = {"confirm_publish": True, "confirm_timeout": 5.0}
CELERY_BROKER_POOL_LIMIT = config("CELERY_BROKER_POOL_LIMIT", cast=int, default=1)
CELERY_BROKER_CONNECTION_TIMEOUT = config(
    "CELERY_BROKER_CONNECTION_TIMEOUT", cast=float, default=30.0
)
CELERY_TASK_ACKS_ON_FAILURE_OR_TIMEOUT = config(
    "CELERY_TASK_ACKS_ON_FAILURE_OR_TIMEOUT", cast=bool, default=True
)
CELERY_TASK_REJECT_ON_WORKER_LOST = config(
    "CELERY_TASK_REJECT_ON_WORKER_LOST", cast=bool, default=False
)
CELERY_WORKER_PREFETCH_MULTIPLIER = config("CELERY_WORKER_PREFETCH_MULTIPLIER", cast=int, default=1)
CELERY_WORKER_MAX_TASKS_PER_CHILD = config(
    "CELERY_WORKER_MAX_TASKS_PER_CHILD", cast=int, default=1000
)

# Sentry
SENTRY_DSN = config("SENTRY_DSN", default="")
COMMIT_SHA = config("RENDER_GIT_COMMIT", default="")

CSRF_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_SAMESITE = "Lax"

SPECTACULAR_SETTINGS = {
    "TITLE": "Calendar Bridge API",
    "DESCRIPTION": "API for inspecting calendar bridges and triggering synchronization runs",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "ENUM_NAME_OVERRIDES": {
        "MappingSyncStatusEnum": "calendar_bridges.constants.MappingSyncStatus.choices",
    },
}

# Calendar bridges
# Each entry is `name: {"type": <bridge type>, "config": {...}}`. The type selects the
# implementation from `calendar_bridges.bridges.BRIDGE_CLASSES`.
RESERVATION_BRIDGE_NAME = config("RESERVATION_BRIDGE_NAME", default="booking_system")
REMOTE_BRIDGE_NAME = config("REMOTE_BRIDGE_NAME", default="booking_system_api")

CALENDAR_BRIDGES = {
    RESERVATION_BRIDGE_NAME: {
        "type": "booking_system",
        "config": {},
    },
}
BOOKING_SYSTEM_API_BASE_URL = config("BOOKING_SYSTEM_API_BASE_URL", default="")
if BOOKING_SYSTEM_API_BASE_URL:
    CALENDAR_BRIDGES[REMOTE_BRIDGE_NAME] = {
        "type": "booking_system_api",
        "config": {
            "api_base_url": BOOKING_SYSTEM_API_BASE_URL,
            "api_key": config("BOOKING_SYSTEM_API_KEY", default=""),
            "timeout": config("BOOKING_SYSTEM_API_TIMEOUT", cast=int, default=30),
        },
    }

BRIDGE_SYNC_TIMEZONE = config("BRIDGE_SYNC_TIMEZONE", default="Europe/Oslo")
BRIDGE_SYNC_FALLBACK_ORGANIZER_EMAIL = config(
    "BRIDGE_SYNC_FALLBACK_ORGANIZER_EMAIL", default="noreply@example.com"
)
BRIDGE_SYNC_DEFAULT_WINDOW_DAYS = config("BRIDGE_SYNC_DEFAULT_WINDOW_DAYS", cast=int, default=30)
BRIDGE_SYNC_PENDING_BATCH_SIZE = config("BRIDGE_SYNC_PENDING_BATCH_SIZE", cast=int, default=50)

CELERY_BEAT_SCHEDULE = CELERYBEAT_SCHEDULE
