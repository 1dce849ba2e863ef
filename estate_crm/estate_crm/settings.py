"""
Django settings for estate_crm.

The remote CRM API is the system of record; this project has no
database. Everything environment-specific comes from env variables.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-change-me")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "accounts",
    "notifications",
    "dashboard",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "middleware.auth_required.LoginRequiredMiddleware",
]

ROOT_URLCONF = "estate_crm.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
                "notifications.context_processors.unread_notifications",
            ],
        },
    },
]

# No database: sessions live in signed cookies
DATABASES = {}
SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"
# Cookie age slides with activity, as does the server-side CrmSession
SESSION_SAVE_EVERY_REQUEST = True
SESSION_COOKIE_AGE = int(os.environ.get("SESSION_COOKIE_AGE", str(60 * 60 * 12)))
SESSION_SWEEP_MINUTES = int(os.environ.get("SESSION_SWEEP_MINUTES", "15"))
MESSAGE_STORAGE = "django.contrib.messages.storage.cookie.CookieStorage"

LOGIN_URL = "/auth/login/"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ============================================================
# REMOTE CRM API
# ============================================================
CRM_API_BASE_URL = os.environ.get("CRM_API_BASE_URL", "http://localhost:8000/api/")
CRM_API_TIMEOUT = float(os.environ.get("CRM_API_TIMEOUT", "10"))

# ============================================================
# NOTIFICATIONS
# ============================================================
ENABLE_SCHEDULER = env_bool("ENABLE_SCHEDULER", True)
NOTIFICATION_REFRESH_MINUTES = int(os.environ.get("NOTIFICATION_REFRESH_MINUTES", "5"))

NOTIFICATION_WINDOWS = {
    "VIEWING_LOOKAHEAD_HOURS": 24,
    "VIEWING_URGENT_HOURS": 2,
    "NEW_PROPERTY_HOURS": 24,
    "SALE_HOURS": 48,
    "CLIENT_STALE_DAYS": 3,
    "CLIENT_URGENT_DAYS": 7,
}

# ============================================================
# LOGGING
# ============================================================
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - [%(levelname)s] - %(name)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "apscheduler": {
            "level": "WARNING",
        },
    },
}
