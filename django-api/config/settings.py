"""Django settings for the live auction service.

State lives in memory only; there is no database.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-not-secret")
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    "rest_framework",
    "auctions.apps.AuctionsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {}

USE_TZ = True
TIME_ZONE = "UTC"

MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", BASE_DIR / "media"))
MEDIA_URL = "/uploads/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
}

AUCTION = {
    "ADMIN_TOKEN": os.getenv("ADMIN_TOKEN", "1234"),
    "PAYMENT_WINDOW_SECONDS": float(os.getenv("PAYMENT_WINDOW_SECONDS", "120")),
    "SWEEP_INTERVAL_SECONDS": float(os.getenv("SWEEP_INTERVAL_SECONDS", "1.0")),
    "SWEEPER_AUTOSTART": env_bool("SWEEPER_AUTOSTART", True),
    "DEFAULT_TIMER_SECONDS": 60,
    "MAX_NAME_LENGTH": 40,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s:%(levelname)s:%(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "loggers": {
        "auctions": {
            "handlers": ["console"],
            "level": os.getenv("AUCTION_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
