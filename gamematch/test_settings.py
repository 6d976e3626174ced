"""
Django settings for running the test suite.

This file extends the base settings with test-specific configurations.
"""
from .settings import *  # noqa: F401,F403

# Use SQLite for tests (faster than PostgreSQL)
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

SECRET_KEY = "test-secret-key-unsafe-for-production"
DEBUG = True
ALLOWED_HOSTS = ["*"]

# Heartbeat ticks are driven by hand in tests
REALTIME = {
    "HEARTBEAT_INTERVAL": 30.0,
    "HEARTBEAT_TIMEOUT": 40.0,
    "HEARTBEAT_ENABLED": False,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "matchmaking": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}

# Password validators - disable for faster test user creation
AUTH_PASSWORD_VALIDATORS = []

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STATIC_ROOT = BASE_DIR / "test_staticfiles"
