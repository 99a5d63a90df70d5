"""
Test settings for the License Portal.
"""

from .base import *  # noqa: F403, F401

DEBUG = False

ENVIRONMENT = "test"

# In-memory SQLite; tables are created from the models
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Use in-memory cache for tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Password hashers for faster tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

SESSION_TOKEN_SECRET = "test-session-secret"
CLIENT_RATE_LIMIT_PER_MINUTE = 1000
OBSERVABILITY_ENABLED = False

# Disable logging during tests
LOGGING_CONFIG = None
