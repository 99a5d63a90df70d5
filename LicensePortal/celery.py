"""
Celery configuration for background tasks.

Used for verification email delivery.
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "LicensePortal.settings.dev")

app = Celery("LicensePortal")

# Load configuration from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()
