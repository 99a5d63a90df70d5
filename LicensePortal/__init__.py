"""
License Portal Django project.
"""
# Make sure the Celery app is always imported when Django starts so that
# shared tasks bind to it.
from .celery import app as celery_app

__all__ = ("celery_app",)
