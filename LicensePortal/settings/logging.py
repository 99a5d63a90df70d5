"""
Logging configuration for structured JSON logging.

Every record is emitted as one JSON object; ``extra`` fields passed to
the logger become top-level keys.
"""

import logging
import sys

from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter

APP_LOGGERS = ("core", "api", "accounts", "licenses", "LicensePortal", "audit")

SECRET_FIELDS = frozenset({"password", "new_password", "code", "token", "api_key"})


class RedactSecretsFilter(logging.Filter):
    """Mask credential-like `extra` fields before a record is formatted."""

    def filter(self, record):
        for name in SECRET_FIELDS.intersection(vars(record)):
            setattr(record, name, "***")
        return True


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter that adds the active trace context."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            log_record["trace_id"] = format(context.trace_id, "032x")
            log_record["span_id"] = format(context.span_id, "016x")


def get_logging_config(environment: str = "development") -> dict:
    """
    Get logging configuration for the application.

    Args:
        environment: Environment name (development, production, test)

    Returns:
        Django logging configuration dictionary
    """
    log_level = "DEBUG" if environment == "development" else "INFO"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": CustomJsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s %(pathname)s %(lineno)d",
            },
        },
        "filters": {
            "redact_secrets": {"()": RedactSecretsFilter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "filters": ["redact_secrets"],
                "stream": sys.stdout,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": log_level,
        },
        "loggers": {
            "django": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False,
            },
            "django.request": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            "django.db.backends": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
            **{
                name: {"handlers": ["console"], "level": log_level, "propagate": False}
                for name in APP_LOGGERS
            },
        },
    }
