"""
App configuration for the License Portal project.
"""
import logging
import os

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class LicensePortalConfig(AppConfig):
    """Wires tracing and domain event handlers once apps are loaded."""

    name = "LicensePortal"
    verbose_name = "License Portal"

    def ready(self):
        # Django's autoreloader imports the project twice; the parent sets RUN_MAIN=false.
        if os.environ.get("RUN_MAIN") == "false":
            return

        from core.infrastructure.event_handlers import register_event_handlers
        from core.instrumentation import setup_opentelemetry

        setup_opentelemetry()
        register_event_handlers()
        logger.debug("License Portal ready")
