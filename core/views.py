"""
Core views for health checks, readiness and metrics.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class HealthView(View):
    """Liveness endpoint."""

    def get(self, _request):
        return JsonResponse({"status": "healthy", "service": "license-portal"})


@method_decorator(csrf_exempt, name="dispatch")
class ReadyView(View):
    """Readiness check: the record store and the cache must answer."""

    def get(self, _request):
        checks = {
            "database": self._check_database(),
            "cache": self._check_cache(),
        }
        all_healthy = all(checks.values())
        return JsonResponse(
            {"status": "ready" if all_healthy else "not_ready", "checks": checks},
            status=200 if all_healthy else 503,
        )

    def _check_database(self) -> bool:
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            return True
        except DatabaseError as e:
            logger.warning("Readiness database check failed: %s", e)
            return False

    def _check_cache(self) -> bool:
        try:
            cache.set("ready_check", "ok", 10)
            return cache.get("ready_check") == "ok"
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Readiness cache check failed: %s", e)
            return False


class MetricsView(View):
    """Prometheus scrape endpoint."""

    def get(self, _request):
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
