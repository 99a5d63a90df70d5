"""
Metrics middleware for Prometheus.

Requests are labelled by the name of the route that served them
(``client:validate-key``, ``admin_api:stats``...), never by raw path:
the client routes take keys and emails in the query string.
"""

import time
from typing import Callable

from django.http import HttpRequest, HttpResponse

from core.metrics import http_request_duration_seconds, http_requests_total

UNMATCHED = "unmatched"


def route_label(request: HttpRequest) -> str:
    match = getattr(request, "resolver_match", None)
    if match is None:
        return UNMATCHED
    return match.view_name or UNMATCHED


class MetricsMiddleware:
    """Count requests and time them per route, method and status."""

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        started = time.perf_counter()
        status_code = 500
        try:
            response = self.get_response(request)
            status_code = response.status_code
            return response
        finally:
            # resolver_match is only set once the URL has been resolved
            endpoint = route_label(request)
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, status_code=status_code
            ).inc()
            http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(
                time.perf_counter() - started
            )
