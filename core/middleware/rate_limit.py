"""
Rate limiting middleware.

Limits the unauthenticated desktop-client APIs per client address.
"""

import hashlib
import time
from typing import Callable, Tuple

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, HttpResponse, JsonResponse

from core.metrics import errors_total

CLIENT_PREFIX = "/api/v1/client/"


class RateLimitMiddleware:
    """
    Fixed-window rate limiting for /api/v1/client/*.

    Counters live in the Django cache, one per client address and window.
    The limit is ``CLIENT_RATE_LIMIT_PER_MINUTE``.
    """

    RATE_LIMIT_WINDOW = 60  # seconds

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def _client_address(self, request: HttpRequest) -> str:
        forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
        if forwarded and settings.RATE_LIMIT_TRUST_FORWARDED_FOR:
            return forwarded.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR", "unknown")

    def _get_rate_limit_key(self, address: str, window: int) -> str:
        # Hash the address so raw IPs never land in the cache
        digest = hashlib.sha256(address.encode()).hexdigest()[:16]
        return f"rate_limit:client:{digest}:{window}"

    def _check_rate_limit(self, address: str, limit: int) -> Tuple[bool, int, int]:
        """
        Count this request against the current window.

        Returns:
            Tuple of (is_allowed, remaining, reset_time)
        """
        window = int(time.time() / self.RATE_LIMIT_WINDOW)
        reset_time = (window + 1) * self.RATE_LIMIT_WINDOW
        key = self._get_rate_limit_key(address, window)

        if cache.add(key, 1, timeout=self.RATE_LIMIT_WINDOW):
            count = 1
        else:
            try:
                count = cache.incr(key)
            except ValueError:
                cache.set(key, 1, timeout=self.RATE_LIMIT_WINDOW)
                count = 1

        if count > limit:
            return False, 0, reset_time
        return True, limit - count, reset_time

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if not request.path.startswith(CLIENT_PREFIX):
            return self.get_response(request)

        limit = settings.CLIENT_RATE_LIMIT_PER_MINUTE
        is_allowed, remaining, reset_time = self._check_rate_limit(
            self._client_address(request), limit
        )

        if not is_allowed:
            errors_total.labels(error_type="rate_limit_exceeded", endpoint=request.path).inc()
            response = JsonResponse(
                {
                    "error": {
                        "code": "RATE_LIMIT_EXCEEDED",
                        "message": "Rate limit exceeded. Please try again later.",
                    }
                },
                status=429,
            )
            response["Retry-After"] = str(max(0, reset_time - int(time.time())))
        else:
            response = self.get_response(request)

        response["X-RateLimit-Limit"] = str(limit)
        response["X-RateLimit-Remaining"] = str(remaining)
        response["X-RateLimit-Reset"] = str(reset_time)
        return response
