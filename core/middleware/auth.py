"""
Authentication middleware.

Administrative APIs (/api/v1/admin/*) require an admin API key; account
APIs (/api/v1/account/*) require a session token, except the routes that
create or recover a session.
"""

import logging
from typing import Optional

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from accounts.infrastructure.authentication import JoseSessionTokenService
from accounts.infrastructure.models import AdminApiKey
from core.domain.exceptions import InvalidSessionTokenError

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/api/v1/admin/"
ACCOUNT_PREFIX = "/api/v1/account/"

PUBLIC_ACCOUNT_PATHS = (
    "/api/v1/account/register",
    "/api/v1/account/login",
    "/api/v1/account/verification-codes/",
    "/api/v1/account/reset-password",
)


def _unauthorized(code: str, message: str) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=401)


class APIKeyAuthenticationMiddleware(MiddlewareMixin):
    """
    Middleware for API authentication.

    This middleware:
    1. Validates admin API keys for /api/v1/admin/*
    2. Validates bearer session tokens for protected /api/v1/account/* routes
    3. Returns 401 Unauthorized if authentication fails
    """

    token_service_class = JoseSessionTokenService

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and validate authentication.

        Returns:
            HttpResponse with 401 if authentication fails, None otherwise
        """
        if request.path.startswith(ADMIN_PREFIX):
            return self._authenticate_admin_api(request)

        if request.path.startswith(ACCOUNT_PREFIX) and not request.path.startswith(
            PUBLIC_ACCOUNT_PATHS
        ):
            return self._authenticate_account_api(request)

        return None

    def _authenticate_admin_api(self, request: HttpRequest) -> Optional[HttpResponse]:
        api_key = request.headers.get("X-API-Key")
        if not api_key:
            return _unauthorized("MISSING_API_KEY", "Missing API key. Provide X-API-Key header.")

        # pylint: disable=no-member
        api_key_obj = AdminApiKey.objects.filter(key_hash=AdminApiKey.hash_key(api_key)).first()
        if not api_key_obj:
            logger.warning("Invalid admin API key attempted: %s...", api_key[:8])
            return _unauthorized("INVALID_API_KEY", "Invalid API key")

        if not api_key_obj.is_valid():
            logger.warning("Expired admin API key attempted: %s...", api_key[:8])
            return _unauthorized("INVALID_API_KEY", "API key expired or revoked")

        api_key_obj.mark_used()
        request.admin_api_key = api_key_obj  # type: ignore
        return None

    def _authenticate_account_api(self, request: HttpRequest) -> Optional[HttpResponse]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return _unauthorized("MISSING_SESSION_TOKEN", "Missing bearer token")

        try:
            claims = self.token_service_class().verify(header[7:].strip())
        except InvalidSessionTokenError as e:
            return _unauthorized(e.code, e.message)

        request.user_id = claims.user_id  # type: ignore
        return None
