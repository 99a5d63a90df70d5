"""
API exception handlers.

This module provides custom exception handling for REST API responses.
Every error is rendered as ``{"error": {"code", "message"}}``.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    DomainException,
    DuplicateActiveKeyError,
    DuplicateKeyStringError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidSessionTokenError,
    KeyAlreadyClaimedError,
    KeyNotRegistrationEligibleError,
    LicenseKeyNotFoundError,
    StoreUnavailableError,
    UserIneligibleError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

STATUS_BY_EXCEPTION = (
    ((LicenseKeyNotFoundError, UserNotFoundError), status.HTTP_404_NOT_FOUND),
    (
        (
            KeyAlreadyClaimedError,
            DuplicateActiveKeyError,
            DuplicateKeyStringError,
            KeyNotRegistrationEligibleError,
            EmailAlreadyRegisteredError,
        ),
        status.HTTP_409_CONFLICT,
    ),
    ((UserIneligibleError,), status.HTTP_403_FORBIDDEN),
    ((InvalidCredentialsError, InvalidSessionTokenError), status.HTTP_401_UNAUTHORIZED),
    ((StoreUnavailableError,), status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: DomainException) -> int:
    """HTTP status for a domain exception; anything unlisted is a 400."""
    for exception_types, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exc, exception_types):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def error_body(code: str, message: str, **extra) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, **extra}}


def validation_error_response(errors) -> Response:
    """400 response for a serializer that did not validate."""
    return Response(
        error_body("VALIDATION_ERROR", "Invalid request", details=errors),
        status=status.HTTP_400_BAD_REQUEST,
    )


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, trace_id)
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        code = exc.default_code.upper().replace("-", "_")
        detail = response.data.get("detail", exc.default_detail) if isinstance(response.data, dict) else response.data
        response.data = error_body(code, str(detail))
    elif isinstance(exc, Http404):
        response = Response(
            error_body("NOT_FOUND", "Resource not found"), status=status.HTTP_404_NOT_FOUND
        )
    else:
        return _handle_unexpected_exception(exc, trace_id)

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _handle_domain_exception(exc: DomainException, trace_id: Optional[str]) -> Response:
    """Handle domain-specific exceptions."""
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})

    extra = {"retryable": True} if exc.retryable else {}
    return Response(error_body(exc.code, exc.message, **extra), status=status_code)


def _handle_unexpected_exception(exc: Exception, trace_id: Optional[str]) -> Response:
    """Handle unexpected or untracked exceptions."""
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    response = Response(
        error_body("INTERNAL_ERROR", "An internal error occurred"),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response
