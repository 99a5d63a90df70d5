"""
Client API views.

These endpoints are called by the distributed desktop client to:
- Validate a license key, binding it to the machine on first use
- Validate the license of an account by email and password

They are unauthenticated and rate limited per client address. Both accept
POST bodies and GET query parameters with the same fields. Expected
outcomes are answered with 200 and a reason code; only malformed input
(400) and an unavailable store (503) are errors.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.infrastructure.authentication import DjangoCredentialVerifier
from accounts.infrastructure.repositories.django_user_repository import DjangoUserRepository
from api.v1.client.serializers import (
    KeyValidationSerializer,
    LicenseValidationSerializer,
    ValidateKeyRequestSerializer,
    ValidateLicenseRequestSerializer,
)
from core.domain.value_objects import ValidationReason
from core.instrumentation import Status, StatusCode, get_tracer
from core.metrics import license_validations_total
from licenses.application.handlers.validation_handlers import (
    ValidateKeyHandler,
    ValidateLicenseHandler,
)
from licenses.application.queries.validate_key import ValidateKeyQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.infrastructure.repositories.django_license_key_repository import (
    DjangoLicenseKeyRepository,
)

# Initialize repositories (in production, use DI container)
_license_key_repo = DjangoLicenseKeyRepository()
_user_repo = DjangoUserRepository()
_credential_verifier = DjangoCredentialVerifier()

tracer = get_tracer(__name__)

HARDWARE_ID_PARAMETER = OpenApiParameter(
    name="hardware_id", type=str, required=False, location=OpenApiParameter.QUERY
)


def invalid_request_response(protocol: str, errors, **extra) -> Response:
    """400 response for malformed validation input, shaped like a failed validation."""
    license_validations_total.labels(
        protocol=protocol, outcome=ValidationReason.INVALID_REQUEST.value
    ).inc()
    return Response(
        {
            "valid": False,
            **extra,
            "reason": ValidationReason.INVALID_REQUEST.value,
            "errors": errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


class ValidateKeyView(APIView):
    """View for validating a license key by its string."""

    @extend_schema(
        operation_id="validate_key",
        summary="Validate Key",
        description=(
            "Validate a key by its exact string. With `hardware_id`, an unbound key "
            "is bound to it; a key bound to another machine fails with `hwid_mismatch`."
        ),
        tags=["Client API"],
        request=ValidateKeyRequestSerializer,
        responses={
            200: KeyValidationSerializer,
            400: {"description": "Bad Request"},
            429: {"description": "Rate limit exceeded"},
            503: {"description": "Record store unavailable, retry later"},
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_validate_key)(request, request.data)

    @extend_schema(
        operation_id="validate_key_get",
        summary="Validate Key (query parameters)",
        tags=["Client API"],
        parameters=[
            OpenApiParameter(name="key", type=str, required=True, location=OpenApiParameter.QUERY),
            HARDWARE_ID_PARAMETER,
        ],
        responses={200: KeyValidationSerializer, 400: {"description": "Bad Request"}},
    )
    def get(self, request: Request) -> Response:
        return async_to_sync(self._handle_validate_key)(request, request.query_params)

    async def _handle_validate_key(self, _request: Request, data) -> Response:
        with tracer.start_as_current_span("validate_key") as span:
            serializer = ValidateKeyRequestSerializer(data=data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return invalid_request_response(
                    ValidateKeyHandler.PROTOCOL,
                    serializer.errors,
                    expired=False,
                    hwid_mismatch=False,
                )

            handler = ValidateKeyHandler(
                license_key_repository=_license_key_repo, user_repository=_user_repo
            )
            result = await handler.handle(
                ValidateKeyQuery(
                    key=serializer.validated_data["key"],
                    hardware_id=serializer.validated_data.get("hardware_id"),
                )
            )

            span.set_attribute("validation.valid", result.valid)
            if result.reason:
                span.set_attribute("validation.reason", result.reason)
            body = KeyValidationSerializer(result).data
            if result.reason == ValidationReason.INVALID_REQUEST.value:
                return Response(body, status=status.HTTP_400_BAD_REQUEST)
            return Response(body)


class ValidateLicenseView(APIView):
    """View for validating the license of an account."""

    @extend_schema(
        operation_id="validate_license",
        summary="Validate License",
        description=(
            "Authenticate by email and password and report the account's active "
            "license. `authenticated` separates bad credentials from an account "
            "without a usable license; `has_license` is true only for a valid license."
        ),
        tags=["Client API"],
        request=ValidateLicenseRequestSerializer,
        responses={
            200: LicenseValidationSerializer,
            400: {"description": "Bad Request"},
            429: {"description": "Rate limit exceeded"},
            503: {"description": "Record store unavailable, retry later"},
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_validate_license)(request, request.data)

    @extend_schema(
        operation_id="validate_license_get",
        summary="Validate License (query parameters)",
        tags=["Client API"],
        parameters=[
            OpenApiParameter(name="email", type=str, required=True, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="password", type=str, required=True, location=OpenApiParameter.QUERY),
            HARDWARE_ID_PARAMETER,
        ],
        responses={200: LicenseValidationSerializer, 400: {"description": "Bad Request"}},
    )
    def get(self, request: Request) -> Response:
        return async_to_sync(self._handle_validate_license)(request, request.query_params)

    async def _handle_validate_license(self, _request: Request, data) -> Response:
        with tracer.start_as_current_span("validate_license") as span:
            serializer = ValidateLicenseRequestSerializer(data=data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return invalid_request_response(
                    ValidateLicenseHandler.PROTOCOL,
                    serializer.errors,
                    authenticated=False,
                    has_license=False,
                )

            handler = ValidateLicenseHandler(
                license_key_repository=_license_key_repo, credential_verifier=_credential_verifier
            )
            result = await handler.handle(
                ValidateLicenseQuery(
                    email=serializer.validated_data["email"],
                    password=serializer.validated_data["password"],
                    hardware_id=serializer.validated_data.get("hardware_id"),
                )
            )

            span.set_attribute("validation.valid", result.valid)
            span.set_attribute("validation.has_license", result.has_license)
            body = LicenseValidationSerializer(result).data
            if result.reason == ValidationReason.INVALID_REQUEST.value:
                return Response(body, status=status.HTTP_400_BAD_REQUEST)
            return Response(body)
