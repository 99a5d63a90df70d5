"""
Admin API views.

These endpoints are used by administrators to:
- Generate and reserve license keys
- Reset hardware bindings and delete keys
- List keys and users, ban and unban users
- Read dashboard statistics

All of them require an admin API key in the X-API-Key header.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.application.commands.set_ban_state import SetBanStateCommand
from accounts.application.handlers.admin_user_handlers import ListUsersHandler, SetBanStateHandler
from accounts.application.queries.list_users import ListUsersQuery
from accounts.infrastructure.repositories.django_user_repository import DjangoUserRepository
from api.exceptions import validation_error_response
from api.v1.admin.serializers import (
    BanUsersRequestSerializer,
    BanUsersResponseSerializer,
    GenerateKeysRequestSerializer,
    GenerateKeysResponseSerializer,
    KeyReferenceSerializer,
    KeyStatisticsSerializer,
    ListKeysQuerySerializer,
    ListUsersQuerySerializer,
    ReserveKeyRequestSerializer,
)
from api.v1.serializers import LicenseKeySerializer, UserSerializer
from core.domain.value_objects import KeyState
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.commands.admin_key_commands import DeleteKeyCommand, ResetHardwareIdCommand
from licenses.application.commands.mint_keys import MintKeysCommand
from licenses.application.commands.reserve_key import ReserveKeyCommand
from licenses.application.handlers.key_query_handlers import KeyStatisticsHandler, ListKeysHandler
from licenses.application.handlers.license_lifecycle_handlers import (
    DeleteKeyHandler,
    ResetHardwareIdHandler,
)
from licenses.application.handlers.mint_keys_handler import MintKeysHandler, ReserveKeyHandler
from licenses.application.queries.key_queries import KeyStatisticsQuery, ListKeysQuery
from licenses.infrastructure.repositories.django_license_key_repository import (
    DjangoLicenseKeyRepository,
)

# Initialize repositories (in production, use DI container)
_license_key_repo = DjangoLicenseKeyRepository()
_user_repo = DjangoUserRepository()

tracer = get_tracer(__name__)

ADMIN_RESPONSES = {
    400: {"description": "Bad Request"},
    401: {"description": "Unauthorized - Missing or invalid API key"},
    503: {"description": "Record store unavailable, retry later"},
}


class GenerateKeysView(APIView):
    """View for minting a batch of keys."""

    @extend_schema(
        operation_id="generate_keys",
        summary="Generate Keys",
        description=(
            "Mint `count` Available keys of one duration. Collisions are retried; "
            "keys that still fail are listed in `errors` without aborting the batch."
        ),
        tags=["Admin API"],
        request=GenerateKeysRequestSerializer,
        responses={
            201: GenerateKeysResponseSerializer,
            409: GenerateKeysResponseSerializer,
            **ADMIN_RESPONSES,
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_generate_keys)(request)

    async def _handle_generate_keys(self, request: Request) -> Response:
        with tracer.start_as_current_span("generate_keys") as span:
            serializer = GenerateKeysRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            command = MintKeysCommand(
                count=serializer.validated_data["count"],
                duration=serializer.validated_data["duration"],
            )
            span.set_attribute("keys.requested", command.count)
            span.set_attribute("keys.duration", command.duration.value)

            result = await MintKeysHandler(license_key_repository=_license_key_repo).handle(command)

            span.set_attribute("keys.minted", len(result.keys))
            return Response(
                GenerateKeysResponseSerializer(result).data,
                status=status.HTTP_201_CREATED if result.keys else status.HTTP_409_CONFLICT,
            )


class ReserveKeyView(APIView):
    """View for reserving a key for a purchaser."""

    @extend_schema(
        operation_id="reserve_key",
        summary="Reserve Key",
        description=(
            "Mint one key reserved for a purchaser after manual payment verification. "
            "The key stays Available and shows up among the purchaser's available keys."
        ),
        tags=["Admin API"],
        request=ReserveKeyRequestSerializer,
        responses={201: LicenseKeySerializer, 404: {"description": "User not found"}, **ADMIN_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_reserve_key)(request)

    async def _handle_reserve_key(self, request: Request) -> Response:
        with tracer.start_as_current_span("reserve_key") as span:
            serializer = ReserveKeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            span.set_attribute("user.id", str(serializer.validated_data["user_id"]))
            handler = ReserveKeyHandler(
                license_key_repository=_license_key_repo, user_repository=_user_repo
            )
            result = await handler.handle(
                ReserveKeyCommand(
                    user_id=serializer.validated_data["user_id"],
                    duration=serializer.validated_data["duration"],
                )
            )
            return Response(LicenseKeySerializer(result).data, status=status.HTTP_201_CREATED)


class ListKeysView(APIView):
    """View for listing every key."""

    @extend_schema(
        operation_id="list_keys",
        summary="List Keys",
        description="List all keys, newest first, optionally filtered by state.",
        tags=["Admin API"],
        parameters=[
            OpenApiParameter(
                name="state",
                type=str,
                enum=[state.value for state in KeyState],
                required=False,
                location=OpenApiParameter.QUERY,
            )
        ],
        responses={200: LicenseKeySerializer(many=True), **ADMIN_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        return async_to_sync(self._handle_list_keys)(request)

    async def _handle_list_keys(self, request: Request) -> Response:
        with tracer.start_as_current_span("list_keys"):
            serializer = ListKeysQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            state = serializer.validated_data.get("state")
            keys = await ListKeysHandler(license_key_repository=_license_key_repo).handle(
                ListKeysQuery(state=KeyState(state) if state else None)
            )
            return Response(LicenseKeySerializer(keys, many=True).data)


class ResetHardwareIdView(APIView):
    """View for clearing a key's hardware binding."""

    @extend_schema(
        operation_id="reset_hardware_id",
        summary="Reset Hardware ID",
        description="Clear the hardware binding of a key. Nothing else about the key changes.",
        tags=["Admin API"],
        request=KeyReferenceSerializer,
        responses={200: LicenseKeySerializer, 404: {"description": "Key not found"}, **ADMIN_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_reset_hardware_id)(request)

    async def _handle_reset_hardware_id(self, request: Request) -> Response:
        with tracer.start_as_current_span("reset_hardware_id"):
            serializer = KeyReferenceSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            result = await ResetHardwareIdHandler(license_key_repository=_license_key_repo).handle(
                ResetHardwareIdCommand(key=serializer.validated_data["key"])
            )
            return Response(LicenseKeySerializer(result).data)


class DeleteKeyView(APIView):
    """View for deleting a key."""

    @extend_schema(
        operation_id="delete_key",
        summary="Delete Key",
        description="Remove a key record whatever its state.",
        tags=["Admin API"],
        request=KeyReferenceSerializer,
        responses={204: None, 404: {"description": "Key not found"}, **ADMIN_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_delete_key)(request)

    async def _handle_delete_key(self, request: Request) -> Response:
        with tracer.start_as_current_span("delete_key"):
            serializer = KeyReferenceSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            await DeleteKeyHandler(license_key_repository=_license_key_repo).handle(
                DeleteKeyCommand(key=serializer.validated_data["key"])
            )
            return Response(status=status.HTTP_204_NO_CONTENT)


class ListUsersView(APIView):
    """View for listing users."""

    @extend_schema(
        operation_id="list_users",
        summary="List Users",
        description="List accounts without credentials, optionally filtered by ban state.",
        tags=["Admin API"],
        parameters=[
            OpenApiParameter(name="banned", type=bool, required=False, location=OpenApiParameter.QUERY)
        ],
        responses={200: UserSerializer(many=True), **ADMIN_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        return async_to_sync(self._handle_list_users)(request)

    async def _handle_list_users(self, request: Request) -> Response:
        with tracer.start_as_current_span("list_users"):
            serializer = ListUsersQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            users = await ListUsersHandler(user_repository=_user_repo).handle(
                ListUsersQuery(banned=serializer.validated_data.get("banned"))
            )
            return Response(UserSerializer(users, many=True).data)


class SetBanStateView(APIView):
    """View for banning or unbanning users; ``banned`` is fixed per route."""

    banned = True

    @extend_schema(
        summary="Ban / Unban Users",
        description=(
            "Apply the ban flag to each listed user. Each user is updated on its own; "
            "unknown ids are reported as `not_found` without affecting the others."
        ),
        tags=["Admin API"],
        request=BanUsersRequestSerializer,
        responses={200: BanUsersResponseSerializer, **ADMIN_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_set_ban_state)(request)

    async def _handle_set_ban_state(self, request: Request) -> Response:
        with tracer.start_as_current_span("set_ban_state") as span:
            span.set_attribute("banned", self.banned)
            serializer = BanUsersRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            batch = await SetBanStateHandler(user_repository=_user_repo).handle(
                SetBanStateCommand(user_ids=serializer.validated_data["user_ids"], banned=self.banned)
            )
            span.set_attribute("users.updated", batch.updated)
            return Response(
                BanUsersResponseSerializer({"updated": batch.updated, "results": batch.results}).data
            )


class BanUsersView(SetBanStateView):
    banned = True


class UnbanUsersView(SetBanStateView):
    banned = False


class KeyStatisticsView(APIView):
    """View for dashboard statistics."""

    @extend_schema(
        operation_id="key_statistics",
        summary="Statistics",
        description=(
            "User and key totals, claims per day over the last 7 days and the "
            "revenue estimated from each claimed key's duration price."
        ),
        tags=["Admin API"],
        responses={200: KeyStatisticsSerializer, **ADMIN_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        return async_to_sync(self._handle_statistics)(request)

    async def _handle_statistics(self, _request: Request) -> Response:
        with tracer.start_as_current_span("key_statistics"):
            handler = KeyStatisticsHandler(
                license_key_repository=_license_key_repo, user_repository=_user_repo
            )
            result = await handler.handle(KeyStatisticsQuery())
            return Response(KeyStatisticsSerializer(result).data)
