"""
Account API views.

Registration, login and recovery are open; everything else needs the
bearer session token checked by the authentication middleware, which
stores the caller's id on ``request.user_id``.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.application.commands.change_email import ChangeEmailCommand
from accounts.application.commands.login import LoginCommand
from accounts.application.commands.register_user import RegisterUserCommand
from accounts.application.commands.reset_password import ResetPasswordCommand
from accounts.application.commands.verification_codes import (
    SendVerificationCodeCommand,
    VerifyCodeCommand,
)
from accounts.application.handlers.account_handlers import (
    ChangeEmailHandler,
    GetCurrentUserHandler,
    LoginHandler,
    ResetPasswordHandler,
)
from accounts.application.handlers.register_user_handler import RegisterUserHandler
from accounts.application.handlers.verification_code_handlers import (
    SendVerificationCodeHandler,
    VerifyCodeHandler,
)
from accounts.application.queries.get_current_user import GetCurrentUserQuery
from accounts.application.services.verification_code_service import VerificationCodeService
from accounts.infrastructure.authentication import DjangoCredentialVerifier, JoseSessionTokenService
from accounts.infrastructure.notifications import CeleryVerificationCodeNotifier
from accounts.infrastructure.repositories.django_user_repository import DjangoUserRepository
from api.exceptions import validation_error_response
from api.v1.account.serializers import (
    ChangeEmailRequestSerializer,
    KeyRequestSerializer,
    LoginRequestSerializer,
    RegisterRequestSerializer,
    RegistrationSerializer,
    ResetPasswordRequestSerializer,
    SendVerificationCodeRequestSerializer,
    SessionSerializer,
    UserKeysSerializer,
    VerifyCodeRequestSerializer,
)
from api.v1.serializers import LicenseKeySerializer, UserSerializer
from core.domain.value_objects import VerificationPurpose
from core.infrastructure.cache_adapters import cache_adapter
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.commands.claim_key import ClaimKeyCommand
from licenses.application.commands.reactivate_key import ReactivateKeyCommand
from licenses.application.handlers.key_query_handlers import ListUserKeysHandler
from licenses.application.handlers.license_lifecycle_handlers import (
    ClaimKeyHandler,
    ReactivateKeyHandler,
)
from licenses.application.queries.key_queries import ListUserKeysQuery
from licenses.infrastructure.repositories.django_license_key_repository import (
    DjangoLicenseKeyRepository,
)

# Initialize repositories (in production, use DI container)
_license_key_repo = DjangoLicenseKeyRepository()
_user_repo = DjangoUserRepository()
_credential_verifier = DjangoCredentialVerifier()
_notifier = CeleryVerificationCodeNotifier()

tracer = get_tracer(__name__)

BEARER_RESPONSES = {401: {"description": "Unauthorized - Missing or invalid session token"}}


def _verification_codes() -> VerificationCodeService:
    return VerificationCodeService(cache=cache_adapter)


class RegisterView(APIView):
    """View for creating an account."""

    @extend_schema(
        operation_id="register",
        summary="Register",
        description=(
            "Create an account and open a session. An optional activation key is "
            "claimed for the new account; an unusable key rejects the registration."
        ),
        tags=["Account API"],
        request=RegisterRequestSerializer,
        responses={
            201: RegistrationSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "Activation key not found"},
            409: {"description": "Email taken, or activation key unusable"},
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_register)(request)

    async def _handle_register(self, request: Request) -> Response:
        with tracer.start_as_current_span("register") as span:
            serializer = RegisterRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            span.set_attribute("with_activation_key", bool(serializer.validated_data.get("activation_key")))
            handler = RegisterUserHandler(
                user_repository=_user_repo,
                license_key_repository=_license_key_repo,
                token_service=JoseSessionTokenService(),
            )
            result = await handler.handle(
                RegisterUserCommand(
                    email=serializer.validated_data["email"],
                    password=serializer.validated_data["password"],
                    activation_key=serializer.validated_data.get("activation_key") or None,
                )
            )
            return Response(RegistrationSerializer(result).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """View for opening a session."""

    @extend_schema(
        operation_id="login",
        summary="Login",
        description="Exchange email and password for a bearer session token.",
        tags=["Account API"],
        request=LoginRequestSerializer,
        responses={
            200: SessionSerializer,
            401: {"description": "Invalid credentials"},
            403: {"description": "Account banned"},
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_login)(request)

    async def _handle_login(self, request: Request) -> Response:
        with tracer.start_as_current_span("login"):
            serializer = LoginRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            handler = LoginHandler(
                credential_verifier=_credential_verifier, token_service=JoseSessionTokenService()
            )
            session = await handler.handle(LoginCommand(**serializer.validated_data))
            return Response(SessionSerializer(session).data)


class SendVerificationCodeView(APIView):
    """View for emailing a verification code."""

    @extend_schema(
        operation_id="send_verification_code",
        summary="Send Verification Code",
        description=(
            "Email a six-digit code for the given purpose, replacing any pending one. "
            "Register and change-email codes require an unused address; login and "
            "reset-password codes require an existing account."
        ),
        tags=["Account API"],
        request=SendVerificationCodeRequestSerializer,
        responses={
            202: {"description": "Code sent"},
            404: {"description": "No account for this email"},
            409: {"description": "Email already registered"},
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_send_code)(request)

    async def _handle_send_code(self, request: Request) -> Response:
        with tracer.start_as_current_span("send_verification_code") as span:
            serializer = SendVerificationCodeRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            purpose = VerificationPurpose(serializer.validated_data["purpose"])
            span.set_attribute("purpose", purpose.value)
            handler = SendVerificationCodeHandler(
                user_repository=_user_repo,
                verification_codes=_verification_codes(),
                notifier=_notifier,
            )
            await handler.handle(
                SendVerificationCodeCommand(email=serializer.validated_data["email"], purpose=purpose)
            )
            return Response({"message": "Verification code sent"}, status=status.HTTP_202_ACCEPTED)


class VerifyCodeView(APIView):
    """View for verifying a code."""

    @extend_schema(
        operation_id="verify_code",
        summary="Verify Code",
        description="Mark a pending code as verified so the operation it guards can use it.",
        tags=["Account API"],
        request=VerifyCodeRequestSerializer,
        responses={200: {"description": "Code verified"}, 400: {"description": "Invalid code"}},
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_verify_code)(request)

    async def _handle_verify_code(self, request: Request) -> Response:
        with tracer.start_as_current_span("verify_code"):
            serializer = VerifyCodeRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            await VerifyCodeHandler(verification_codes=_verification_codes()).handle(
                VerifyCodeCommand(
                    email=serializer.validated_data["email"],
                    purpose=VerificationPurpose(serializer.validated_data["purpose"]),
                    code=serializer.validated_data["code"],
                )
            )
            return Response({"verified": True})


class ResetPasswordView(APIView):
    """View for resetting a password with a verified code."""

    @extend_schema(
        operation_id="reset_password",
        summary="Reset Password",
        description="Set a new password using a verified reset-password code.",
        tags=["Account API"],
        request=ResetPasswordRequestSerializer,
        responses={
            204: None,
            400: {"description": "Invalid code or weak password"},
            404: {"description": "No account for this email"},
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_reset_password)(request)

    async def _handle_reset_password(self, request: Request) -> Response:
        with tracer.start_as_current_span("reset_password"):
            serializer = ResetPasswordRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            handler = ResetPasswordHandler(
                user_repository=_user_repo, verification_codes=_verification_codes()
            )
            await handler.handle(ResetPasswordCommand(**serializer.validated_data))
            return Response(status=status.HTTP_204_NO_CONTENT)


class MeView(APIView):
    """View for the current user."""

    @extend_schema(
        operation_id="me",
        summary="Current User",
        tags=["Account API"],
        responses={200: UserSerializer, **BEARER_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        return async_to_sync(self._handle_me)(request)

    async def _handle_me(self, request: Request) -> Response:
        with tracer.start_as_current_span("me"):
            user = await GetCurrentUserHandler(user_repository=_user_repo).handle(
                GetCurrentUserQuery(user_id=request.user_id)
            )
            return Response(UserSerializer(user).data)


class ChangeEmailView(APIView):
    """View for moving the account to a new email."""

    @extend_schema(
        operation_id="change_email",
        summary="Change Email",
        description="Change the account email using a verified change-email code sent to the new address.",
        tags=["Account API"],
        request=ChangeEmailRequestSerializer,
        responses={
            200: UserSerializer,
            400: {"description": "Invalid code"},
            409: {"description": "Email already registered"},
            **BEARER_RESPONSES,
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_change_email)(request)

    async def _handle_change_email(self, request: Request) -> Response:
        with tracer.start_as_current_span("change_email"):
            serializer = ChangeEmailRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            handler = ChangeEmailHandler(
                user_repository=_user_repo, verification_codes=_verification_codes()
            )
            user = await handler.handle(
                ChangeEmailCommand(
                    user_id=request.user_id,
                    new_email=serializer.validated_data["new_email"],
                    code=serializer.validated_data["code"],
                )
            )
            return Response(UserSerializer(user).data)


class MyKeysView(APIView):
    """View for the dashboard key listing."""

    @extend_schema(
        operation_id="my_keys",
        summary="My Keys",
        description="Active keys owned by the caller and Available keys reserved for them.",
        tags=["Account API"],
        responses={200: UserKeysSerializer, **BEARER_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        return async_to_sync(self._handle_my_keys)(request)

    async def _handle_my_keys(self, request: Request) -> Response:
        with tracer.start_as_current_span("my_keys"):
            keys = await ListUserKeysHandler(license_key_repository=_license_key_repo).handle(
                ListUserKeysQuery(user_id=request.user_id)
            )
            return Response(UserKeysSerializer(keys).data)


class ClaimKeyView(APIView):
    """View for claiming a key."""

    @extend_schema(
        operation_id="claim_key",
        summary="Claim Key",
        description=(
            "Claim an Available key for the caller. The expiry runs from now. "
            "Fails if the caller already holds an active key."
        ),
        tags=["Account API"],
        request=KeyRequestSerializer,
        responses={
            200: LicenseKeySerializer,
            403: {"description": "User missing or banned"},
            404: {"description": "Key not found"},
            409: {"description": "Key already claimed, or caller already has an active key"},
            **BEARER_RESPONSES,
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_claim_key)(request)

    async def _handle_claim_key(self, request: Request) -> Response:
        with tracer.start_as_current_span("claim_key") as span:
            serializer = KeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            span.set_attribute("user.id", str(request.user_id))
            handler = ClaimKeyHandler(
                license_key_repository=_license_key_repo, user_repository=_user_repo
            )
            result = await handler.handle(
                ClaimKeyCommand(key=serializer.validated_data["key"], user_id=request.user_id)
            )
            span.set_attribute("license_key.id", str(result.id))
            return Response(LicenseKeySerializer(result).data)


class ReactivateKeyView(APIView):
    """View for restarting an owned key's timer."""

    @extend_schema(
        operation_id="reactivate_key",
        summary="Reactivate Key",
        description="Restart the claim time and expiry of a key the caller owns.",
        tags=["Account API"],
        request=KeyRequestSerializer,
        responses={
            200: LicenseKeySerializer,
            404: {"description": "Key not found for this user"},
            **BEARER_RESPONSES,
        },
    )
    def post(self, request: Request) -> Response:
        return async_to_sync(self._handle_reactivate_key)(request)

    async def _handle_reactivate_key(self, request: Request) -> Response:
        with tracer.start_as_current_span("reactivate_key"):
            serializer = KeyRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(serializer.errors)

            result = await ReactivateKeyHandler(license_key_repository=_license_key_repo).handle(
                ReactivateKeyCommand(key=serializer.validated_data["key"], user_id=request.user_id)
            )
            return Response(LicenseKeySerializer(result).data)
