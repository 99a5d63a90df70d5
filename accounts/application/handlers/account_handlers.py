"""
Account handlers.

Login, current-user lookup, email change and password reset.
"""

import logging
from typing import Callable

from django.utils import timezone

from accounts.application.commands.change_email import ChangeEmailCommand
from accounts.application.commands.login import LoginCommand
from accounts.application.commands.reset_password import ResetPasswordCommand
from accounts.application.dto.user_dto import SessionDTO, UserDTO
from accounts.application.handlers.register_user_handler import parse_email, validate_password
from accounts.application.queries.get_current_user import GetCurrentUserQuery
from accounts.application.services.verification_code_service import VerificationCodeService
from accounts.domain.events import UserEmailChanged, UserPasswordReset
from accounts.ports.authentication import CredentialVerifier, SessionTokenService
from accounts.ports.user_repository import UserRepository
from core.domain.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    UserIneligibleError,
    UserNotFoundError,
)
from core.domain.value_objects import VerificationPurpose
from core.infrastructure.events import event_bus

logger = logging.getLogger(__name__)


class LoginHandler:
    """Handler for LoginCommand."""

    def __init__(
        self,
        credential_verifier: CredentialVerifier,
        token_service: SessionTokenService,
        clock: Callable = timezone.now,
    ):
        self.credential_verifier = credential_verifier
        self.token_service = token_service
        self.clock = clock

    async def handle(self, command: LoginCommand) -> SessionDTO:
        """
        Handle login command.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            UserIneligibleError: Account is banned
        """
        user = await self.credential_verifier.verify(command.email, command.password)
        if user is None:
            raise InvalidCredentialsError()
        if user.banned:
            raise UserIneligibleError("User account is banned")

        token = self.token_service.issue(user, now=self.clock())
        logger.info("User logged in", extra={"user_id": str(user.id)})
        return SessionDTO(token=token.token, expires_at=token.expires_at, user=UserDTO.from_entity(user))


class GetCurrentUserHandler:
    """Handler for GetCurrentUserQuery."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def handle(self, query: GetCurrentUserQuery) -> UserDTO:
        user = await self.user_repository.find_by_id(query.user_id)
        if user is None:
            raise UserNotFoundError()
        return UserDTO.from_entity(user)


class ChangeEmailHandler:
    """Handler for ChangeEmailCommand."""

    def __init__(self, user_repository: UserRepository, verification_codes: VerificationCodeService):
        self.user_repository = user_repository
        self.verification_codes = verification_codes

    async def handle(self, command: ChangeEmailCommand) -> UserDTO:
        """
        Handle change email command.

        Raises:
            InvalidEmailError: Malformed new email
            UserNotFoundError: Account no longer exists
            EmailAlreadyRegisteredError: New email belongs to another account
            InvalidVerificationCodeError: No verified code for the new email
        """
        new_email = parse_email(command.new_email)
        user = await self.user_repository.find_by_id(command.user_id)
        if user is None:
            raise UserNotFoundError()

        existing = await self.user_repository.find_by_email(str(new_email))
        if existing is not None and existing.id != user.id:
            raise EmailAlreadyRegisteredError()

        await self.verification_codes.consume(
            VerificationPurpose.CHANGE_EMAIL, str(new_email), command.code
        )
        if not await self.user_repository.change_email(user.id, str(new_email)):
            raise UserNotFoundError()

        await event_bus.publish(UserEmailChanged(user_id=user.id))
        return UserDTO.from_entity(user.with_email(str(new_email)))


class ResetPasswordHandler:
    """Handler for ResetPasswordCommand."""

    def __init__(self, user_repository: UserRepository, verification_codes: VerificationCodeService):
        self.user_repository = user_repository
        self.verification_codes = verification_codes

    async def handle(self, command: ResetPasswordCommand) -> None:
        """
        Handle reset password command.

        Raises:
            WeakPasswordError: New password below the minimum length
            UserNotFoundError: No account for the email
            InvalidVerificationCodeError: No verified reset code
        """
        email = parse_email(command.email)
        validate_password(command.new_password)

        user = await self.user_repository.find_by_email(str(email))
        if user is None:
            raise UserNotFoundError()

        await self.verification_codes.consume(
            VerificationPurpose.RESET_PASSWORD, str(email), command.code
        )
        if not await self.user_repository.set_password(user.id, command.new_password):
            raise UserNotFoundError()

        await event_bus.publish(UserPasswordReset(user_id=user.id))
