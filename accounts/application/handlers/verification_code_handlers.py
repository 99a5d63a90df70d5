"""
Verification code handlers.
"""

from accounts.application.commands.verification_codes import (
    SendVerificationCodeCommand,
    VerifyCodeCommand,
)
from accounts.application.handlers.register_user_handler import parse_email
from accounts.application.services.verification_code_service import VerificationCodeService
from accounts.ports.notifications import VerificationCodeNotifier
from accounts.ports.user_repository import UserRepository
from core.domain.exceptions import EmailAlreadyRegisteredError, UserNotFoundError
from core.domain.value_objects import VerificationPurpose

# Purposes whose recipient must not have an account yet, and those whose must.
_UNREGISTERED_ONLY = {VerificationPurpose.REGISTER, VerificationPurpose.CHANGE_EMAIL}
_REGISTERED_ONLY = {VerificationPurpose.LOGIN, VerificationPurpose.RESET_PASSWORD}


class SendVerificationCodeHandler:
    """Handler for SendVerificationCodeCommand."""

    def __init__(
        self,
        user_repository: UserRepository,
        verification_codes: VerificationCodeService,
        notifier: VerificationCodeNotifier,
    ):
        self.user_repository = user_repository
        self.verification_codes = verification_codes
        self.notifier = notifier

    async def handle(self, command: SendVerificationCodeCommand) -> None:
        """
        Issue a code and hand it to the notifier.

        Raises:
            EmailAlreadyRegisteredError: Register/change-email code for a taken address
            UserNotFoundError: Login/reset code for an unknown address
        """
        email = str(parse_email(command.email))
        existing = await self.user_repository.find_by_email(email)
        if command.purpose in _UNREGISTERED_ONLY and existing is not None:
            raise EmailAlreadyRegisteredError()
        if command.purpose in _REGISTERED_ONLY and existing is None:
            raise UserNotFoundError("No account is associated with this email")

        code = await self.verification_codes.issue(command.purpose, email)
        await self.notifier.send(email, code, command.purpose)


class VerifyCodeHandler:
    """Handler for VerifyCodeCommand."""

    def __init__(self, verification_codes: VerificationCodeService):
        self.verification_codes = verification_codes

    async def handle(self, command: VerifyCodeCommand) -> None:
        await self.verification_codes.verify(
            command.purpose, str(parse_email(command.email)), command.code
        )
