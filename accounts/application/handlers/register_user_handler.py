"""
RegisterUserHandler.

Handles account creation, including claim-via-registration.
"""

import logging
from typing import Callable, Optional

from django.conf import settings
from django.utils import timezone

from accounts.application.commands.register_user import RegisterUserCommand
from accounts.application.dto.user_dto import RegistrationDTO, SessionDTO, UserDTO
from accounts.domain.events import UserRegistered
from accounts.domain.user import User
from accounts.ports.authentication import SessionTokenService
from accounts.ports.user_repository import UserRepository
from core.domain.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidEmailError,
    KeyAlreadyClaimedError,
    WeakPasswordError,
)
from core.domain.value_objects import Email
from core.infrastructure.events import event_bus
from licenses.domain.events import LicenseKeyClaimed
from licenses.domain.license_key import LicenseKey, normalize_key
from licenses.domain.services import KeyLifecycleManager
from licenses.ports.license_key_repository import LicenseKeyRepository

logger = logging.getLogger(__name__)

REGISTRATION_CHANNEL = "registration"


def validate_password(password: str) -> None:
    """
    Raises:
        WeakPasswordError: If the password is shorter than the configured minimum
    """
    minimum = settings.ACCOUNT_MIN_PASSWORD_LENGTH
    if not password or len(password) < minimum:
        raise WeakPasswordError(f"Password must be at least {minimum} characters")


def parse_email(raw: str) -> Email:
    try:
        return Email(raw)
    except ValueError as e:
        raise InvalidEmailError() from e


class RegisterUserHandler:
    """Handler for RegisterUserCommand."""

    def __init__(
        self,
        user_repository: UserRepository,
        license_key_repository: LicenseKeyRepository,
        token_service: SessionTokenService,
        clock: Callable = timezone.now,
    ):
        """Initialize handler with repositories."""
        self.user_repository = user_repository
        self.license_key_repository = license_key_repository
        self.token_service = token_service
        self.clock = clock

    async def handle(self, command: RegisterUserCommand) -> RegistrationDTO:
        """
        Handle register user command.

        The activation key, if any, is checked before the account exists,
        so an unusable key rejects the registration. A key taken by a
        concurrent claim after the account was created is reported in
        ``activation_error`` instead.

        Raises:
            InvalidEmailError: Malformed email
            WeakPasswordError: Password below the minimum length
            EmailAlreadyRegisteredError: Email already in use
            LicenseKeyNotFoundError: Activation key does not exist
            KeyAlreadyClaimedError: Activation key already claimed
            KeyNotRegistrationEligibleError: Activation key not usable for registration
        """
        email = parse_email(command.email)
        validate_password(command.password)

        if await self.user_repository.find_by_email(str(email)):
            raise EmailAlreadyRegisteredError()

        now = self.clock()
        license_key: Optional[LicenseKey] = None
        if command.activation_key:
            license_key = KeyLifecycleManager.ensure_registration_eligible(
                await self.license_key_repository.find_by_lookup_key(
                    normalize_key(command.activation_key)
                ),
                now,
            )

        user = await self.user_repository.create(
            User.create(email=str(email), now=now), command.password
        )
        await event_bus.publish(
            UserRegistered(user_id=user.id, with_activation_key=license_key is not None)
        )

        activated_key = None
        activation_error = None
        if license_key is not None:
            claimed = license_key.claimed_by(user.id, now)
            if await self.license_key_repository.claim(claimed, require_registration_eligible=True):
                activated_key = claimed.key
                await event_bus.publish(
                    LicenseKeyClaimed(
                        license_key_id=claimed.id,
                        user_id=user.id,
                        duration=claimed.duration.value,
                        channel=REGISTRATION_CHANNEL,
                        expires_at=claimed.expires_at,
                    )
                )
            else:
                activation_error = KeyAlreadyClaimedError().message
                logger.warning(
                    "Activation key claimed concurrently during registration",
                    extra={"user_id": str(user.id), "license_key_id": str(license_key.id)},
                )

        token = self.token_service.issue(user, now=now)
        return RegistrationDTO(
            session=SessionDTO(
                token=token.token,
                expires_at=token.expires_at,
                user=UserDTO.from_entity(user),
            ),
            activated_key=activated_key,
            activation_error=activation_error,
        )
