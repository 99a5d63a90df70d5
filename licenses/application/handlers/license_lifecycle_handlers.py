"""
License key lifecycle handlers.

Handlers for claim, reactivate, hardware-id reset and delete commands.
"""
import logging
from typing import Callable, Optional

from django.utils import timezone

from accounts.ports.user_repository import UserRepository
from core.domain.exceptions import KeyAlreadyClaimedError, LicenseKeyNotFoundError
from core.infrastructure.events import event_bus
from licenses.application.commands.admin_key_commands import DeleteKeyCommand, ResetHardwareIdCommand
from licenses.application.commands.claim_key import ClaimKeyCommand
from licenses.application.commands.reactivate_key import ReactivateKeyCommand
from licenses.application.dto.license_dto import LicenseKeyDTO
from licenses.domain.events import (
    HardwareIdReset,
    LicenseKeyClaimed,
    LicenseKeyDeleted,
    LicenseKeyReactivated,
)
from licenses.domain.license_key import LicenseKey, normalize_key
from licenses.domain.services import KeyLifecycleManager
from licenses.ports.license_key_repository import LicenseKeyRepository

logger = logging.getLogger(__name__)

DASHBOARD_CHANNEL = "dashboard"


async def resolve_key(repository: LicenseKeyRepository, raw_key: str) -> Optional[LicenseKey]:
    """Find a key by its exact string, falling back to the normalized form."""
    license_key = await repository.find_by_key((raw_key or "").strip())
    if license_key is None and normalize_key(raw_key):
        license_key = await repository.find_by_lookup_key(normalize_key(raw_key))
    return license_key


class ClaimKeyHandler:
    """Handler for ClaimKeyCommand."""

    def __init__(
        self,
        license_key_repository: LicenseKeyRepository,
        user_repository: UserRepository,
        clock: Callable = timezone.now,
    ):
        """Initialize handler with repositories."""
        self.license_key_repository = license_key_repository
        self.user_repository = user_repository
        self.clock = clock

    async def handle(self, command: ClaimKeyCommand) -> LicenseKeyDTO:
        """
        Handle claim key command.

        Args:
            command: ClaimKeyCommand

        Returns:
            The claimed key

        Raises:
            LicenseKeyNotFoundError: No key matches the normalized string
            KeyAlreadyClaimedError: Key is owned, or a concurrent claim won
            UserIneligibleError: User missing or banned
            DuplicateActiveKeyError: User already holds an active key
        """
        now = self.clock()
        license_key = await self.license_key_repository.find_by_lookup_key(
            normalize_key(command.key)
        )
        if license_key is None:
            raise LicenseKeyNotFoundError()
        user = await self.user_repository.find_by_id(command.user_id)
        owned = await self.license_key_repository.find_by_owner(command.user_id) if user else []

        KeyLifecycleManager.ensure_claimable(license_key, user, owned, now)

        claimed = license_key.claimed_by(user.id, now)
        if not await self.license_key_repository.claim(claimed):
            raise KeyAlreadyClaimedError(f"License key {license_key.key} has already been claimed")

        await event_bus.publish(
            LicenseKeyClaimed(
                license_key_id=claimed.id,
                user_id=user.id,
                duration=claimed.duration.value,
                channel=DASHBOARD_CHANNEL,
                expires_at=claimed.expires_at,
            )
        )
        return LicenseKeyDTO.from_entity(claimed, now)


class ReactivateKeyHandler:
    """Handler for ReactivateKeyCommand."""

    def __init__(self, license_key_repository: LicenseKeyRepository, clock: Callable = timezone.now):
        self.license_key_repository = license_key_repository
        self.clock = clock

    async def handle(self, command: ReactivateKeyCommand) -> LicenseKeyDTO:
        """
        Handle reactivate key command.

        The timer restarts from now even if the key has not expired yet.

        Raises:
            LicenseKeyNotFoundError: No key matches, or it belongs to someone else
        """
        now = self.clock()
        license_key = await self.license_key_repository.find_by_lookup_key(
            normalize_key(command.key)
        )
        if license_key is None or not license_key.is_owned_by(command.user_id):
            raise LicenseKeyNotFoundError("License key not found for this user")

        restarted = license_key.restarted(command.user_id, now)
        if not await self.license_key_repository.restart_claim(restarted):
            raise LicenseKeyNotFoundError("License key not found for this user")

        await event_bus.publish(
            LicenseKeyReactivated(
                license_key_id=restarted.id,
                user_id=command.user_id,
                duration=restarted.duration.value,
                expires_at=restarted.expires_at,
            )
        )
        return LicenseKeyDTO.from_entity(restarted, now)


class ResetHardwareIdHandler:
    """Handler for ResetHardwareIdCommand."""

    def __init__(self, license_key_repository: LicenseKeyRepository, clock: Callable = timezone.now):
        self.license_key_repository = license_key_repository
        self.clock = clock

    async def handle(self, command: ResetHardwareIdCommand) -> LicenseKeyDTO:
        """
        Raises:
            LicenseKeyNotFoundError: No key matches
        """
        license_key = await resolve_key(self.license_key_repository, command.key)
        if license_key is None or not await self.license_key_repository.reset_hardware_id(
            license_key.id
        ):
            raise LicenseKeyNotFoundError()

        await event_bus.publish(HardwareIdReset(license_key_id=license_key.id))
        return LicenseKeyDTO.from_entity(license_key.with_hardware_id(None), self.clock())


class DeleteKeyHandler:
    """Handler for DeleteKeyCommand."""

    def __init__(self, license_key_repository: LicenseKeyRepository):
        self.license_key_repository = license_key_repository

    async def handle(self, command: DeleteKeyCommand) -> None:
        """
        Raises:
            LicenseKeyNotFoundError: No key matches
        """
        license_key = await resolve_key(self.license_key_repository, command.key)
        if license_key is None or not await self.license_key_repository.delete(license_key.id):
            raise LicenseKeyNotFoundError()

        await event_bus.publish(LicenseKeyDeleted(license_key_id=license_key.id, key=license_key.key))
