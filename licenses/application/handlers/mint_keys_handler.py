"""
Mint handlers.

Handle bulk minting and purchaser reservations.
"""

import logging
import uuid
from typing import Callable, Optional

from django.conf import settings
from django.utils import timezone

from accounts.ports.user_repository import UserRepository
from core.domain.exceptions import (
    DomainException,
    DuplicateKeyStringError,
    StoreUnavailableError,
    UserNotFoundError,
)
from core.domain.value_objects import KeyDuration
from core.infrastructure.events import event_bus
from licenses.application.commands.mint_keys import MintKeysCommand
from licenses.application.commands.reserve_key import ReserveKeyCommand
from licenses.application.dto.license_dto import LicenseKeyDTO, MintErrorDTO, MintResultDTO
from licenses.domain.events import LicenseKeyMinted
from licenses.domain.license_key import LicenseKey
from licenses.ports.license_key_repository import LicenseKeyRepository

logger = logging.getLogger(__name__)


async def mint_one(
    repository: LicenseKeyRepository,
    duration: KeyDuration,
    now,
    purchased_by_user_id: Optional[uuid.UUID] = None,
) -> LicenseKey:
    """
    Insert one freshly generated key, regenerating on key-string collision.

    Raises:
        DuplicateKeyStringError: Every attempt collided
        StoreUnavailableError: The store failed
    """
    attempts = settings.LICENSE_KEY_MINT_ATTEMPTS
    for attempt in range(1, attempts + 1):
        candidate = LicenseKey.create(
            duration=duration, purchased_by_user_id=purchased_by_user_id, now=now
        )
        try:
            saved = await repository.insert(candidate)
        except DuplicateKeyStringError:
            logger.warning(
                "License key collision, regenerating",
                extra={"attempt": attempt, "duration": duration.value},
            )
            continue
        await event_bus.publish(
            LicenseKeyMinted(
                license_key_id=saved.id,
                duration=duration.value,
                purchased_by_user_id=purchased_by_user_id,
            )
        )
        return saved
    raise DuplicateKeyStringError(f"No unique key string after {attempts} attempts")


class MintKeysHandler:
    """Handler for MintKeysCommand."""

    def __init__(self, license_key_repository: LicenseKeyRepository, clock: Callable = timezone.now):
        """Initialize handler with repositories."""
        self.license_key_repository = license_key_repository
        self.clock = clock

    async def handle(self, command: MintKeysCommand) -> MintResultDTO:
        """
        Handle mint keys command.

        Failures are collected per item; the batch is never rolled back.

        Returns:
            MintResultDTO with the minted keys and per-item errors

        Raises:
            DomainException: If the batch size is out of range
            StoreUnavailableError: If nothing was minted because the store failed
        """
        max_batch = settings.LICENSE_KEY_MAX_BATCH
        if command.count < 1 or command.count > max_batch:
            raise DomainException(
                f"Count must be between 1 and {max_batch}", code="INVALID_BATCH_SIZE"
            )

        now = self.clock()
        result = MintResultDTO()
        store_failures = 0
        for index in range(command.count):
            try:
                saved = await mint_one(self.license_key_repository, command.duration, now)
            except DomainException as e:
                store_failures += isinstance(e, StoreUnavailableError)
                result.errors.append(MintErrorDTO(index=index, code=e.code, message=e.message))
                continue
            result.keys.append(LicenseKeyDTO.from_entity(saved, now))

        if not result.keys and store_failures == command.count:
            raise StoreUnavailableError()

        logger.info(
            "Minted license keys",
            extra={
                "duration": command.duration.value,
                "requested": command.count,
                "minted": len(result.keys),
                "failed": len(result.errors),
            },
        )
        return result


class ReserveKeyHandler:
    """Handler for ReserveKeyCommand."""

    def __init__(
        self,
        license_key_repository: LicenseKeyRepository,
        user_repository: UserRepository,
        clock: Callable = timezone.now,
    ):
        self.license_key_repository = license_key_repository
        self.user_repository = user_repository
        self.clock = clock

    async def handle(self, command: ReserveKeyCommand) -> LicenseKeyDTO:
        """
        Mint one key reserved for the purchaser.

        Raises:
            UserNotFoundError: Purchaser does not exist
        """
        user = await self.user_repository.find_by_id(command.user_id)
        if user is None:
            raise UserNotFoundError(f"User {command.user_id} not found")

        now = self.clock()
        saved = await mint_one(
            self.license_key_repository, command.duration, now, purchased_by_user_id=user.id
        )
        return LicenseKeyDTO.from_entity(saved, now)
