"""
License validation handlers.

Both protocols answer with a structured result carrying a stable reason
code; expected states never raise. Only store failures propagate, as
StoreUnavailableError.
"""
import logging
from typing import Callable, Optional

from django.utils import timezone

from accounts.ports.authentication import CredentialVerifier
from accounts.ports.user_repository import UserRepository
from core.domain.value_objects import HardwareId, ValidationReason
from core.infrastructure.events import event_bus
from core.metrics import license_validations_total
from licenses.application.dto.license_dto import (
    KeyValidationDTO,
    LicenseInfoDTO,
    LicenseValidationDTO,
    UserSummaryDTO,
)
from licenses.application.queries.validate_key import ValidateKeyQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.domain.events import HardwareIdBound, HardwareIdMismatchDetected
from licenses.domain.license_key import LicenseKey
from licenses.domain.services import LicenseValidator, format_time_remaining
from licenses.ports.license_key_repository import LicenseKeyRepository

logger = logging.getLogger(__name__)


class InvalidHardwareId(ValueError):
    pass


def parse_hardware_id(raw: Optional[str]) -> Optional[str]:
    """Return the stripped hardware id, None when absent."""
    if raw is None or not raw.strip():
        return None
    try:
        return str(HardwareId(raw))
    except ValueError as e:
        raise InvalidHardwareId(str(e)) from e


async def bind_or_detect_mismatch(
    repository: LicenseKeyRepository, license_key: LicenseKey, hardware_id: Optional[str]
) -> Optional[ValidationReason]:
    """
    Auto-bind ``hardware_id`` to an unbound key.

    Binding the same id twice is a no-op. If another validation bound a
    different id first, the result is a mismatch and nothing is written.

    Returns:
        HWID_MISMATCH, INVALID_KEY if the key vanished, otherwise None
    """
    if not hardware_id:
        return None
    if license_key.hardware_id_conflicts(hardware_id):
        await event_bus.publish(HardwareIdMismatchDetected(license_key_id=license_key.id))
        return ValidationReason.HWID_MISMATCH
    if license_key.hardware_id == hardware_id:
        return None

    bound = await repository.bind_hardware_id(license_key.id, hardware_id)
    if bound is None:
        return ValidationReason.INVALID_KEY
    if bound != hardware_id:
        await event_bus.publish(HardwareIdMismatchDetected(license_key_id=license_key.id))
        return ValidationReason.HWID_MISMATCH
    await event_bus.publish(HardwareIdBound(license_key_id=license_key.id, hardware_id=hardware_id))
    return None


class ValidateKeyHandler:
    """Handler for ValidateKeyQuery."""

    PROTOCOL = "key"

    def __init__(
        self,
        license_key_repository: LicenseKeyRepository,
        user_repository: UserRepository,
        clock: Callable = timezone.now,
    ):
        self.license_key_repository = license_key_repository
        self.user_repository = user_repository
        self.clock = clock

    async def handle(self, query: ValidateKeyQuery) -> KeyValidationDTO:
        """
        Validate a key by its exact stored string.

        Returns:
            KeyValidationDTO; ``reason`` is set whenever ``valid`` is False
        """
        result = await self._validate(query)
        license_validations_total.labels(
            protocol=self.PROTOCOL, outcome=result.reason or "valid"
        ).inc()
        return result

    async def _validate(self, query: ValidateKeyQuery) -> KeyValidationDTO:
        key = (query.key or "").strip()
        if not key:
            return KeyValidationDTO(valid=False, reason=ValidationReason.INVALID_REQUEST.value)
        try:
            hardware_id = parse_hardware_id(query.hardware_id)
        except InvalidHardwareId:
            return KeyValidationDTO(valid=False, reason=ValidationReason.INVALID_REQUEST.value)

        now = self.clock()
        license_key = await self.license_key_repository.find_by_key(key)
        owner_banned = False
        if license_key is not None and license_key.owner_user_id is not None:
            owner = await self.user_repository.find_by_id(license_key.owner_user_id)
            owner_banned = owner is None or owner.banned

        reason = LicenseValidator.check_key(license_key, owner_banned, hardware_id, now)
        if reason is ValidationReason.HWID_MISMATCH:
            await event_bus.publish(HardwareIdMismatchDetected(license_key_id=license_key.id))
        elif reason is None:
            reason = await bind_or_detect_mismatch(
                self.license_key_repository, license_key, hardware_id
            )

        if reason is not None:
            return KeyValidationDTO(
                valid=False,
                reason=reason.value,
                expired=reason is ValidationReason.EXPIRED,
                hwid_mismatch=reason is ValidationReason.HWID_MISMATCH,
                key=license_key.key if license_key and reason is ValidationReason.EXPIRED else None,
                expires_at=license_key.expires_at if reason is ValidationReason.EXPIRED else None,
            )

        return KeyValidationDTO(
            valid=True,
            key=license_key.key,
            duration=license_key.duration.value,
            claimed_at=license_key.claimed_at,
            expires_at=license_key.expires_at,
            hardware_id=hardware_id or license_key.hardware_id,
        )


class ValidateLicenseHandler:
    """Handler for ValidateLicenseQuery."""

    PROTOCOL = "identity"

    def __init__(
        self,
        license_key_repository: LicenseKeyRepository,
        credential_verifier: CredentialVerifier,
        clock: Callable = timezone.now,
    ):
        self.license_key_repository = license_key_repository
        self.credential_verifier = credential_verifier
        self.clock = clock

    async def handle(self, query: ValidateLicenseQuery) -> LicenseValidationDTO:
        result = await self._validate(query)
        license_validations_total.labels(
            protocol=self.PROTOCOL, outcome=result.reason or "valid"
        ).inc()
        return result

    async def _validate(self, query: ValidateLicenseQuery) -> LicenseValidationDTO:
        """
        Validate the license of the account behind a credential pair.

        Among several active keys the most recently claimed one is
        reported, ties broken by key string.
        """
        if not query.email or not query.password:
            return self._invalid(ValidationReason.INVALID_REQUEST)
        try:
            hardware_id = parse_hardware_id(query.hardware_id)
        except InvalidHardwareId:
            return self._invalid(ValidationReason.INVALID_REQUEST)

        user = await self.credential_verifier.verify(query.email, query.password)
        if user is None:
            return self._invalid(ValidationReason.INVALID_CREDENTIALS)

        summary = UserSummaryDTO(id=user.id, email=str(user.email))
        if user.banned:
            return self._invalid(ValidationReason.ACCOUNT_BANNED, authenticated=True, user=summary)

        now = self.clock()
        claimed = LicenseValidator.claimed_keys(
            await self.license_key_repository.find_by_owner(user.id), user.id
        )
        if not claimed:
            return LicenseValidationDTO(
                valid=True,
                authenticated=True,
                has_license=False,
                reason=ValidationReason.NO_LICENSE.value,
                user=summary,
            )

        active = LicenseValidator.select_active_key(claimed, now)
        if active is None:
            return LicenseValidationDTO(
                valid=True,
                authenticated=True,
                has_license=False,
                reason=ValidationReason.LICENSE_EXPIRED.value,
                expired=True,
                last_expiry=LicenseValidator.latest_expiry(claimed),
                user=summary,
            )

        reason = await bind_or_detect_mismatch(self.license_key_repository, active, hardware_id)
        if reason is not None:
            return self._invalid(reason, authenticated=True, user=summary)

        return LicenseValidationDTO(
            valid=True,
            authenticated=True,
            has_license=True,
            license=LicenseInfoDTO(
                key=active.key,
                duration=active.duration.value,
                is_lifetime=active.is_lifetime,
                claimed_at=active.claimed_at,
                expires_at=active.expires_at,
                time_remaining=format_time_remaining(active.expires_at, now),
                hardware_id=hardware_id or active.hardware_id,
            ),
            user=summary,
        )

    @staticmethod
    def _invalid(
        reason: ValidationReason,
        authenticated: bool = False,
        user: Optional[UserSummaryDTO] = None,
    ) -> LicenseValidationDTO:
        return LicenseValidationDTO(
            valid=False,
            authenticated=authenticated,
            has_license=False,
            reason=reason.value,
            hwid_mismatch=reason is ValidationReason.HWID_MISMATCH,
            user=user,
        )
