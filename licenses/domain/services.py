"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
import math
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Union

from core.domain.exceptions import (
    DuplicateActiveKeyError,
    KeyAlreadyClaimedError,
    KeyNotRegistrationEligibleError,
    LicenseKeyNotFoundError,
    UserIneligibleError,
)
from core.domain.value_objects import KeyDuration, ValidationReason
from licenses.domain.license_key import (
    LicenseKey,
    calculate_expiry,
    generate_license_key,
    normalize_key,
    parse_duration,
)


class LicenseKeyGenerator:
    """Domain service for license key generation."""

    @staticmethod
    def generate(duration: Union[KeyDuration, str, None] = None) -> str:
        """
        Generate a license key.

        Unknown or absent durations fall back to the generic prefix.
        """
        try:
            resolved = KeyDuration.from_label(duration) if duration else None
        except ValueError:
            resolved = None
        return generate_license_key(resolved)

    @staticmethod
    def normalize(raw_key: str) -> str:
        return normalize_key(raw_key)

    @staticmethod
    def calculate_expiry(
        duration: Union[KeyDuration, str], from_time: datetime
    ) -> Optional[datetime]:
        """
        Compute the expiry for a key claimed at ``from_time``.

        Args:
            duration: Duration tier or label
            from_time: Claim or reactivation instant (never the mint instant)

        Returns:
            Expiry datetime, or None for lifetime keys
        """
        return calculate_expiry(parse_duration(duration), from_time)


class KeyLifecycleManager:
    """Domain service holding the claim eligibility rules."""

    @staticmethod
    def ensure_claimable(
        license_key: Optional[LicenseKey],
        user,
        owned_keys: Iterable[LicenseKey],
        now: datetime,
    ) -> LicenseKey:
        """
        Check every precondition of a claim, in the order callers observe them.

        Args:
            license_key: Key resolved from the normalized key string, or None
            user: Claiming user entity, or None if it does not exist
            owned_keys: All keys currently owned by the user
            now: Claim instant

        Returns:
            The claimable key

        Raises:
            LicenseKeyNotFoundError: No key matches
            KeyAlreadyClaimedError: Key already has an owner
            UserIneligibleError: User missing or banned
            DuplicateActiveKeyError: User already holds an unexpired key
        """
        if license_key is None:
            raise LicenseKeyNotFoundError("License key not found")
        if not license_key.is_available():
            raise KeyAlreadyClaimedError(f"License key {license_key.key} has already been claimed")
        if user is None:
            raise UserIneligibleError("User does not exist")
        if user.banned:
            raise UserIneligibleError("User account is banned")
        if any(
            owned.id != license_key.id and owned.is_active(now) for owned in owned_keys
        ):
            raise DuplicateActiveKeyError("User already has an active license key")
        return license_key

    @staticmethod
    def ensure_registration_eligible(license_key: Optional[LicenseKey], now: datetime) -> LicenseKey:
        """
        Check that a key can be consumed by the registration flow.

        Raises:
            LicenseKeyNotFoundError: No key matches
            KeyAlreadyClaimedError: Key already has an owner
            KeyNotRegistrationEligibleError: Key is flagged as not usable for registration
        """
        if license_key is None:
            raise LicenseKeyNotFoundError("License key not found")
        if not license_key.is_available():
            raise KeyAlreadyClaimedError(f"License key {license_key.key} has already been claimed")
        if not license_key.can_be_used_for_registration:
            raise KeyNotRegistrationEligibleError()
        if license_key.expires_at is not None and license_key.expires_at <= now:
            raise KeyNotRegistrationEligibleError("License key has expired")
        return license_key


class LicenseValidator:
    """Domain service for the license validation rules."""

    @staticmethod
    def check_key(
        license_key: Optional[LicenseKey],
        owner_banned: bool,
        hardware_id: Optional[str],
        now: datetime,
    ) -> Optional[ValidationReason]:
        """
        Evaluate a key looked up by its exact string.

        Returns:
            The first failing reason, or None if the key is valid
        """
        if license_key is None:
            return ValidationReason.INVALID_KEY
        if license_key.claim is None:
            return ValidationReason.NOT_ACTIVATED
        if owner_banned:
            return ValidationReason.ACCOUNT_BANNED
        if license_key.is_past_expiry(now):
            return ValidationReason.EXPIRED
        if license_key.hardware_id_conflicts(hardware_id):
            return ValidationReason.HWID_MISMATCH
        return None

    @staticmethod
    def select_active_key(keys: Iterable[LicenseKey], now: datetime) -> Optional[LicenseKey]:
        """
        Pick the key Protocol B reports when several are active.

        Most recently claimed first; ties broken by key string.
        """
        active = [key for key in keys if key.is_active(now)]
        if not active:
            return None
        active.sort(key=lambda key: key.key)
        active.sort(key=lambda key: key.claimed_at, reverse=True)
        return active[0]

    @staticmethod
    def latest_expiry(keys: Iterable[LicenseKey]) -> Optional[datetime]:
        expiries = [key.expires_at for key in keys if key.expires_at is not None]
        return max(expiries) if expiries else None

    @staticmethod
    def claimed_keys(keys: Iterable[LicenseKey], user_id: uuid.UUID) -> List[LicenseKey]:
        return [key for key in keys if key.is_owned_by(user_id)]


def format_time_remaining(expires_at: Optional[datetime], now: datetime) -> Optional[str]:
    """
    Human-readable time left before ``expires_at``, largest unit first.

    ``"3d 4h"`` when at least a day remains, ``"5h 12m 9s"`` when at least an
    hour remains, otherwise ``"12m 9s"`` (or ``"9s"`` under a minute).
    Partial seconds round up. Lifetime keys (no expiry) report ``"Lifetime"``.
    """
    if expires_at is None:
        return "Lifetime"
    remaining = math.ceil((expires_at - now).total_seconds())
    if remaining <= 0:
        return None
    days, remainder = divmod(remaining, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"
