"""
LicenseKey domain entity.

A license key is minted Available, becomes Active when a user claims it,
and is Expired once its expiry instant has passed. The claim itself is
carried as a single optional ``KeyClaim`` so that an owner without a
claim time (or the reverse) cannot be represented.
"""

import calendar
import re
import secrets
import string
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, Union

from django.utils import timezone

from core.domain.exceptions import (
    InvalidDurationError,
    InvalidLicenseKeyFormatError,
    KeyAlreadyClaimedError,
    LicenseKeyNotFoundError,
)
from core.domain.value_objects import GENERIC_KEY_PREFIX, KeyDuration, KeyState

KEY_ALPHABET = string.ascii_uppercase + string.digits
KEY_SEGMENTS = 2
KEY_SEGMENT_LENGTH = 4

_SEPARATORS = re.compile(r"[\s\-]+")


def generate_license_key(duration: Optional[KeyDuration] = None) -> str:
    """
    Generate a license key in format: PREFIX-XXXX-XXXX.

    Args:
        duration: Duration tier selecting the prefix; None uses the generic prefix

    Returns:
        Generated license key string
    """
    prefix = duration.key_prefix if duration else GENERIC_KEY_PREFIX
    parts = [
        "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_SEGMENT_LENGTH))
        for _ in range(KEY_SEGMENTS)
    ]
    return f"{prefix}-{'-'.join(parts)}"


def normalize_key(raw_key: str) -> str:
    """
    Normalize a user-typed key: strip whitespace and dashes, upper-case.

    ``epie1m-ab12-cd34``, ``EPIE1M-AB12-CD34`` and ``EpiE1M AB12 CD34`` all
    normalize to ``EPIE1MAB12CD34``.
    """
    return _SEPARATORS.sub("", (raw_key or "").strip()).upper()


def add_calendar_month(moment: datetime) -> datetime:
    """Add one calendar month, clamping the day to the target month's end."""
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def calculate_expiry(duration: KeyDuration, from_time: datetime) -> Optional[datetime]:
    """
    Compute the expiry instant for a key claimed (or reactivated) at ``from_time``.

    Returns:
        Expiry datetime, or None for lifetime keys
    """
    if duration is KeyDuration.ONE_DAY:
        return from_time + timedelta(days=1)
    if duration is KeyDuration.ONE_WEEK:
        return from_time + timedelta(days=7)
    if duration is KeyDuration.ONE_MONTH:
        return add_calendar_month(from_time)
    if duration is KeyDuration.LIFETIME:
        return None
    raise InvalidDurationError(f"Unsupported duration: {duration}")


def parse_duration(raw: Union[str, KeyDuration, None]) -> KeyDuration:
    """Resolve a duration value or label, raising InvalidDurationError."""
    try:
        return KeyDuration.from_label(raw)
    except ValueError as e:
        raise InvalidDurationError(str(e)) from e


@dataclass(frozen=True)
class KeyClaim:
    """Ownership and timing of a claimed key."""

    owner_user_id: uuid.UUID
    claimed_at: datetime
    expires_at: Optional[datetime]

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True)
class LicenseKey:
    """
    LicenseKey domain entity.

    Immutable; transition methods return new instances which the
    repository persists with conditional updates.
    """

    id: uuid.UUID
    key: str
    duration: KeyDuration
    created_at: datetime
    claim: Optional[KeyClaim] = None
    purchased_by_user_id: Optional[uuid.UUID] = None
    can_be_used_for_registration: bool = True
    hardware_id: Optional[str] = None

    def __post_init__(self):
        """Validate license key entity."""
        if not self.key or len(self.key.strip()) == 0:
            raise InvalidLicenseKeyFormatError("License key cannot be empty")
        if len(self.key) > 100:
            raise InvalidLicenseKeyFormatError("License key too long")
        if not isinstance(self.duration, KeyDuration):
            raise InvalidDurationError(f"Unsupported duration: {self.duration}")

    @classmethod
    def create(
        cls,
        duration: KeyDuration,
        purchased_by_user_id: Optional[uuid.UUID] = None,
        key: Optional[str] = None,
        license_key_id: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None,
    ) -> "LicenseKey":
        """
        Mint a new, Available license key.

        Args:
            duration: Duration tier
            purchased_by_user_id: Purchaser the key is reserved for, if any
            key: Explicit key string (generated if not provided)
            license_key_id: Optional UUID (generated if not provided)
            now: Mint time (defaults to timezone.now())
        """
        return cls(
            id=license_key_id or uuid.uuid4(),
            key=key or generate_license_key(duration),
            duration=duration,
            created_at=now or timezone.now(),
            purchased_by_user_id=purchased_by_user_id,
        )

    @property
    def lookup_key(self) -> str:
        return normalize_key(self.key)

    @property
    def owner_user_id(self) -> Optional[uuid.UUID]:
        return self.claim.owner_user_id if self.claim else None

    @property
    def claimed_at(self) -> Optional[datetime]:
        return self.claim.claimed_at if self.claim else None

    @property
    def expires_at(self) -> Optional[datetime]:
        return self.claim.expires_at if self.claim else None

    @property
    def is_lifetime(self) -> bool:
        return self.duration.is_lifetime

    def is_available(self) -> bool:
        return self.claim is None

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        return self.claim is not None and self.claim.owner_user_id == user_id

    def is_expired(self, now: datetime) -> bool:
        return self.claim is not None and self.claim.is_expired(now)

    def is_past_expiry(self, now: datetime) -> bool:
        """Strictly past expiry; a key checked at its exact expiry instant still validates by key."""
        return self.expires_at is not None and self.expires_at < now

    def is_active(self, now: datetime) -> bool:
        return self.claim is not None and not self.claim.is_expired(now)

    def state(self, now: datetime) -> KeyState:
        """Derive the lifecycle state at ``now``."""
        if self.claim is None:
            return KeyState.AVAILABLE
        if self.claim.is_expired(now):
            return KeyState.EXPIRED
        return KeyState.ACTIVE

    def claimed_by(self, user_id: uuid.UUID, now: datetime) -> "LicenseKey":
        """
        Return the Active key resulting from ``user_id`` claiming it at ``now``.

        Raises:
            KeyAlreadyClaimedError: If the key already has a claim
        """
        if self.claim is not None:
            raise KeyAlreadyClaimedError(f"License key {self.key} has already been claimed")
        return replace(
            self,
            claim=KeyClaim(
                owner_user_id=user_id,
                claimed_at=now,
                expires_at=calculate_expiry(self.duration, now),
            ),
            can_be_used_for_registration=False,
        )

    def restarted(self, user_id: uuid.UUID, now: datetime) -> "LicenseKey":
        """
        Return the key with its timer restarted from ``now`` for its owner.

        Raises:
            LicenseKeyNotFoundError: If the key is not owned by ``user_id``
        """
        if not self.is_owned_by(user_id):
            raise LicenseKeyNotFoundError(f"License key {self.key} not found for this user")
        return replace(
            self,
            claim=KeyClaim(
                owner_user_id=user_id,
                claimed_at=now,
                expires_at=calculate_expiry(self.duration, now),
            ),
        )

    def hardware_id_conflicts(self, hardware_id: Optional[str]) -> bool:
        """True if a different, non-empty hardware id is already bound."""
        if not hardware_id or not self.hardware_id:
            return False
        return self.hardware_id != hardware_id

    def with_hardware_id(self, hardware_id: Optional[str]) -> "LicenseKey":
        return replace(self, hardware_id=hardware_id)
