"""
License key DTOs for API responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from licenses.domain.license_key import LicenseKey


@dataclass
class LicenseKeyDTO:
    """DTO for license key information."""

    id: uuid.UUID
    key: str
    duration: str
    duration_label: str
    state: str
    is_lifetime: bool
    can_be_used_for_registration: bool
    created_at: datetime
    owner_user_id: Optional[uuid.UUID] = None
    purchased_by_user_id: Optional[uuid.UUID] = None
    claimed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    hardware_id: Optional[str] = None

    @classmethod
    def from_entity(cls, license_key: LicenseKey, now: datetime) -> "LicenseKeyDTO":
        return cls(
            id=license_key.id,
            key=license_key.key,
            duration=license_key.duration.value,
            duration_label=license_key.duration.label,
            state=license_key.state(now).value,
            is_lifetime=license_key.is_lifetime,
            can_be_used_for_registration=license_key.can_be_used_for_registration,
            created_at=license_key.created_at,
            owner_user_id=license_key.owner_user_id,
            purchased_by_user_id=license_key.purchased_by_user_id,
            claimed_at=license_key.claimed_at,
            expires_at=license_key.expires_at,
            hardware_id=license_key.hardware_id,
        )


@dataclass
class MintErrorDTO:
    """DTO for one key of a batch that could not be minted."""

    index: int
    code: str
    message: str


@dataclass
class MintResultDTO:
    """DTO for a mint batch: keys minted plus per-item failures."""

    keys: List[LicenseKeyDTO] = field(default_factory=list)
    errors: List[MintErrorDTO] = field(default_factory=list)


@dataclass
class UserKeysDTO:
    """DTO for the dashboard key listing."""

    active: List[LicenseKeyDTO]
    available: List[LicenseKeyDTO]


@dataclass
class KeyValidationDTO:
    """Result of validating a key by its string."""

    valid: bool
    reason: Optional[str] = None
    expired: bool = False
    hwid_mismatch: bool = False
    key: Optional[str] = None
    duration: Optional[str] = None
    claimed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    hardware_id: Optional[str] = None


@dataclass
class LicenseInfoDTO:
    """License details returned by identity validation."""

    key: str
    duration: str
    is_lifetime: bool
    claimed_at: datetime
    expires_at: Optional[datetime]
    time_remaining: Optional[str]
    hardware_id: Optional[str]


@dataclass
class UserSummaryDTO:
    """User summary returned by identity validation."""

    id: uuid.UUID
    email: str


@dataclass
class LicenseValidationDTO:
    """
    Result of validating by identity.

    ``authenticated`` separates a wrong password from an account with no
    usable license; ``has_license`` is only true when ``valid`` is.
    """

    valid: bool
    authenticated: bool
    has_license: bool
    reason: Optional[str] = None
    expired: bool = False
    hwid_mismatch: bool = False
    last_expiry: Optional[datetime] = None
    license: Optional[LicenseInfoDTO] = None
    user: Optional[UserSummaryDTO] = None


@dataclass
class DailyCountDTO:
    day: date
    count: int


@dataclass
class KeyStatisticsDTO:
    """DTO for the administrative statistics."""

    total_users: int
    banned_users: int
    total_keys: int
    available_keys: int
    active_keys: int
    expired_keys: int
    claims_per_day: List[DailyCountDTO]
    estimated_revenue: int
