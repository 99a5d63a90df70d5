"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object, normalized to lower case."""

    value: str

    def __post_init__(self):
        """Validate and normalize email."""
        normalized = (self.value or "").strip().lower()
        if not normalized or "@" not in normalized:
            raise ValueError(f"Invalid email address: {self.value}")
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


@dataclass(frozen=True)
class HardwareId(ValueObject):
    """Opaque machine fingerprint supplied by the desktop client."""

    value: str

    def __post_init__(self):
        """Validate hardware id."""
        stripped = (self.value or "").strip()
        if not stripped:
            raise ValueError("Hardware ID cannot be empty")
        if len(stripped) > 255:
            raise ValueError("Hardware ID too long")
        object.__setattr__(self, "value", stripped)

    def __str__(self) -> str:
        return self.value


class KeyDuration(Enum):
    """
    Closed set of duration tiers a license key can carry.

    The canonical value is what gets persisted; ``from_label`` accepts the
    legacy and display labels still emitted by older clients.
    """

    ONE_DAY = "1d"
    ONE_WEEK = "1w"
    ONE_MONTH = "1m"
    LIFETIME = "lifetime"

    def __str__(self) -> str:
        """Return duration as string."""
        return self.value

    @property
    def key_prefix(self) -> str:
        return _KEY_PREFIXES[self]

    @property
    def label(self) -> str:
        return _DISPLAY_LABELS[self]

    @property
    def price(self) -> int:
        return _PRICES[self]

    @property
    def is_lifetime(self) -> bool:
        return self is KeyDuration.LIFETIME

    @classmethod
    def from_label(cls, raw: Optional[str]) -> "KeyDuration":
        """
        Resolve a canonical value or known label into a duration.

        Raises:
            ValueError: If the label is not a known duration
        """
        if isinstance(raw, cls):
            return raw
        normalized = (raw or "").strip().lower()
        for duration in cls:
            if duration.value == normalized:
                return duration
        if normalized in _LABEL_ALIASES:
            return _LABEL_ALIASES[normalized]
        raise ValueError(f"Unknown key duration: {raw}")


GENERIC_KEY_PREFIX = "EPIE"

_KEY_PREFIXES = {
    KeyDuration.ONE_DAY: "EPIE1D",
    KeyDuration.ONE_WEEK: "EPIE1W",
    KeyDuration.ONE_MONTH: "EPIE1M",
    KeyDuration.LIFETIME: "EPIELT",
}

_DISPLAY_LABELS = {
    KeyDuration.ONE_DAY: "1 day",
    KeyDuration.ONE_WEEK: "1 week",
    KeyDuration.ONE_MONTH: "1 month",
    KeyDuration.LIFETIME: "Lifetime",
}

# Estimated revenue per tier, used by admin statistics only.
_PRICES = {
    KeyDuration.ONE_DAY: 4,
    KeyDuration.ONE_WEEK: 9,
    KeyDuration.ONE_MONTH: 17,
    KeyDuration.LIFETIME: 30,
}

_LABEL_ALIASES = {
    "1 jour": KeyDuration.ONE_DAY,
    "1 day": KeyDuration.ONE_DAY,
    "1day": KeyDuration.ONE_DAY,
    "1 semaine": KeyDuration.ONE_WEEK,
    "1 week": KeyDuration.ONE_WEEK,
    "1week": KeyDuration.ONE_WEEK,
    "1 mois": KeyDuration.ONE_MONTH,
    "1 month": KeyDuration.ONE_MONTH,
    "1month": KeyDuration.ONE_MONTH,
    "à vie": KeyDuration.LIFETIME,
    "a vie": KeyDuration.LIFETIME,
    "lt": KeyDuration.LIFETIME,
}


class KeyState(Enum):
    """Lifecycle state of a license key, derived at read time."""

    AVAILABLE = "available"
    ACTIVE = "active"
    EXPIRED = "expired"

    def __str__(self) -> str:
        """Return state as string."""
        return self.value


class VerificationPurpose(Enum):
    """What a one-time verification code authorizes."""

    REGISTER = "register"
    LOGIN = "login"
    RESET_PASSWORD = "reset-password"
    CHANGE_EMAIL = "change-email"

    def __str__(self) -> str:
        return self.value


class ValidationReason(Enum):
    """Stable reason codes returned by the license validation protocols."""

    INVALID_REQUEST = "invalid_request"
    INVALID_KEY = "invalid_key"
    NOT_ACTIVATED = "not_activated"
    ACCOUNT_BANNED = "account_banned"
    EXPIRED = "expired"
    HWID_MISMATCH = "hwid_mismatch"
    INVALID_CREDENTIALS = "invalid_credentials"
    NO_LICENSE = "no_license"
    LICENSE_EXPIRED = "license_expired"

    def __str__(self) -> str:
        return self.value
