"""
License key domain events.

Domain events represent something that happened to a license key.
"""

import uuid
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent, utc_now


class LicenseKeyMinted(DomainEvent):
    """Event raised when a license key is minted (or reserved for a purchaser)."""

    def __init__(
        self,
        license_key_id: uuid.UUID,
        duration: str,
        purchased_by_user_id: Optional[uuid.UUID] = None,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(license_key_id),
            event_type="LicenseKeyMinted",
        )
        self.license_key_id = license_key_id
        self.duration = duration
        self.purchased_by_user_id = purchased_by_user_id


class LicenseKeyClaimed(DomainEvent):
    """Event raised when a user claims an available key."""

    def __init__(
        self,
        license_key_id: uuid.UUID,
        user_id: uuid.UUID,
        duration: str,
        channel: str,
        expires_at: Optional[datetime],
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseKeyClaimed event.

        Args:
            license_key_id: License key UUID
            user_id: Claiming user UUID
            duration: Duration tier of the key
            channel: "dashboard" or "registration"
            expires_at: Computed expiry (None for lifetime)
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(license_key_id),
            event_type="LicenseKeyClaimed",
        )
        self.license_key_id = license_key_id
        self.user_id = user_id
        self.duration = duration
        self.channel = channel
        self.expires_at = expires_at


class LicenseKeyReactivated(DomainEvent):
    """Event raised when an owner restarts a key's timer."""

    def __init__(
        self,
        license_key_id: uuid.UUID,
        user_id: uuid.UUID,
        duration: str,
        expires_at: Optional[datetime],
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(license_key_id),
            event_type="LicenseKeyReactivated",
        )
        self.license_key_id = license_key_id
        self.user_id = user_id
        self.duration = duration
        self.expires_at = expires_at


class HardwareIdBound(DomainEvent):
    """Event raised the first time a key is bound to a machine."""

    def __init__(
        self,
        license_key_id: uuid.UUID,
        hardware_id: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(license_key_id),
            event_type="HardwareIdBound",
        )
        self.license_key_id = license_key_id
        self.hardware_id = hardware_id


class HardwareIdMismatchDetected(DomainEvent):
    """Event raised when a validation presents a different machine."""

    def __init__(
        self,
        license_key_id: uuid.UUID,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(license_key_id),
            event_type="HardwareIdMismatchDetected",
        )
        self.license_key_id = license_key_id


class HardwareIdReset(DomainEvent):
    """Event raised when an administrator clears a key's hardware binding."""

    def __init__(
        self,
        license_key_id: uuid.UUID,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(license_key_id),
            event_type="HardwareIdReset",
        )
        self.license_key_id = license_key_id


class LicenseKeyDeleted(DomainEvent):
    """Event raised when an administrator deletes a key."""

    def __init__(
        self,
        license_key_id: uuid.UUID,
        key: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(license_key_id),
            event_type="LicenseKeyDeleted",
        )
        self.license_key_id = license_key_id
        self.key = key
