"""
LicenseKey repository port (interface).

This defines the contract for license key persistence operations.
Implementations are in the infrastructure layer.

Every mutation is a conditional, single-row update: the returned flag
tells the caller whether the expected prior state still held.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, List, Optional
import uuid

from core.domain.value_objects import KeyDuration, KeyState
from licenses.domain.license_key import LicenseKey


class LicenseKeyRepository(ABC):
    """
    Abstract repository for LicenseKey entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def insert(self, license_key: LicenseKey) -> LicenseKey:
        """
        Insert a newly minted key.

        Raises:
            DuplicateKeyStringError: If the key string already exists
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_key_id: uuid.UUID) -> Optional[LicenseKey]:
        pass

    @abstractmethod
    async def find_by_key(self, key: str) -> Optional[LicenseKey]:
        """
        Find a license key by its exact stored string.

        Args:
            key: License key string, compared without normalization

        Returns:
            LicenseKey entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_lookup_key(self, lookup_key: str) -> Optional[LicenseKey]:
        """
        Find a license key by its normalized form.

        Args:
            lookup_key: Output of ``normalize_key``
        """
        pass

    @abstractmethod
    async def find_by_owner(self, user_id: uuid.UUID) -> List[LicenseKey]:
        """Return every key claimed by ``user_id`` (active or expired)."""
        pass

    @abstractmethod
    async def find_available_for_purchaser(self, user_id: uuid.UUID) -> List[LicenseKey]:
        """Return unclaimed keys reserved for ``user_id``."""
        pass

    @abstractmethod
    async def find_all(
        self, state: Optional[KeyState] = None, now: Optional[datetime] = None
    ) -> List[LicenseKey]:
        """Return all keys, newest first, optionally filtered by derived state."""
        pass

    @abstractmethod
    async def claim(
        self, license_key: LicenseKey, require_registration_eligible: bool = False
    ) -> bool:
        """
        Persist ``license_key.claim`` only if the stored row is still unclaimed.

        Returns:
            True if this call won the claim
        """
        pass

    @abstractmethod
    async def restart_claim(self, license_key: LicenseKey) -> bool:
        """
        Persist a restarted claim only if the stored owner is unchanged.

        Returns:
            True if the row was updated
        """
        pass

    @abstractmethod
    async def bind_hardware_id(
        self, license_key_id: uuid.UUID, hardware_id: str
    ) -> Optional[str]:
        """
        Bind ``hardware_id`` if none is bound yet.

        Returns:
            The hardware id bound after the attempt (the existing one if the
            key was already bound), or None if the key no longer exists
        """
        pass

    @abstractmethod
    async def reset_hardware_id(self, license_key_id: uuid.UUID) -> bool:
        """Clear the hardware binding; False if the key does not exist."""
        pass

    @abstractmethod
    async def delete(self, license_key_id: uuid.UUID) -> bool:
        """Remove the key; False if it did not exist."""
        pass

    @abstractmethod
    async def count_by_state(self, now: datetime) -> Dict[KeyState, int]:
        pass

    @abstractmethod
    async def count_claims_per_day(self, since: datetime) -> Dict[date, int]:
        """Number of keys whose latest claim falls on each day since ``since``."""
        pass

    @abstractmethod
    async def count_claimed_by_duration(self) -> Dict[KeyDuration, int]:
        pass
