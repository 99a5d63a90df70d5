"""
Cache abstraction (port).

Holds short-lived entries such as pending verification codes. Entries are
small JSON-compatible dicts that expire on their own; nothing stored here
is the source of truth for keys or accounts.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class CachePort(ABC):
    """Expiring key/value storage for transient entries."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the entry, or None when it is missing, expired or unreadable."""

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any], timeout: Optional[int] = None) -> bool:
        """
        Store an entry, replacing any previous one.

        Args:
            key: Cache key
            value: Entry to store
            timeout: Lifetime in seconds

        Returns:
            False if the backend refused the write
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop an entry; missing entries are ignored."""
