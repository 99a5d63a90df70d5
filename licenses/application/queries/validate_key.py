"""
ValidateKeyQuery.

Validation by raw key string, used by the desktop client.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ValidateKeyQuery:
    """
    Query to validate a key by its exact stored string.

    ``hardware_id`` is bound to the key on first use.
    """

    key: str
    hardware_id: Optional[str] = None
