"""
ValidateLicenseQuery.

Validation by account credentials, used by the desktop client.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ValidateLicenseQuery:
    """Query to validate the license held by the account behind a credential pair."""

    email: str
    password: str
    hardware_id: Optional[str] = None
