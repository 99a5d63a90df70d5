"""
ClaimKeyCommand.
"""

import uuid
from dataclasses import dataclass


@dataclass
class ClaimKeyCommand:
    """Command to claim an Available key for a user. ``key`` may be typed loosely."""

    key: str
    user_id: uuid.UUID
