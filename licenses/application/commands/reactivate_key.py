"""
ReactivateKeyCommand.
"""

import uuid
from dataclasses import dataclass


@dataclass
class ReactivateKeyCommand:
    """Command to restart the timer of a key the user owns."""

    key: str
    user_id: uuid.UUID
