"""
ReserveKeyCommand.

Command to mint one key reserved for a purchaser after a verified payment.
"""

import uuid
from dataclasses import dataclass

from core.domain.value_objects import KeyDuration


@dataclass
class ReserveKeyCommand:
    """
    Command to reserve a key for a purchaser.

    The key stays Available; only the purchaser sees it among their
    available keys until someone claims it.
    """

    user_id: uuid.UUID
    duration: KeyDuration
