"""
SetBanStateCommand.

Command to ban or unban a batch of users.
"""

import uuid
from dataclasses import dataclass
from typing import List


@dataclass
class SetBanStateCommand:
    """Command to set the ban flag on each listed user."""

    user_ids: List[uuid.UUID]
    banned: bool
