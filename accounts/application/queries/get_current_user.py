"""
GetCurrentUserQuery.
"""

import uuid
from dataclasses import dataclass


@dataclass
class GetCurrentUserQuery:
    """Query for the authenticated user's summary."""

    user_id: uuid.UUID
