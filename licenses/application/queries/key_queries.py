"""
License key listing queries.
"""
import uuid
from dataclasses import dataclass
from typing import Optional

from core.domain.value_objects import KeyState


@dataclass
class ListUserKeysQuery:
    """Query for a user's active keys and the keys reserved for them."""

    user_id: uuid.UUID


@dataclass
class ListKeysQuery:
    """Query for every key, optionally filtered by derived state."""

    state: Optional[KeyState] = None


@dataclass
class KeyStatisticsQuery:
    """Query for the administrative dashboard figures."""

    days: int = 7
