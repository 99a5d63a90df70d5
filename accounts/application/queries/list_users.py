"""
ListUsersQuery.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ListUsersQuery:
    """Query to list accounts, optionally only banned or unbanned ones."""

    banned: Optional[bool] = None
