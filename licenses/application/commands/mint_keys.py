"""
MintKeysCommand.

Command to mint a batch of Available license keys.
"""

from dataclasses import dataclass

from core.domain.value_objects import KeyDuration


@dataclass
class MintKeysCommand:
    """Command to mint ``count`` keys of one duration tier."""

    count: int
    duration: KeyDuration
