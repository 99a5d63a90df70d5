"""
Administrative key commands.
"""

from dataclasses import dataclass


@dataclass
class ResetHardwareIdCommand:
    """Command to clear the hardware binding of a key."""

    key: str


@dataclass
class DeleteKeyCommand:
    """Command to remove a key record."""

    key: str
