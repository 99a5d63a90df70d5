"""
LoginCommand.
"""

from dataclasses import dataclass


@dataclass
class LoginCommand:
    """Command to exchange credentials for a session token."""

    email: str
    password: str
