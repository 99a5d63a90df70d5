"""
ResetPasswordCommand.
"""

from dataclasses import dataclass


@dataclass
class ResetPasswordCommand:
    """Command to set a new password using a verified reset-password code."""

    email: str
    code: str
    new_password: str
