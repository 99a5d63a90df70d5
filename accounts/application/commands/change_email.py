"""
ChangeEmailCommand.
"""

import uuid
from dataclasses import dataclass


@dataclass
class ChangeEmailCommand:
    """
    Command to move an account to a new email address.

    ``code`` is a verified change-email code sent to ``new_email``.
    """

    user_id: uuid.UUID
    new_email: str
    code: str
