"""
RegisterUserCommand.

Command to create an account, optionally consuming an activation key.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RegisterUserCommand:
    """
    Command to register a new user.

    When ``activation_key`` is given the key is claimed for the new
    account in the same operation.
    """

    email: str
    password: str
    activation_key: Optional[str] = None
