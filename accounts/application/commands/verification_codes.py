"""
Verification code commands.
"""

from dataclasses import dataclass

from core.domain.value_objects import VerificationPurpose


@dataclass
class SendVerificationCodeCommand:
    """Command to email a fresh code for ``purpose`` to ``email``."""

    email: str
    purpose: VerificationPurpose


@dataclass
class VerifyCodeCommand:
    """Command to mark a pending code as verified."""

    email: str
    purpose: VerificationPurpose
    code: str
