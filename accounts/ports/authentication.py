"""
Authentication ports.

The credential verifier checks an email/password pair; the session token
service issues and verifies the bearer tokens used by the account API.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import uuid

from accounts.domain.user import User


@dataclass(frozen=True)
class SessionToken:
    """An issued bearer token."""

    token: str
    expires_at: datetime


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a bearer token."""

    user_id: uuid.UUID
    email: str
    expires_at: datetime


class CredentialVerifier(ABC):
    """Verifies identity proofs (email + password)."""

    @abstractmethod
    async def verify(self, email: str, password: str) -> Optional[User]:
        """
        Verify a credential pair.

        Returns:
            The matching user, or None if the email is unknown or the
            password does not match
        """
        pass


class SessionTokenService(ABC):
    """Issues and verifies session tokens."""

    @abstractmethod
    def issue(self, user: User, now: Optional[datetime] = None) -> SessionToken:
        pass

    @abstractmethod
    def verify(self, token: str) -> SessionClaims:
        """
        Verify a token.

        Raises:
            InvalidSessionTokenError: If the token is malformed, tampered or expired
        """
        pass
