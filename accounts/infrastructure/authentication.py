"""
Authentication adapters.

Passwords are checked with Django's configured password hashers; session
tokens are HS256 JWTs signed with ``SESSION_TOKEN_SECRET``.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Optional

from asgiref.sync import sync_to_async
from django.conf import settings
from django.utils import timezone
from jose import JWTError, jwt

from accounts.domain.user import User
from accounts.infrastructure.models import User as UserModel
from accounts.ports.authentication import (
    CredentialVerifier,
    SessionClaims,
    SessionToken,
    SessionTokenService,
)
from core.domain.exceptions import InvalidSessionTokenError
from core.domain.value_objects import Email
from core.infrastructure.database import translate_store_errors

logger = logging.getLogger(__name__)


class DjangoCredentialVerifier(CredentialVerifier):
    """Checks email/password pairs against the users table."""

    @sync_to_async
    @translate_store_errors("verify_credentials")
    def verify(self, email: str, password: str) -> Optional[User]:
        model = UserModel.objects.filter(email__iexact=(email or "").strip()).first()
        if model is None:
            # Hash anyway so unknown emails take as long as wrong passwords.
            UserModel().set_password(password)
            return None
        if not model.check_password(password):
            return None
        return User(
            id=model.id,
            email=Email(model.email),
            banned=model.banned,
            created_at=model.created_at,
            is_staff=model.is_staff,
        )


class JoseSessionTokenService(SessionTokenService):
    """Session tokens backed by python-jose."""

    ALGORITHM = "HS256"

    def __init__(self, secret: Optional[str] = None, ttl_days: Optional[int] = None):
        self.secret = secret or settings.SESSION_TOKEN_SECRET
        self.ttl = timedelta(days=ttl_days or settings.SESSION_TOKEN_TTL_DAYS)

    def issue(self, user: User, now: Optional[datetime] = None) -> SessionToken:
        issued_at = now or timezone.now()
        expires_at = issued_at + self.ttl
        claims = {
            "sub": str(user.id),
            "email": str(user.email),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return SessionToken(
            token=jwt.encode(claims, self.secret, algorithm=self.ALGORITHM),
            expires_at=expires_at,
        )

    def verify(self, token: str) -> SessionClaims:
        """
        Verify a session token.

        Raises:
            InvalidSessionTokenError: If the token is malformed, tampered or expired
        """
        if not token:
            raise InvalidSessionTokenError("Missing session token")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.ALGORITHM])
            user_id = uuid.UUID(claims["sub"])
            expires_at = datetime.fromtimestamp(claims["exp"], tz=dt_timezone.utc)
        except (JWTError, KeyError, ValueError, TypeError) as e:
            logger.info("Rejected session token: %s", e)
            raise InvalidSessionTokenError() from e
        return SessionClaims(
            user_id=user_id,
            email=claims.get("email", ""),
            expires_at=expires_at,
        )
