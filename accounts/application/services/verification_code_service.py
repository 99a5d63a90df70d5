"""
One-time verification codes.

Codes are six digits, stored per (purpose, email) in the cache for
``VERIFICATION_CODE_TTL_SECONDS``. A code must first be verified and is
then consumed by the operation it authorizes.
"""

import logging
import secrets
from typing import Optional

from django.conf import settings

from core.domain.exceptions import InvalidVerificationCodeError, StoreUnavailableError
from core.domain.value_objects import Email, VerificationPurpose
from core.infrastructure.cache import CachePort

logger = logging.getLogger(__name__)

CODE_LENGTH = 6


class VerificationCodeService:
    """Issue, verify and consume verification codes."""

    KEY_PREFIX = "verification_code"

    def __init__(self, cache: CachePort, ttl_seconds: Optional[int] = None, max_attempts: Optional[int] = None):
        self.cache = cache
        self.ttl_seconds = ttl_seconds or settings.VERIFICATION_CODE_TTL_SECONDS
        self.max_attempts = max_attempts or settings.VERIFICATION_CODE_MAX_ATTEMPTS

    def _cache_key(self, purpose: VerificationPurpose, email: str) -> str:
        return f"{self.KEY_PREFIX}:{purpose.value}:{Email(email)}"

    @staticmethod
    def generate_code() -> str:
        return "".join(secrets.choice("0123456789") for _ in range(CODE_LENGTH))

    async def issue(self, purpose: VerificationPurpose, email: str) -> str:
        """
        Create a fresh code, replacing any pending one.

        Raises:
            StoreUnavailableError: If the code could not be stored
        """
        code = self.generate_code()
        stored = await self.cache.set(
            self._cache_key(purpose, email),
            {"code": code, "verified": False, "attempts": 0},
            timeout=self.ttl_seconds,
        )
        if not stored:
            raise StoreUnavailableError("Could not store verification code")
        logger.info("Verification code issued", extra={"purpose": purpose.value})
        return code

    async def verify(self, purpose: VerificationPurpose, email: str, code: str) -> None:
        """
        Mark a pending code as verified.

        Raises:
            InvalidVerificationCodeError: Wrong, expired or exhausted code
        """
        key = self._cache_key(purpose, email)
        entry = await self.cache.get(key)
        if not entry:
            raise InvalidVerificationCodeError()
        if not secrets.compare_digest(entry["code"], (code or "").strip()):
            attempts = entry.get("attempts", 0) + 1
            if attempts >= self.max_attempts:
                await self.cache.delete(key)
            else:
                await self.cache.set(key, {**entry, "attempts": attempts}, timeout=self.ttl_seconds)
            raise InvalidVerificationCodeError()
        await self.cache.set(key, {**entry, "verified": True}, timeout=self.ttl_seconds)

    async def consume(self, purpose: VerificationPurpose, email: str, code: str) -> None:
        """
        Use up a verified code.

        Raises:
            InvalidVerificationCodeError: No verified code matches
        """
        key = self._cache_key(purpose, email)
        entry = await self.cache.get(key)
        if (
            not entry
            or not entry.get("verified")
            or not secrets.compare_digest(entry["code"], (code or "").strip())
        ):
            raise InvalidVerificationCodeError()
        await self.cache.delete(key)
