"""
Verification code delivery through Celery.
"""
import logging

from asgiref.sync import sync_to_async

from accounts.ports.notifications import VerificationCodeNotifier
from core.domain.value_objects import VerificationPurpose

logger = logging.getLogger(__name__)


class CeleryVerificationCodeNotifier(VerificationCodeNotifier):
    """Queues the verification email on the Celery broker."""

    async def send(self, email: str, code: str, purpose: VerificationPurpose) -> None:
        from core.tasks import send_verification_email_task

        await sync_to_async(send_verification_email_task.delay)(email, code, purpose.value)
        logger.info("Verification email queued", extra={"purpose": purpose.value})
