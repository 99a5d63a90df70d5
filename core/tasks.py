"""
Celery tasks for background processing.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail

from LicensePortal.celery import app

logger = logging.getLogger(__name__)

SUBJECTS = {
    "register": "Your account creation code",
    "login": "Your sign-in code",
    "reset-password": "Your password reset code",
    "change-email": "Confirm your new email address",
}


@app.task(bind=True, max_retries=3)
def send_verification_email_task(self, email: str, code: str, purpose: str):
    """
    Deliver a verification code by email.

    Args:
        email: Recipient address
        code: Six-digit verification code
        purpose: Verification purpose value
    """
    minutes = settings.VERIFICATION_CODE_TTL_SECONDS // 60
    try:
        send_mail(
            subject=SUBJECTS.get(purpose, "Your verification code"),
            message=(
                f"Your code: {code}\n\n"
                f"This code expires in {minutes} minutes.\n"
                "If you did not request it, you can ignore this email."
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[email],
        )
    except OSError as exc:
        logger.error("Verification email delivery failed: %s", exc, extra={"purpose": purpose})
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
    logger.info("Verification email sent", extra={"purpose": purpose})
