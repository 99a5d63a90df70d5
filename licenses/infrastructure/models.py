"""
LicenseKey model.
"""
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.domain.value_objects import KeyDuration


class LicenseKey(models.Model):
    """
    A license key sold to a customer and claimed onto an account.

    ``owner``/``claimed_at`` are either both set (claimed) or both null
    (available); ``expires_at`` is only ever set on a claimed key and stays
    null for lifetime keys.
    """

    DURATION_CHOICES = [(duration.value, duration.label) for duration in KeyDuration]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key = models.CharField(max_length=100, unique=True, help_text="Canonical key string")
    lookup_key = models.CharField(
        max_length=100,
        unique=True,
        help_text="Upper-cased key with dashes and whitespace removed",
    )
    duration = models.CharField(max_length=16, choices=DURATION_CHOICES)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="license_keys",
    )
    purchased_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="purchased_license_keys",
    )
    can_be_used_for_registration = models.BooleanField(default=True)
    claimed_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    hardware_id = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "license_keys"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner", "claimed_at"]),
            models.Index(fields=["purchased_by", "owner"]),
            models.Index(fields=["claimed_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(owner__isnull=True, claimed_at__isnull=True)
                    | Q(owner__isnull=False, claimed_at__isnull=False)
                ),
                name="license_key_claim_complete",
            ),
            models.CheckConstraint(
                condition=Q(claimed_at__isnull=False) | Q(expires_at__isnull=True),
                name="license_key_expiry_requires_claim",
            ),
        ]

    def __str__(self):
        return self.key

    @property
    def state(self) -> str:
        if self.owner_id is None:
            return "available"
        if self.expires_at is not None and self.expires_at <= timezone.now():
            return "expired"
        return "active"
