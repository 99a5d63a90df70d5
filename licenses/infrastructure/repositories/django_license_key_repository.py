"""
Django implementation of LicenseKeyRepository port.

This adapter converts between domain entities and Django ORM models.
Claims, reactivations and hardware binding are single ``UPDATE ... WHERE``
statements carrying the expected prior state, so two concurrent callers
can never both succeed.
"""
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.db.models.functions import TruncDate
from django.utils import timezone

from core.domain.exceptions import DuplicateKeyStringError
from core.domain.value_objects import KeyDuration, KeyState
from core.infrastructure.database import translate_store_errors
from licenses.domain.license_key import KeyClaim, LicenseKey
from licenses.infrastructure.models import LicenseKey as LicenseKeyModel
from licenses.ports.license_key_repository import LicenseKeyRepository


class DjangoLicenseKeyRepository(LicenseKeyRepository):
    """
    Django ORM implementation of LicenseKeyRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Implements each mutation as a conditional single-row update
    """

    def _to_domain(self, model: LicenseKeyModel) -> LicenseKey:
        """
        Convert Django model to domain entity.

        Args:
            model: Django LicenseKey model

        Returns:
            LicenseKey domain entity
        """
        claim = None
        if model.owner_id is not None and model.claimed_at is not None:
            claim = KeyClaim(
                owner_user_id=model.owner_id,
                claimed_at=model.claimed_at,
                expires_at=model.expires_at,
            )
        return LicenseKey(
            id=model.id,
            key=model.key,
            duration=KeyDuration(model.duration),
            created_at=model.created_at,
            claim=claim,
            purchased_by_user_id=model.purchased_by_id,
            can_be_used_for_registration=model.can_be_used_for_registration,
            hardware_id=model.hardware_id,
        )

    def _to_model(self, license_key: LicenseKey) -> LicenseKeyModel:
        """
        Convert domain entity to an unsaved Django model.

        Args:
            license_key: LicenseKey domain entity

        Returns:
            Django LicenseKey model
        """
        return LicenseKeyModel(
            id=license_key.id,
            key=license_key.key,
            lookup_key=license_key.lookup_key,
            duration=license_key.duration.value,
            owner_id=license_key.owner_user_id,
            purchased_by_id=license_key.purchased_by_user_id,
            can_be_used_for_registration=license_key.can_be_used_for_registration,
            claimed_at=license_key.claimed_at,
            expires_at=license_key.expires_at,
            hardware_id=license_key.hardware_id,
            created_at=license_key.created_at,
        )

    def _active_filter(self, now: datetime) -> Q:
        return Q(owner__isnull=False) & (Q(expires_at__isnull=True) | Q(expires_at__gt=now))

    @sync_to_async
    @translate_store_errors("insert_key")
    def insert(self, license_key: LicenseKey) -> LicenseKey:
        """
        Insert a newly minted key.

        Raises:
            DuplicateKeyStringError: If the key string (or its normalized form) exists
        """
        model = self._to_model(license_key)
        try:
            with transaction.atomic():
                model.save(force_insert=True)
        except IntegrityError as e:
            raise DuplicateKeyStringError(
                f"License key {license_key.key} already exists"
            ) from e
        return self._to_domain(model)

    @sync_to_async
    @translate_store_errors("find_key")
    def find_by_id(self, license_key_id: uuid.UUID) -> Optional[LicenseKey]:
        model = LicenseKeyModel.objects.filter(id=license_key_id).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @translate_store_errors("find_key")
    def find_by_key(self, key: str) -> Optional[LicenseKey]:
        """
        Find a license key by its exact stored string.

        Args:
            key: License key string

        Returns:
            LicenseKey entity or None if not found
        """
        model = LicenseKeyModel.objects.filter(key=key).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @translate_store_errors("find_key")
    def find_by_lookup_key(self, lookup_key: str) -> Optional[LicenseKey]:
        if not lookup_key:
            return None
        model = LicenseKeyModel.objects.filter(lookup_key=lookup_key).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @translate_store_errors("find_keys")
    def find_by_owner(self, user_id: uuid.UUID) -> List[LicenseKey]:
        models = LicenseKeyModel.objects.filter(owner_id=user_id).order_by("-claimed_at", "key")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    @translate_store_errors("find_keys")
    def find_available_for_purchaser(self, user_id: uuid.UUID) -> List[LicenseKey]:
        models = LicenseKeyModel.objects.filter(
            purchased_by_id=user_id, owner__isnull=True
        ).order_by("-created_at")
        return [self._to_domain(model) for model in models]

    @sync_to_async
    @translate_store_errors("find_keys")
    def find_all(
        self, state: Optional[KeyState] = None, now: Optional[datetime] = None
    ) -> List[LicenseKey]:
        now = now or timezone.now()
        queryset = LicenseKeyModel.objects.all()
        if state is KeyState.AVAILABLE:
            queryset = queryset.filter(owner__isnull=True)
        elif state is KeyState.ACTIVE:
            queryset = queryset.filter(self._active_filter(now))
        elif state is KeyState.EXPIRED:
            queryset = queryset.filter(owner__isnull=False, expires_at__lte=now)
        return [self._to_domain(model) for model in queryset.order_by("-created_at")]

    @sync_to_async
    @translate_store_errors("claim_key")
    def claim(
        self, license_key: LicenseKey, require_registration_eligible: bool = False
    ) -> bool:
        """
        Persist a claim if the row is still unclaimed.

        Returns:
            True if exactly one row was updated
        """
        if license_key.claim is None:
            raise ValueError("Cannot persist a claim on an unclaimed key")
        queryset = LicenseKeyModel.objects.filter(
            id=license_key.id, owner__isnull=True, claimed_at__isnull=True
        )
        if require_registration_eligible:
            queryset = queryset.filter(can_be_used_for_registration=True)
        updated = queryset.update(
            owner_id=license_key.claim.owner_user_id,
            claimed_at=license_key.claim.claimed_at,
            expires_at=license_key.claim.expires_at,
            can_be_used_for_registration=False,
            updated_at=timezone.now(),
        )
        return updated == 1

    @sync_to_async
    @translate_store_errors("reactivate_key")
    def restart_claim(self, license_key: LicenseKey) -> bool:
        if license_key.claim is None:
            raise ValueError("Cannot restart an unclaimed key")
        updated = LicenseKeyModel.objects.filter(
            id=license_key.id, owner_id=license_key.claim.owner_user_id
        ).update(
            claimed_at=license_key.claim.claimed_at,
            expires_at=license_key.claim.expires_at,
            updated_at=timezone.now(),
        )
        return updated == 1

    @sync_to_async
    @translate_store_errors("bind_hardware_id")
    def bind_hardware_id(self, license_key_id: uuid.UUID, hardware_id: str) -> Optional[str]:
        """
        Bind a hardware id to an unbound key.

        Returns:
            The hardware id bound after the attempt, or None if the key is gone
        """
        updated = LicenseKeyModel.objects.filter(
            id=license_key_id, hardware_id__isnull=True
        ).update(hardware_id=hardware_id, updated_at=timezone.now())
        if updated:
            return hardware_id
        return (
            LicenseKeyModel.objects.filter(id=license_key_id)
            .values_list("hardware_id", flat=True)
            .first()
        )

    @sync_to_async
    @translate_store_errors("reset_hardware_id")
    def reset_hardware_id(self, license_key_id: uuid.UUID) -> bool:
        updated = LicenseKeyModel.objects.filter(id=license_key_id).update(
            hardware_id=None, updated_at=timezone.now()
        )
        return updated == 1

    @sync_to_async
    @translate_store_errors("delete_key")
    def delete(self, license_key_id: uuid.UUID) -> bool:
        deleted, _ = LicenseKeyModel.objects.filter(id=license_key_id).delete()
        return deleted > 0

    @sync_to_async
    @translate_store_errors("key_statistics")
    def count_by_state(self, now: datetime) -> Dict[KeyState, int]:
        counts = LicenseKeyModel.objects.aggregate(
            available=Count("id", filter=Q(owner__isnull=True)),
            active=Count("id", filter=self._active_filter(now)),
            expired=Count("id", filter=Q(owner__isnull=False, expires_at__lte=now)),
        )
        return {
            KeyState.AVAILABLE: counts["available"],
            KeyState.ACTIVE: counts["active"],
            KeyState.EXPIRED: counts["expired"],
        }

    @sync_to_async
    @translate_store_errors("key_statistics")
    def count_claims_per_day(self, since: datetime) -> Dict[date, int]:
        rows = (
            LicenseKeyModel.objects.filter(claimed_at__gte=since)
            .annotate(day=TruncDate("claimed_at"))
            .values("day")
            .annotate(total=Count("id"))
            .order_by("day")
        )
        return {row["day"]: row["total"] for row in rows}

    @sync_to_async
    @translate_store_errors("key_statistics")
    def count_claimed_by_duration(self) -> Dict[KeyDuration, int]:
        rows = (
            LicenseKeyModel.objects.filter(owner__isnull=False)
            .values("duration")
            .annotate(total=Count("id"))
        )
        return {KeyDuration(row["duration"]): row["total"] for row in rows}
