"""
Pytest configuration and shared fixtures.

Handler tests run against the in-memory doubles from ``tests.fakes``;
repository and API tests use the Django adapters and the test database.
"""

import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone as dt_timezone

import pytest
from django.utils import timezone

from accounts.domain.user import User
from accounts.infrastructure.authentication import JoseSessionTokenService
from accounts.infrastructure.repositories.django_user_repository import DjangoUserRepository
from core.domain.value_objects import KeyDuration
from core.infrastructure.events import event_bus
from licenses.infrastructure.repositories.django_license_key_repository import (
    DjangoLicenseKeyRepository,
)
from tests.fakes import (
    TEST_PASSWORD,
    InMemoryCache,
    InMemoryCredentialVerifier,
    InMemoryLicenseKeyRepository,
    InMemoryUserRepository,
    RecordingNotifier,
)


@contextmanager
def _allow_sync_orm():
    """Let the sync test-data factories run inside async tests."""
    previous = os.environ.get("DJANGO_ALLOW_ASYNC_UNSAFE")
    os.environ["DJANGO_ALLOW_ASYNC_UNSAFE"] = "true"
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop("DJANGO_ALLOW_ASYNC_UNSAFE", None)
        else:
            os.environ["DJANGO_ALLOW_ASYNC_UNSAFE"] = previous


@pytest.fixture
def now():
    """A fixed, timezone-aware instant."""
    return datetime(2024, 3, 15, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def memory_key_repository():
    return InMemoryLicenseKeyRepository()


@pytest.fixture
def memory_user_repository():
    return InMemoryUserRepository()


@pytest.fixture
def credential_verifier(memory_user_repository):
    return InMemoryCredentialVerifier(memory_user_repository)


@pytest.fixture
def token_service():
    return JoseSessionTokenService(secret="unit-test-secret", ttl_days=30)


@pytest.fixture
def memory_cache():
    return InMemoryCache()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def published_events(monkeypatch):
    """Capture every event published on the global bus instead of dispatching it."""
    events = []

    async def record(event):
        events.append(event)

    monkeypatch.setattr(event_bus, "publish", record)
    return events


@pytest.fixture
def license_key_repository():
    """Fixture for LicenseKeyRepository."""
    return DjangoLicenseKeyRepository()


@pytest.fixture
def user_repository():
    """Fixture for UserRepository."""
    return DjangoUserRepository()


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def make_user(db):
    """Factory creating users in the database."""
    from accounts.infrastructure.models import User as UserModel

    def create(email=None, password=TEST_PASSWORD, banned=False):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        with _allow_sync_orm():
            return UserModel.objects.create_user(email=email, password=password, banned=banned)

    return create


@pytest.fixture
def make_key(db):
    """Factory creating license key rows in the database."""
    from licenses.domain.license_key import calculate_expiry, generate_license_key, normalize_key
    from licenses.infrastructure.models import LicenseKey as LicenseKeyModel

    def create(
        duration=KeyDuration.ONE_MONTH,
        owner=None,
        claimed_at=None,
        expires_at=None,
        hardware_id=None,
        purchased_by=None,
        key=None,
        can_be_used_for_registration=None,
    ):
        key = key or generate_license_key(duration)
        if owner is not None:
            claimed_at = claimed_at or timezone.now()
            if expires_at is None:
                expires_at = calculate_expiry(duration, claimed_at)
        if can_be_used_for_registration is None:
            can_be_used_for_registration = owner is None
        with _allow_sync_orm():
            return LicenseKeyModel.objects.create(
                key=key,
                lookup_key=normalize_key(key),
                duration=duration.value,
                owner=owner,
                claimed_at=claimed_at,
                expires_at=expires_at,
                hardware_id=hardware_id,
                purchased_by=purchased_by,
                can_be_used_for_registration=can_be_used_for_registration,
            )

    return create


@pytest.fixture
def admin_api_key(db):
    """Raw admin API key backed by a stored hash."""
    from accounts.infrastructure.models import AdminApiKey

    api_key = AdminApiKey(name="tests")
    api_key.save()
    return api_key._raw_key  # pylint: disable=protected-access


@pytest.fixture
def admin_client(api_client, admin_api_key):
    api_client.credentials(HTTP_X_API_KEY=admin_api_key)
    return api_client


@pytest.fixture
def account_user(make_user):
    return make_user(email="player@example.com")


@pytest.fixture
def account_client(api_client, account_user):
    """API client carrying a session token for ``account_user``."""
    token = JoseSessionTokenService().issue(
        User(
            id=account_user.id,
            email=account_user.email,
            banned=account_user.banned,
            created_at=account_user.created_at,
        )
    )
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.token}")
    return api_client
