"""
Unit tests for the two license validation protocols.
"""

from datetime import timedelta

import pytest

from core.domain.value_objects import KeyDuration
from licenses.application.handlers.validation_handlers import (
    ValidateKeyHandler,
    ValidateLicenseHandler,
)
from licenses.application.queries.validate_key import ValidateKeyQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.domain.events import HardwareIdBound, HardwareIdMismatchDetected
from tests.fakes import TEST_PASSWORD, InMemoryLicenseKeyRepository, make_entity


class RacingBindRepository(InMemoryLicenseKeyRepository):
    """Another validation binds a different machine between read and write."""

    async def bind_hardware_id(self, license_key_id, hardware_id):
        stored = self.keys[license_key_id]
        self.keys[license_key_id] = stored.with_hardware_id("OTHER-MACHINE")
        return "OTHER-MACHINE"


@pytest.fixture
def key_handler(memory_key_repository, memory_user_repository, clock):
    return ValidateKeyHandler(
        license_key_repository=memory_key_repository,
        user_repository=memory_user_repository,
        clock=clock,
    )


@pytest.fixture
def license_handler(memory_key_repository, credential_verifier, clock):
    return ValidateLicenseHandler(
        license_key_repository=memory_key_repository,
        credential_verifier=credential_verifier,
        clock=clock,
    )


@pytest.mark.asyncio
class TestValidateKeyHandler:
    """Tests for validation by key string."""

    async def test_valid_key_binds_hardware_id(
        self, key_handler, memory_key_repository, memory_user_repository, now, published_events
    ):
        user = memory_user_repository.add("player@example.com")
        active = memory_key_repository.add(make_entity(owner=user, claimed_at=now))

        result = await key_handler.handle(ValidateKeyQuery(key=active.key, hardware_id=" HW-1 "))

        assert result.valid is True
        assert result.reason is None
        assert result.key == active.key
        assert result.duration == "1m"
        assert result.claimed_at == now
        assert result.expires_at == active.expires_at
        assert result.hardware_id == "HW-1"
        assert memory_key_repository.keys[active.id].hardware_id == "HW-1"
        assert isinstance(published_events[0], HardwareIdBound)

    async def test_same_hardware_id_is_idempotent(
        self, key_handler, memory_key_repository, memory_user_repository, now, published_events
    ):
        user = memory_user_repository.add("player@example.com")
        active = memory_key_repository.add(
            make_entity(owner=user, claimed_at=now).with_hardware_id("HW-1")
        )

        first = await key_handler.handle(ValidateKeyQuery(key=active.key, hardware_id="HW-1"))
        second = await key_handler.handle(ValidateKeyQuery(key=active.key, hardware_id="HW-1"))

        assert first.valid and second.valid
        assert published_events == []

    async def test_hardware_id_mismatch_does_not_mutate(
        self, key_handler, memory_key_repository, memory_user_repository, now, published_events
    ):
        user = memory_user_repository.add("player@example.com")
        active = memory_key_repository.add(
            make_entity(owner=user, claimed_at=now).with_hardware_id("HW-1")
        )

        result = await key_handler.handle(ValidateKeyQuery(key=active.key, hardware_id="HW-2"))

        assert result.valid is False
        assert result.reason == "hwid_mismatch"
        assert result.hwid_mismatch is True
        assert memory_key_repository.keys[active.id].hardware_id == "HW-1"
        assert isinstance(published_events[0], HardwareIdMismatchDetected)

    async def test_without_hardware_id_nothing_is_bound(
        self, key_handler, memory_key_repository, memory_user_repository, now
    ):
        user = memory_user_repository.add("player@example.com")
        active = memory_key_repository.add(make_entity(owner=user, claimed_at=now))

        result = await key_handler.handle(ValidateKeyQuery(key=active.key))

        assert result.valid is True
        assert memory_key_repository.keys[active.id].hardware_id is None

    async def test_concurrent_bind_of_other_machine(self, memory_user_repository, clock, now):
        repository = RacingBindRepository()
        user = memory_user_repository.add("player@example.com")
        active = repository.add(make_entity(owner=user, claimed_at=now))
        handler = ValidateKeyHandler(
            license_key_repository=repository, user_repository=memory_user_repository, clock=clock
        )

        result = await handler.handle(ValidateKeyQuery(key=active.key, hardware_id="HW-1"))

        assert result.valid is False
        assert result.reason == "hwid_mismatch"

    async def test_unknown_key(self, key_handler):
        result = await key_handler.handle(ValidateKeyQuery(key="EPIE1M-0000-0000"))

        assert result.valid is False
        assert result.reason == "invalid_key"

    async def test_key_match_is_exact(self, key_handler, memory_key_repository, memory_user_repository, now):
        user = memory_user_repository.add("player@example.com")
        active = memory_key_repository.add(make_entity(owner=user, claimed_at=now))

        result = await key_handler.handle(ValidateKeyQuery(key=active.key.lower()))

        assert result.reason == "invalid_key"

    async def test_not_activated(self, key_handler, memory_key_repository):
        available = memory_key_repository.add(make_entity())

        result = await key_handler.handle(ValidateKeyQuery(key=available.key))

        assert result.valid is False
        assert result.reason == "not_activated"

    async def test_banned_owner(self, key_handler, memory_key_repository, memory_user_repository, now):
        user = memory_user_repository.add("player@example.com", banned=True)
        active = memory_key_repository.add(make_entity(owner=user, claimed_at=now))

        result = await key_handler.handle(ValidateKeyQuery(key=active.key, hardware_id="HW-1"))

        assert result.reason == "account_banned"
        assert memory_key_repository.keys[active.id].hardware_id is None

    async def test_expired(self, key_handler, memory_key_repository, memory_user_repository, now):
        user = memory_user_repository.add("player@example.com")
        expired = memory_key_repository.add(
            make_entity(KeyDuration.ONE_DAY, owner=user, claimed_at=now - timedelta(days=2))
        )

        result = await key_handler.handle(ValidateKeyQuery(key=expired.key))

        assert result.valid is False
        assert result.reason == "expired"
        assert result.expired is True
        assert result.expires_at == now - timedelta(days=1)

    async def test_valid_at_exact_expiry(
        self, key_handler, memory_key_repository, memory_user_repository, now
    ):
        user = memory_user_repository.add("player@example.com")
        at_expiry = memory_key_repository.add(
            make_entity(KeyDuration.ONE_DAY, owner=user, claimed_at=now - timedelta(days=1))
        )

        result = await key_handler.handle(ValidateKeyQuery(key=at_expiry.key, hardware_id="HW-1"))

        assert result.valid is True
        assert result.reason is None
        assert result.expires_at == now

    @pytest.mark.parametrize("key,hardware_id", [("", None), ("   ", None), ("EPIE", "x" * 300)])
    async def test_invalid_request(self, key_handler, key, hardware_id):
        result = await key_handler.handle(ValidateKeyQuery(key=key, hardware_id=hardware_id))

        assert result.valid is False
        assert result.reason == "invalid_request"


@pytest.mark.asyncio
class TestValidateLicenseHandler:
    """Tests for validation by identity."""

    async def test_valid_license(
        self, license_handler, memory_key_repository, memory_user_repository, now
    ):
        user = memory_user_repository.add("player@example.com")
        active = memory_key_repository.add(
            make_entity(KeyDuration.ONE_WEEK, owner=user, claimed_at=now - timedelta(hours=1))
        )

        result = await license_handler.handle(
            ValidateLicenseQuery(email="Player@Example.com", password=TEST_PASSWORD, hardware_id="HW-1")
        )

        assert result.valid is True
        assert result.authenticated is True
        assert result.has_license is True
        assert result.reason is None
        assert result.license.key == active.key
        assert result.license.duration == "1w"
        assert result.license.is_lifetime is False
        assert result.license.time_remaining == "6d 23h"
        assert result.license.hardware_id == "HW-1"
        assert result.user.id == user.id
        assert result.user.email == "player@example.com"
        assert memory_key_repository.keys[active.id].hardware_id == "HW-1"

    async def test_lifetime_license(
        self, license_handler, memory_key_repository, memory_user_repository, now
    ):
        user = memory_user_repository.add("player@example.com")
        memory_key_repository.add(make_entity(KeyDuration.LIFETIME, owner=user, claimed_at=now))

        result = await license_handler.handle(
            ValidateLicenseQuery(email="player@example.com", password=TEST_PASSWORD)
        )

        assert result.license.is_lifetime is True
        assert result.license.expires_at is None
        assert result.license.time_remaining == "Lifetime"

    async def test_most_recent_claim_reported(
        self, license_handler, memory_key_repository, memory_user_repository, now
    ):
        user = memory_user_repository.add("player@example.com")
        memory_key_repository.add(
            make_entity(KeyDuration.LIFETIME, owner=user, claimed_at=now - timedelta(days=3))
        )
        newest = memory_key_repository.add(
            make_entity(KeyDuration.ONE_MONTH, owner=user, claimed_at=now - timedelta(days=1))
        )

        result = await license_handler.handle(
            ValidateLicenseQuery(email="player@example.com", password=TEST_PASSWORD)
        )

        assert result.license.key == newest.key

    async def test_wrong_password(self, license_handler, memory_user_repository):
        memory_user_repository.add("player@example.com")

        result = await license_handler.handle(
            ValidateLicenseQuery(email="player@example.com", password="wrong")
        )

        assert result.valid is False
        assert result.authenticated is False
        assert result.has_license is False
        assert result.reason == "invalid_credentials"
        assert result.user is None

    async def test_banned(self, license_handler, memory_key_repository, memory_user_repository, now):
        user = memory_user_repository.add("player@example.com", banned=True)
        memory_key_repository.add(make_entity(owner=user, claimed_at=now))

        result = await license_handler.handle(
            ValidateLicenseQuery(email="player@example.com", password=TEST_PASSWORD)
        )

        assert result.valid is False
        assert result.authenticated is True
        assert result.reason == "account_banned"
        assert result.license is None

    async def test_no_license(self, license_handler, memory_key_repository, memory_user_repository):
        user = memory_user_repository.add("player@example.com")
        memory_key_repository.add(make_entity(purchased_by_user_id=user.id))

        result = await license_handler.handle(
            ValidateLicenseQuery(email="player@example.com", password=TEST_PASSWORD)
        )

        assert result.valid is True
        assert result.authenticated is True
        assert result.has_license is False
        assert result.reason == "no_license"

    async def test_license_expired_reports_latest_expiry(
        self, license_handler, memory_key_repository, memory_user_repository, now
    ):
        user = memory_user_repository.add("player@example.com")
        memory_key_repository.add(
            make_entity(KeyDuration.ONE_DAY, owner=user, claimed_at=now - timedelta(days=10))
        )
        latest = memory_key_repository.add(
            make_entity(KeyDuration.ONE_WEEK, owner=user, claimed_at=now - timedelta(days=8))
        )

        result = await license_handler.handle(
            ValidateLicenseQuery(email="player@example.com", password=TEST_PASSWORD)
        )

        assert result.has_license is False
        assert result.expired is True
        assert result.reason == "license_expired"
        assert result.last_expiry == latest.expires_at

    async def test_hardware_mismatch(
        self, license_handler, memory_key_repository, memory_user_repository, now
    ):
        user = memory_user_repository.add("player@example.com")
        memory_key_repository.add(
            make_entity(owner=user, claimed_at=now).with_hardware_id("HW-1")
        )

        result = await license_handler.handle(
            ValidateLicenseQuery(email="player@example.com", password=TEST_PASSWORD, hardware_id="HW-2")
        )

        assert result.valid is False
        assert result.authenticated is True
        assert result.hwid_mismatch is True
        assert result.reason == "hwid_mismatch"
        assert result.license is None

    async def test_missing_credentials(self, license_handler):
        result = await license_handler.handle(ValidateLicenseQuery(email="", password=""))

        assert result.reason == "invalid_request"
        assert result.authenticated is False
