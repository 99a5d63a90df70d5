"""
Unit tests for the key minting, lifecycle and listing handlers.
"""

import uuid
from datetime import date, timedelta

import pytest

from core.domain.exceptions import (
    DomainException,
    DuplicateActiveKeyError,
    KeyAlreadyClaimedError,
    LicenseKeyNotFoundError,
    StoreUnavailableError,
    UserIneligibleError,
    UserNotFoundError,
)
from core.domain.value_objects import KeyDuration, KeyState
from licenses.application.commands.admin_key_commands import DeleteKeyCommand, ResetHardwareIdCommand
from licenses.application.commands.claim_key import ClaimKeyCommand
from licenses.application.commands.mint_keys import MintKeysCommand
from licenses.application.commands.reactivate_key import ReactivateKeyCommand
from licenses.application.commands.reserve_key import ReserveKeyCommand
from licenses.application.handlers.key_query_handlers import (
    KeyStatisticsHandler,
    ListKeysHandler,
    ListUserKeysHandler,
)
from licenses.application.handlers.license_lifecycle_handlers import (
    ClaimKeyHandler,
    DeleteKeyHandler,
    ReactivateKeyHandler,
    ResetHardwareIdHandler,
)
from licenses.application.handlers.mint_keys_handler import MintKeysHandler, ReserveKeyHandler
from licenses.application.queries.key_queries import (
    KeyStatisticsQuery,
    ListKeysQuery,
    ListUserKeysQuery,
)
from licenses.domain.events import (
    HardwareIdReset,
    LicenseKeyClaimed,
    LicenseKeyDeleted,
    LicenseKeyMinted,
    LicenseKeyReactivated,
)
from tests.fakes import InMemoryLicenseKeyRepository, make_entity


class UnavailableKeyRepository(InMemoryLicenseKeyRepository):
    async def insert(self, license_key):
        raise StoreUnavailableError()


class LosingClaimRepository(InMemoryLicenseKeyRepository):
    """Every claim loses the compare-and-swap."""

    async def claim(self, license_key, require_registration_eligible=False):
        return False


@pytest.mark.asyncio
class TestMintKeysHandler:
    """Tests for MintKeysHandler."""

    async def test_mint_batch(self, memory_key_repository, clock, now, published_events):
        handler = MintKeysHandler(license_key_repository=memory_key_repository, clock=clock)

        result = await handler.handle(MintKeysCommand(count=3, duration=KeyDuration.ONE_WEEK))

        assert len(result.keys) == 3
        assert result.errors == []
        assert len({key.key for key in result.keys}) == 3
        for key in result.keys:
            assert key.state == "available"
            assert key.duration == "1w"
            assert key.key.startswith("EPIE1W-")
            assert key.created_at == now
        assert [type(event) for event in published_events] == [LicenseKeyMinted] * 3

    @pytest.mark.parametrize("count", [0, -1, 501])
    async def test_batch_size_out_of_range(self, memory_key_repository, count):
        handler = MintKeysHandler(license_key_repository=memory_key_repository)

        with pytest.raises(DomainException) as exc_info:
            await handler.handle(MintKeysCommand(count=count, duration=KeyDuration.ONE_DAY))

        assert exc_info.value.code == "INVALID_BATCH_SIZE"

    async def test_collision_is_retried(self, memory_key_repository):
        memory_key_repository.fail_inserts = 2
        handler = MintKeysHandler(license_key_repository=memory_key_repository)

        result = await handler.handle(MintKeysCommand(count=1, duration=KeyDuration.ONE_DAY))

        assert len(result.keys) == 1
        assert len(memory_key_repository.keys) == 1

    async def test_exhausted_collisions_reported_per_item(self, memory_key_repository, settings):
        settings.LICENSE_KEY_MINT_ATTEMPTS = 2
        memory_key_repository.fail_inserts = 2
        handler = MintKeysHandler(license_key_repository=memory_key_repository)

        result = await handler.handle(MintKeysCommand(count=2, duration=KeyDuration.ONE_DAY))

        assert len(result.keys) == 1
        assert len(result.errors) == 1
        assert result.errors[0].index == 0
        assert result.errors[0].code == "DUPLICATE_KEY"

    async def test_store_unavailable_when_nothing_minted(self):
        handler = MintKeysHandler(license_key_repository=UnavailableKeyRepository())

        with pytest.raises(StoreUnavailableError):
            await handler.handle(MintKeysCommand(count=2, duration=KeyDuration.ONE_DAY))


@pytest.mark.asyncio
class TestReserveKeyHandler:
    """Tests for ReserveKeyHandler."""

    async def test_reserve_for_purchaser(
        self, memory_key_repository, memory_user_repository, published_events
    ):
        buyer = memory_user_repository.add("buyer@example.com")
        handler = ReserveKeyHandler(
            license_key_repository=memory_key_repository, user_repository=memory_user_repository
        )

        result = await handler.handle(
            ReserveKeyCommand(user_id=buyer.id, duration=KeyDuration.LIFETIME)
        )

        assert result.purchased_by_user_id == buyer.id
        assert result.owner_user_id is None
        assert result.state == "available"
        assert result.is_lifetime is True
        assert published_events[0].purchased_by_user_id == buyer.id

    async def test_unknown_purchaser(self, memory_key_repository, memory_user_repository):
        handler = ReserveKeyHandler(
            license_key_repository=memory_key_repository, user_repository=memory_user_repository
        )

        with pytest.raises(UserNotFoundError):
            await handler.handle(
                ReserveKeyCommand(user_id=uuid.uuid4(), duration=KeyDuration.ONE_DAY)
            )
        assert memory_key_repository.keys == {}


@pytest.mark.asyncio
class TestClaimKeyHandler:
    """Tests for ClaimKeyHandler."""

    async def test_claim_with_loosely_typed_key(
        self, memory_key_repository, memory_user_repository, clock, now, published_events
    ):
        user = memory_user_repository.add("player@example.com")
        minted = memory_key_repository.add(
            make_entity(KeyDuration.ONE_WEEK, key="EPIE1W-AB12-CD34", now=now - timedelta(days=40))
        )
        handler = ClaimKeyHandler(
            license_key_repository=memory_key_repository,
            user_repository=memory_user_repository,
            clock=clock,
        )

        result = await handler.handle(ClaimKeyCommand(key=" epie1w ab12 cd34 ", user_id=user.id))

        assert result.key == "EPIE1W-AB12-CD34"
        assert result.owner_user_id == user.id
        assert result.claimed_at == now
        assert result.expires_at == now + timedelta(days=7)
        assert result.can_be_used_for_registration is False
        stored = memory_key_repository.keys[minted.id]
        assert stored.owner_user_id == user.id
        assert isinstance(published_events[0], LicenseKeyClaimed)
        assert published_events[0].channel == "dashboard"

    async def test_unknown_key(self, memory_key_repository, memory_user_repository):
        user = memory_user_repository.add("player@example.com")
        handler = ClaimKeyHandler(
            license_key_repository=memory_key_repository, user_repository=memory_user_repository
        )

        with pytest.raises(LicenseKeyNotFoundError):
            await handler.handle(ClaimKeyCommand(key="EPIE1D-0000-0000", user_id=user.id))

    async def test_already_claimed(self, memory_key_repository, memory_user_repository):
        owner = memory_user_repository.add("owner@example.com")
        user = memory_user_repository.add("player@example.com")
        taken = memory_key_repository.add(make_entity(owner=owner))
        handler = ClaimKeyHandler(
            license_key_repository=memory_key_repository, user_repository=memory_user_repository
        )

        with pytest.raises(KeyAlreadyClaimedError):
            await handler.handle(ClaimKeyCommand(key=taken.key, user_id=user.id))

    async def test_banned_user(self, memory_key_repository, memory_user_repository):
        user = memory_user_repository.add("player@example.com", banned=True)
        minted = memory_key_repository.add(make_entity())
        handler = ClaimKeyHandler(
            license_key_repository=memory_key_repository, user_repository=memory_user_repository
        )

        with pytest.raises(UserIneligibleError):
            await handler.handle(ClaimKeyCommand(key=minted.key, user_id=user.id))
        assert memory_key_repository.keys[minted.id].is_available()

    async def test_second_active_key_rejected(
        self, memory_key_repository, memory_user_repository
    ):
        user = memory_user_repository.add("player@example.com")
        memory_key_repository.add(make_entity(owner=user))
        minted = memory_key_repository.add(make_entity())
        handler = ClaimKeyHandler(
            license_key_repository=memory_key_repository, user_repository=memory_user_repository
        )

        with pytest.raises(DuplicateActiveKeyError):
            await handler.handle(ClaimKeyCommand(key=minted.key, user_id=user.id))

    async def test_lost_race(self, memory_user_repository, published_events):
        repository = LosingClaimRepository()
        user = memory_user_repository.add("player@example.com")
        minted = repository.add(make_entity())
        handler = ClaimKeyHandler(
            license_key_repository=repository, user_repository=memory_user_repository
        )

        with pytest.raises(KeyAlreadyClaimedError):
            await handler.handle(ClaimKeyCommand(key=minted.key, user_id=user.id))
        assert published_events == []


@pytest.mark.asyncio
class TestReactivateKeyHandler:
    """Tests for ReactivateKeyHandler."""

    async def test_reactivate_expired_key(
        self, memory_key_repository, memory_user_repository, clock, now, published_events
    ):
        user = memory_user_repository.add("player@example.com")
        expired = memory_key_repository.add(
            make_entity(KeyDuration.ONE_DAY, owner=user, claimed_at=now - timedelta(days=3))
        )
        handler = ReactivateKeyHandler(license_key_repository=memory_key_repository, clock=clock)

        result = await handler.handle(ReactivateKeyCommand(key=expired.key, user_id=user.id))

        assert result.state == "active"
        assert result.claimed_at == now
        assert result.expires_at == now + timedelta(days=1)
        assert memory_key_repository.keys[expired.id].expires_at == now + timedelta(days=1)
        assert isinstance(published_events[0], LicenseKeyReactivated)

    async def test_reactivate_active_key_restarts_timer(
        self, memory_key_repository, memory_user_repository, clock, now
    ):
        user = memory_user_repository.add("player@example.com")
        active = memory_key_repository.add(
            make_entity(KeyDuration.ONE_WEEK, owner=user, claimed_at=now - timedelta(days=2))
        )
        handler = ReactivateKeyHandler(license_key_repository=memory_key_repository, clock=clock)

        result = await handler.handle(ReactivateKeyCommand(key=active.key, user_id=user.id))

        assert result.expires_at == now + timedelta(days=7)

    async def test_other_users_key_is_not_found(
        self, memory_key_repository, memory_user_repository
    ):
        owner = memory_user_repository.add("owner@example.com")
        intruder = memory_user_repository.add("intruder@example.com")
        owned = memory_key_repository.add(make_entity(owner=owner))
        handler = ReactivateKeyHandler(license_key_repository=memory_key_repository)

        with pytest.raises(LicenseKeyNotFoundError):
            await handler.handle(ReactivateKeyCommand(key=owned.key, user_id=intruder.id))

    async def test_available_key_is_not_found(self, memory_key_repository):
        minted = memory_key_repository.add(make_entity())
        handler = ReactivateKeyHandler(license_key_repository=memory_key_repository)

        with pytest.raises(LicenseKeyNotFoundError):
            await handler.handle(ReactivateKeyCommand(key=minted.key, user_id=uuid.uuid4()))


@pytest.mark.asyncio
class TestAdminKeyHandlers:
    """Tests for ResetHardwareIdHandler and DeleteKeyHandler."""

    async def test_reset_hardware_id(
        self, memory_key_repository, memory_user_repository, published_events
    ):
        user = memory_user_repository.add("player@example.com")
        bound = memory_key_repository.add(make_entity(owner=user).with_hardware_id("HW-1"))
        handler = ResetHardwareIdHandler(license_key_repository=memory_key_repository)

        result = await handler.handle(ResetHardwareIdCommand(key=bound.key))

        assert result.hardware_id is None
        assert result.owner_user_id == user.id
        stored = memory_key_repository.keys[bound.id]
        assert stored.hardware_id is None
        assert stored.expires_at == bound.expires_at
        assert isinstance(published_events[0], HardwareIdReset)

    async def test_reset_accepts_normalized_key(self, memory_key_repository):
        minted = memory_key_repository.add(
            make_entity(key="EPIE1M-AAAA-BBBB").with_hardware_id("HW-1")
        )
        handler = ResetHardwareIdHandler(license_key_repository=memory_key_repository)

        await handler.handle(ResetHardwareIdCommand(key="epie1maaaabbbb"))

        assert memory_key_repository.keys[minted.id].hardware_id is None

    async def test_reset_unknown_key(self, memory_key_repository):
        handler = ResetHardwareIdHandler(license_key_repository=memory_key_repository)

        with pytest.raises(LicenseKeyNotFoundError):
            await handler.handle(ResetHardwareIdCommand(key="EPIE1M-0000-0000"))

    async def test_delete(self, memory_key_repository, published_events):
        minted = memory_key_repository.add(make_entity())
        handler = DeleteKeyHandler(license_key_repository=memory_key_repository)

        await handler.handle(DeleteKeyCommand(key=minted.key))

        assert memory_key_repository.keys == {}
        assert isinstance(published_events[0], LicenseKeyDeleted)
        assert published_events[0].key == minted.key

    async def test_delete_unknown_key(self, memory_key_repository):
        handler = DeleteKeyHandler(license_key_repository=memory_key_repository)

        with pytest.raises(LicenseKeyNotFoundError):
            await handler.handle(DeleteKeyCommand(key="EPIE1M-0000-0000"))


@pytest.mark.asyncio
class TestKeyQueryHandlers:
    """Tests for key listings and statistics."""

    async def test_user_keys(self, memory_key_repository, memory_user_repository, clock, now):
        user = memory_user_repository.add("player@example.com")
        other = memory_user_repository.add("other@example.com")
        active = memory_key_repository.add(make_entity(owner=user, claimed_at=now))
        memory_key_repository.add(
            make_entity(KeyDuration.ONE_DAY, owner=user, claimed_at=now - timedelta(days=5))
        )
        reserved = memory_key_repository.add(make_entity(purchased_by_user_id=user.id))
        memory_key_repository.add(make_entity(purchased_by_user_id=other.id))
        handler = ListUserKeysHandler(license_key_repository=memory_key_repository, clock=clock)

        result = await handler.handle(ListUserKeysQuery(user_id=user.id))

        assert [key.id for key in result.active] == [active.id]
        assert [key.id for key in result.available] == [reserved.id]

    async def test_list_keys_by_state(self, memory_key_repository, memory_user_repository, clock, now):
        user = memory_user_repository.add("player@example.com")
        available = memory_key_repository.add(make_entity())
        expired = memory_key_repository.add(
            make_entity(KeyDuration.ONE_DAY, owner=user, claimed_at=now - timedelta(days=2))
        )
        handler = ListKeysHandler(license_key_repository=memory_key_repository, clock=clock)

        everything = await handler.handle(ListKeysQuery())
        only_expired = await handler.handle(ListKeysQuery(state=KeyState.EXPIRED))
        only_available = await handler.handle(ListKeysQuery(state=KeyState.AVAILABLE))

        assert {key.id for key in everything} == {available.id, expired.id}
        assert [key.id for key in only_expired] == [expired.id]
        assert [key.id for key in only_available] == [available.id]

    async def test_statistics(self, memory_key_repository, memory_user_repository, clock, now):
        user = memory_user_repository.add("player@example.com")
        memory_user_repository.add("banned@example.com", banned=True)
        memory_key_repository.add(make_entity(KeyDuration.ONE_MONTH, owner=user, claimed_at=now))
        memory_key_repository.add(
            make_entity(KeyDuration.ONE_DAY, owner=user, claimed_at=now - timedelta(days=2))
        )
        memory_key_repository.add(
            make_entity(KeyDuration.LIFETIME, owner=user, claimed_at=now - timedelta(days=20))
        )
        memory_key_repository.add(make_entity(KeyDuration.ONE_WEEK))
        handler = KeyStatisticsHandler(
            license_key_repository=memory_key_repository,
            user_repository=memory_user_repository,
            clock=clock,
        )

        stats = await handler.handle(KeyStatisticsQuery())

        assert stats.total_users == 2
        assert stats.banned_users == 1
        assert stats.total_keys == 4
        assert stats.available_keys == 1
        assert stats.active_keys == 2
        assert stats.expired_keys == 1
        assert [entry.day for entry in stats.claims_per_day] == [
            date(2024, 3, 9) + timedelta(days=offset) for offset in range(7)
        ]
        assert [entry.count for entry in stats.claims_per_day] == [0, 0, 0, 0, 1, 0, 1]
        assert stats.estimated_revenue == (
            KeyDuration.ONE_MONTH.price + KeyDuration.ONE_DAY.price + KeyDuration.LIFETIME.price
        )
