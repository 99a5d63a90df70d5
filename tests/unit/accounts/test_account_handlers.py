"""
Unit tests for account handlers.
"""

import uuid
from dataclasses import replace
from datetime import timedelta

import pytest
from jose import jwt

from accounts.application.commands.change_email import ChangeEmailCommand
from accounts.application.commands.login import LoginCommand
from accounts.application.commands.register_user import RegisterUserCommand
from accounts.application.commands.reset_password import ResetPasswordCommand
from accounts.application.commands.set_ban_state import SetBanStateCommand
from accounts.application.commands.verification_codes import (
    SendVerificationCodeCommand,
    VerifyCodeCommand,
)
from accounts.application.handlers.account_handlers import (
    ChangeEmailHandler,
    GetCurrentUserHandler,
    LoginHandler,
    ResetPasswordHandler,
)
from accounts.application.handlers.admin_user_handlers import ListUsersHandler, SetBanStateHandler
from accounts.application.handlers.register_user_handler import RegisterUserHandler
from accounts.application.handlers.verification_code_handlers import (
    SendVerificationCodeHandler,
    VerifyCodeHandler,
)
from accounts.application.queries.get_current_user import GetCurrentUserQuery
from accounts.application.queries.list_users import ListUsersQuery
from accounts.application.services.verification_code_service import VerificationCodeService
from accounts.domain.events import UserBanned, UserRegistered, UserUnbanned
from core.domain.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidVerificationCodeError,
    KeyAlreadyClaimedError,
    KeyNotRegistrationEligibleError,
    LicenseKeyNotFoundError,
    UserIneligibleError,
    UserNotFoundError,
    WeakPasswordError,
)
from core.domain.value_objects import KeyDuration, VerificationPurpose
from licenses.domain.events import LicenseKeyClaimed
from tests.fakes import TEST_PASSWORD, InMemoryLicenseKeyRepository, make_entity


class LosingClaimRepository(InMemoryLicenseKeyRepository):
    async def claim(self, license_key, require_registration_eligible=False):
        return False


@pytest.fixture
def register_handler(memory_user_repository, memory_key_repository, token_service, clock):
    return RegisterUserHandler(
        user_repository=memory_user_repository,
        license_key_repository=memory_key_repository,
        token_service=token_service,
        clock=clock,
    )


@pytest.fixture
def codes(memory_cache):
    return VerificationCodeService(cache=memory_cache, ttl_seconds=600, max_attempts=3)


@pytest.mark.asyncio
class TestRegisterUserHandler:
    """Tests for RegisterUserHandler."""

    async def test_register_without_key(
        self, register_handler, memory_user_repository, now, published_events
    ):
        result = await register_handler.handle(
            RegisterUserCommand(email=" New@Example.com ", password="secret1")
        )

        assert result.session.user.email == "new@example.com"
        assert result.session.user.banned is False
        assert result.session.expires_at == now + timedelta(days=30)
        assert jwt.get_unverified_claims(result.session.token)["sub"] == str(result.session.user.id)
        assert result.activated_key is None
        assert result.activation_error is None
        assert await memory_user_repository.count() == 1
        assert isinstance(published_events[0], UserRegistered)
        assert published_events[0].with_activation_key is False

    async def test_register_with_activation_key(
        self, register_handler, memory_key_repository, now, published_events
    ):
        minted = memory_key_repository.add(make_entity(KeyDuration.ONE_DAY, key="EPIE1D-AB12-CD34"))

        result = await register_handler.handle(
            RegisterUserCommand(
                email="new@example.com", password="secret1", activation_key="epie1d ab12 cd34"
            )
        )

        assert result.activated_key == "EPIE1D-AB12-CD34"
        stored = memory_key_repository.keys[minted.id]
        assert stored.owner_user_id == result.session.user.id
        assert stored.claimed_at == now
        assert stored.expires_at == now + timedelta(days=1)
        assert stored.can_be_used_for_registration is False
        claimed_events = [e for e in published_events if isinstance(e, LicenseKeyClaimed)]
        assert claimed_events[0].channel == "registration"

    async def test_unknown_key_rejects_registration(self, register_handler, memory_user_repository):
        with pytest.raises(LicenseKeyNotFoundError):
            await register_handler.handle(
                RegisterUserCommand(
                    email="new@example.com", password="secret1", activation_key="EPIE1D-0000-0000"
                )
            )
        assert await memory_user_repository.count() == 0

    async def test_claimed_key_rejects_registration(
        self, register_handler, memory_user_repository, memory_key_repository
    ):
        owner = memory_user_repository.add("owner@example.com")
        taken = memory_key_repository.add(make_entity(owner=owner))

        with pytest.raises(KeyAlreadyClaimedError):
            await register_handler.handle(
                RegisterUserCommand(email="new@example.com", password="secret1", activation_key=taken.key)
            )
        assert await memory_user_repository.find_by_email("new@example.com") is None

    async def test_ineligible_key_rejects_registration(
        self, register_handler, memory_key_repository
    ):
        flagged = memory_key_repository.add(
            replace(make_entity(), can_be_used_for_registration=False)
        )

        with pytest.raises(KeyNotRegistrationEligibleError):
            await register_handler.handle(
                RegisterUserCommand(
                    email="new@example.com", password="secret1", activation_key=flagged.key
                )
            )

    async def test_key_lost_after_account_created(
        self, memory_user_repository, token_service, clock
    ):
        repository = LosingClaimRepository()
        minted = repository.add(make_entity())
        handler = RegisterUserHandler(
            user_repository=memory_user_repository,
            license_key_repository=repository,
            token_service=token_service,
            clock=clock,
        )

        result = await handler.handle(
            RegisterUserCommand(email="new@example.com", password="secret1", activation_key=minted.key)
        )

        assert result.activated_key is None
        assert result.activation_error == KeyAlreadyClaimedError().message
        assert result.session.token
        assert await memory_user_repository.count() == 1

    async def test_duplicate_email(self, register_handler, memory_user_repository):
        memory_user_repository.add("taken@example.com")

        with pytest.raises(EmailAlreadyRegisteredError):
            await register_handler.handle(
                RegisterUserCommand(email="TAKEN@example.com", password="secret1")
            )

    async def test_short_password(self, register_handler):
        with pytest.raises(WeakPasswordError):
            await register_handler.handle(RegisterUserCommand(email="new@example.com", password="12345"))

    async def test_invalid_email(self, register_handler):
        with pytest.raises(InvalidEmailError):
            await register_handler.handle(RegisterUserCommand(email="not-an-email", password="secret1"))


@pytest.mark.asyncio
class TestLoginHandler:
    """Tests for LoginHandler and GetCurrentUserHandler."""

    async def test_login(self, memory_user_repository, credential_verifier, token_service, clock):
        user = memory_user_repository.add("player@example.com")
        handler = LoginHandler(
            credential_verifier=credential_verifier, token_service=token_service, clock=clock
        )

        session = await handler.handle(LoginCommand(email="player@example.com", password=TEST_PASSWORD))

        assert session.user.id == user.id
        assert jwt.get_unverified_claims(session.token)["email"] == "player@example.com"

    async def test_wrong_password(self, memory_user_repository, credential_verifier, token_service):
        memory_user_repository.add("player@example.com")
        handler = LoginHandler(credential_verifier=credential_verifier, token_service=token_service)

        with pytest.raises(InvalidCredentialsError):
            await handler.handle(LoginCommand(email="player@example.com", password="nope"))

    async def test_banned_user_cannot_log_in(
        self, memory_user_repository, credential_verifier, token_service
    ):
        memory_user_repository.add("player@example.com", banned=True)
        handler = LoginHandler(credential_verifier=credential_verifier, token_service=token_service)

        with pytest.raises(UserIneligibleError):
            await handler.handle(LoginCommand(email="player@example.com", password=TEST_PASSWORD))

    async def test_current_user(self, memory_user_repository):
        user = memory_user_repository.add("player@example.com")
        handler = GetCurrentUserHandler(user_repository=memory_user_repository)

        result = await handler.handle(GetCurrentUserQuery(user_id=user.id))

        assert result.email == "player@example.com"
        with pytest.raises(UserNotFoundError):
            await handler.handle(GetCurrentUserQuery(user_id=uuid.uuid4()))


@pytest.mark.asyncio
class TestVerificationCodeHandlers:
    """Tests for sending and verifying codes."""

    async def test_send_register_code(self, memory_user_repository, codes, notifier):
        handler = SendVerificationCodeHandler(
            user_repository=memory_user_repository, verification_codes=codes, notifier=notifier
        )

        await handler.handle(
            SendVerificationCodeCommand(email="New@Example.com", purpose=VerificationPurpose.REGISTER)
        )

        email, code, purpose = notifier.sent[0]
        assert email == "new@example.com"
        assert len(code) == 6 and code.isdigit()
        assert purpose is VerificationPurpose.REGISTER

    async def test_register_code_for_taken_email(self, memory_user_repository, codes, notifier):
        memory_user_repository.add("taken@example.com")
        handler = SendVerificationCodeHandler(
            user_repository=memory_user_repository, verification_codes=codes, notifier=notifier
        )

        with pytest.raises(EmailAlreadyRegisteredError):
            await handler.handle(
                SendVerificationCodeCommand(email="taken@example.com", purpose=VerificationPurpose.REGISTER)
            )
        assert notifier.sent == []

    async def test_reset_code_for_unknown_email(self, memory_user_repository, codes, notifier):
        handler = SendVerificationCodeHandler(
            user_repository=memory_user_repository, verification_codes=codes, notifier=notifier
        )

        with pytest.raises(UserNotFoundError):
            await handler.handle(
                SendVerificationCodeCommand(
                    email="ghost@example.com", purpose=VerificationPurpose.RESET_PASSWORD
                )
            )

    async def test_verify(self, codes):
        code = await codes.issue(VerificationPurpose.LOGIN, "player@example.com")
        handler = VerifyCodeHandler(verification_codes=codes)

        await handler.handle(
            VerifyCodeCommand(email="player@example.com", purpose=VerificationPurpose.LOGIN, code=code)
        )
        with pytest.raises(InvalidVerificationCodeError):
            await handler.handle(
                VerifyCodeCommand(
                    email="player@example.com", purpose=VerificationPurpose.REGISTER, code=code
                )
            )


@pytest.mark.asyncio
class TestChangeEmailAndResetPassword:
    """Tests for ChangeEmailHandler and ResetPasswordHandler."""

    async def test_change_email(self, memory_user_repository, codes, published_events):
        user = memory_user_repository.add("old@example.com")
        code = await codes.issue(VerificationPurpose.CHANGE_EMAIL, "new@example.com")
        await codes.verify(VerificationPurpose.CHANGE_EMAIL, "new@example.com", code)
        handler = ChangeEmailHandler(user_repository=memory_user_repository, verification_codes=codes)

        result = await handler.handle(
            ChangeEmailCommand(user_id=user.id, new_email="New@Example.com", code=code)
        )

        assert result.email == "new@example.com"
        assert str(memory_user_repository.users[user.id].email) == "new@example.com"
        with pytest.raises(InvalidVerificationCodeError):
            await handler.handle(ChangeEmailCommand(user_id=user.id, new_email="new@example.com", code=code))

    async def test_change_email_requires_verified_code(self, memory_user_repository, codes):
        user = memory_user_repository.add("old@example.com")
        code = await codes.issue(VerificationPurpose.CHANGE_EMAIL, "new@example.com")
        handler = ChangeEmailHandler(user_repository=memory_user_repository, verification_codes=codes)

        with pytest.raises(InvalidVerificationCodeError):
            await handler.handle(ChangeEmailCommand(user_id=user.id, new_email="new@example.com", code=code))
        assert str(memory_user_repository.users[user.id].email) == "old@example.com"

    async def test_change_email_to_taken_address(self, memory_user_repository, codes):
        user = memory_user_repository.add("old@example.com")
        memory_user_repository.add("taken@example.com")
        handler = ChangeEmailHandler(user_repository=memory_user_repository, verification_codes=codes)

        with pytest.raises(EmailAlreadyRegisteredError):
            await handler.handle(
                ChangeEmailCommand(user_id=user.id, new_email="taken@example.com", code="123456")
            )

    async def test_reset_password(self, memory_user_repository, codes):
        user = memory_user_repository.add("player@example.com")
        code = await codes.issue(VerificationPurpose.RESET_PASSWORD, "player@example.com")
        await codes.verify(VerificationPurpose.RESET_PASSWORD, "player@example.com", code)
        handler = ResetPasswordHandler(user_repository=memory_user_repository, verification_codes=codes)

        await handler.handle(
            ResetPasswordCommand(email="player@example.com", code=code, new_password="brand-new")
        )

        assert memory_user_repository.passwords[user.id] == "brand-new"

    async def test_reset_password_weak(self, memory_user_repository, codes):
        memory_user_repository.add("player@example.com")
        handler = ResetPasswordHandler(user_repository=memory_user_repository, verification_codes=codes)

        with pytest.raises(WeakPasswordError):
            await handler.handle(
                ResetPasswordCommand(email="player@example.com", code="123456", new_password="abc")
            )


@pytest.mark.asyncio
class TestAdminUserHandlers:
    """Tests for SetBanStateHandler and ListUsersHandler."""

    async def test_ban_batch_with_unknown_ids(
        self, memory_user_repository, memory_key_repository, published_events
    ):
        first = memory_user_repository.add("first@example.com")
        second = memory_user_repository.add("second@example.com")
        owned = memory_key_repository.add(make_entity(owner=first))
        unknown = uuid.uuid4()
        handler = SetBanStateHandler(user_repository=memory_user_repository)

        batch = await handler.handle(
            SetBanStateCommand(user_ids=[first.id, unknown, second.id, first.id], banned=True)
        )

        assert batch.updated == 2
        assert [(r.user_id, r.status) for r in batch.results] == [
            (first.id, "updated"),
            (unknown, "not_found"),
            (second.id, "updated"),
        ]
        assert memory_user_repository.users[first.id].banned
        assert memory_user_repository.users[second.id].banned
        assert memory_key_repository.keys[owned.id] == owned
        assert [type(e) for e in published_events] == [UserBanned, UserBanned]

    async def test_unban(self, memory_user_repository, published_events):
        user = memory_user_repository.add("player@example.com", banned=True)
        handler = SetBanStateHandler(user_repository=memory_user_repository)

        batch = await handler.handle(SetBanStateCommand(user_ids=[user.id], banned=False))

        assert batch.results[0].banned is False
        assert not memory_user_repository.users[user.id].banned
        assert isinstance(published_events[0], UserUnbanned)

    async def test_list_users_filtered(self, memory_user_repository):
        memory_user_repository.add("active@example.com")
        memory_user_repository.add("banned@example.com", banned=True)
        handler = ListUsersHandler(user_repository=memory_user_repository)

        everyone = await handler.handle(ListUsersQuery())
        banned = await handler.handle(ListUsersQuery(banned=True))

        assert len(everyone) == 2
        assert [user.email for user in banned] == ["banned@example.com"]
