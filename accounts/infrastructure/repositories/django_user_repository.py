"""
Django implementation of UserRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction

from accounts.domain.user import User
from accounts.infrastructure.models import User as UserModel
from accounts.ports.user_repository import UserRepository
from core.domain.exceptions import EmailAlreadyRegisteredError
from core.domain.value_objects import Email
from core.infrastructure.database import translate_store_errors


class DjangoUserRepository(UserRepository):
    """Django ORM implementation of UserRepository."""

    def _to_domain(self, model: UserModel) -> User:
        """
        Convert Django model to domain entity.

        Args:
            model: Django User model

        Returns:
            User domain entity
        """
        return User(
            id=model.id,
            email=Email(model.email),
            banned=model.banned,
            created_at=model.created_at,
            is_staff=model.is_staff,
        )

    @sync_to_async
    @translate_store_errors("create_user")
    def create(self, user: User, password: str) -> User:
        """
        Persist a new user together with its password hash.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken
        """
        model = UserModel(
            id=user.id,
            email=str(user.email),
            banned=user.banned,
            created_at=user.created_at,
        )
        model.set_password(password)
        try:
            with transaction.atomic():
                model.save(force_insert=True)
        except IntegrityError as e:
            raise EmailAlreadyRegisteredError() from e
        return self._to_domain(model)

    @sync_to_async
    @translate_store_errors("find_user")
    def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        model = UserModel.objects.filter(id=user_id).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @translate_store_errors("find_user")
    def find_by_email(self, email: str) -> Optional[User]:
        """
        Find a user by email, case-insensitively.

        Args:
            email: Email address as typed

        Returns:
            User entity or None if not found
        """
        model = UserModel.objects.filter(email__iexact=(email or "").strip()).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    @translate_store_errors("find_users")
    def find_all(self) -> List[User]:
        return [self._to_domain(model) for model in UserModel.objects.order_by("-created_at")]

    @sync_to_async
    @translate_store_errors("ban_user")
    def set_banned(self, user_id: uuid.UUID, banned: bool) -> bool:
        return UserModel.objects.filter(id=user_id).update(banned=banned) == 1

    @sync_to_async
    @translate_store_errors("change_email")
    def change_email(self, user_id: uuid.UUID, email: str) -> bool:
        """
        Change one user's email.

        Raises:
            EmailAlreadyRegisteredError: If another account uses the email
        """
        normalized = str(Email(email))
        if UserModel.objects.filter(email__iexact=normalized).exclude(id=user_id).exists():
            raise EmailAlreadyRegisteredError()
        try:
            with transaction.atomic():
                updated = UserModel.objects.filter(id=user_id).update(email=normalized)
        except IntegrityError as e:
            raise EmailAlreadyRegisteredError() from e
        return updated == 1

    @sync_to_async
    @translate_store_errors("set_password")
    def set_password(self, user_id: uuid.UUID, password: str) -> bool:
        model = UserModel.objects.filter(id=user_id).first()
        if model is None:
            return False
        model.set_password(password)
        model.save(update_fields=["password"])
        return True

    @sync_to_async
    @translate_store_errors("count_users")
    def count(self, banned: Optional[bool] = None) -> int:
        queryset = UserModel.objects.all()
        if banned is not None:
            queryset = queryset.filter(banned=banned)
        return queryset.count()
