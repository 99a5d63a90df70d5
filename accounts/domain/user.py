"""
User domain entity.

The credential secret is owned by the authentication collaborator and
never appears on the entity.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from django.utils import timezone

from core.domain.value_objects import Email


@dataclass(frozen=True)
class User:
    """
    User domain entity.

    Immutable; ban state and email change through new instances.
    """

    id: uuid.UUID
    email: Email
    banned: bool
    created_at: datetime
    is_staff: bool = False

    @classmethod
    def create(
        cls,
        email: str,
        user_id: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None,
    ) -> "User":
        """
        Create a new User entity.

        Args:
            email: Email address (normalized to lower case)
            user_id: Optional UUID (generated if not provided)
            now: Creation time (defaults to timezone.now())
        """
        return cls(
            id=user_id or uuid.uuid4(),
            email=Email(email),
            banned=False,
            created_at=now or timezone.now(),
        )

    def ban(self) -> "User":
        return replace(self, banned=True)

    def unban(self) -> "User":
        return replace(self, banned=False)

    def with_email(self, email: str) -> "User":
        return replace(self, email=Email(email))
