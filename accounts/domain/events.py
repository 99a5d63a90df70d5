"""
Account domain events.
"""

import uuid
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent, utc_now


class UserRegistered(DomainEvent):
    """Event raised when a new account is created."""

    def __init__(
        self,
        user_id: uuid.UUID,
        with_activation_key: bool,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(user_id),
            event_type="UserRegistered",
        )
        self.user_id = user_id
        self.with_activation_key = with_activation_key


class UserBanned(DomainEvent):
    """Event raised when an administrator bans a user."""

    def __init__(self, user_id: uuid.UUID, occurred_at: Optional[datetime] = None):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(user_id),
            event_type="UserBanned",
        )
        self.user_id = user_id


class UserUnbanned(DomainEvent):
    """Event raised when an administrator lifts a ban."""

    def __init__(self, user_id: uuid.UUID, occurred_at: Optional[datetime] = None):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(user_id),
            event_type="UserUnbanned",
        )
        self.user_id = user_id


class UserEmailChanged(DomainEvent):
    """Event raised after a verified email change."""

    def __init__(self, user_id: uuid.UUID, occurred_at: Optional[datetime] = None):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(user_id),
            event_type="UserEmailChanged",
        )
        self.user_id = user_id


class UserPasswordReset(DomainEvent):
    """Event raised after a verified password reset."""

    def __init__(self, user_id: uuid.UUID, occurred_at: Optional[datetime] = None):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utc_now(),
            aggregate_id=str(user_id),
            event_type="UserPasswordReset",
        )
        self.user_id = user_id
