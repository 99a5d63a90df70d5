"""
Account DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass
class UserDTO:
    """DTO for user information. Never carries credentials."""

    id: uuid.UUID
    email: str
    banned: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, user) -> "UserDTO":
        return cls(
            id=user.id,
            email=str(user.email),
            banned=user.banned,
            created_at=user.created_at,
        )


@dataclass
class SessionDTO:
    """DTO for an issued session."""

    token: str
    expires_at: datetime
    user: UserDTO


@dataclass
class RegistrationDTO:
    """
    DTO for a registration response.

    ``activated_key`` is set when the activation key was claimed;
    ``activation_error`` when the key was taken concurrently after the
    account had been created.
    """

    session: SessionDTO
    activated_key: Optional[str] = None
    activation_error: Optional[str] = None


@dataclass
class BanResultDTO:
    """DTO for one row of a batch ban/unban."""

    user_id: uuid.UUID
    status: str
    banned: Optional[bool] = None


@dataclass
class BanBatchDTO:
    """DTO for a batch ban/unban response."""

    results: List[BanResultDTO]

    @property
    def updated(self) -> int:
        return sum(1 for result in self.results if result.status == "updated")
