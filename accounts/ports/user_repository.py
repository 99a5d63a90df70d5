"""
User repository port (interface).

This defines the contract for user persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import uuid

from accounts.domain.user import User


class UserRepository(ABC):
    """
    Abstract repository for User entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def create(self, user: User, password: str) -> User:
        """
        Persist a new user together with its password hash.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken (case-insensitive)
        """
        pass

    @abstractmethod
    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        """Find a user by email, case-insensitively."""
        pass

    @abstractmethod
    async def find_all(self) -> List[User]:
        pass

    @abstractmethod
    async def set_banned(self, user_id: uuid.UUID, banned: bool) -> bool:
        """
        Set the ban flag on one row.

        Returns:
            False if the user does not exist
        """
        pass

    @abstractmethod
    async def change_email(self, user_id: uuid.UUID, email: str) -> bool:
        """
        Change one user's email.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken
        """
        pass

    @abstractmethod
    async def set_password(self, user_id: uuid.UUID, password: str) -> bool:
        pass

    @abstractmethod
    async def count(self, banned: Optional[bool] = None) -> int:
        pass
