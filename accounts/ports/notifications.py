"""
Notification port.

Delivery of verification codes is a side channel; the application layer
only hands over the code and its purpose.
"""
from abc import ABC, abstractmethod

from core.domain.value_objects import VerificationPurpose


class VerificationCodeNotifier(ABC):
    """Delivers verification codes to their recipient."""

    @abstractmethod
    async def send(self, email: str, code: str, purpose: VerificationPurpose) -> None:
        pass
