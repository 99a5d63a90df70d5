"""
License key listing and statistics handlers.
"""
from datetime import datetime, time, timedelta
from typing import Callable, List

from django.utils import timezone

from accounts.ports.user_repository import UserRepository
from core.domain.value_objects import KeyState
from licenses.application.dto.license_dto import (
    DailyCountDTO,
    KeyStatisticsDTO,
    LicenseKeyDTO,
    UserKeysDTO,
)
from licenses.application.queries.key_queries import (
    KeyStatisticsQuery,
    ListKeysQuery,
    ListUserKeysQuery,
)
from licenses.ports.license_key_repository import LicenseKeyRepository


class ListUserKeysHandler:
    """Handler for ListUserKeysQuery."""

    def __init__(self, license_key_repository: LicenseKeyRepository, clock: Callable = timezone.now):
        self.license_key_repository = license_key_repository
        self.clock = clock

    async def handle(self, query: ListUserKeysQuery) -> UserKeysDTO:
        """
        Active keys owned by the user, and Available keys reserved for them.

        Expired keys are omitted; they can still be reactivated by key string.
        """
        now = self.clock()
        owned = await self.license_key_repository.find_by_owner(query.user_id)
        reserved = await self.license_key_repository.find_available_for_purchaser(query.user_id)
        return UserKeysDTO(
            active=[LicenseKeyDTO.from_entity(key, now) for key in owned if key.is_active(now)],
            available=[LicenseKeyDTO.from_entity(key, now) for key in reserved],
        )


class ListKeysHandler:
    """Handler for ListKeysQuery."""

    def __init__(self, license_key_repository: LicenseKeyRepository, clock: Callable = timezone.now):
        self.license_key_repository = license_key_repository
        self.clock = clock

    async def handle(self, query: ListKeysQuery) -> List[LicenseKeyDTO]:
        now = self.clock()
        keys = await self.license_key_repository.find_all(state=query.state, now=now)
        return [LicenseKeyDTO.from_entity(key, now) for key in keys]


class KeyStatisticsHandler:
    """Handler for KeyStatisticsQuery."""

    def __init__(
        self,
        license_key_repository: LicenseKeyRepository,
        user_repository: UserRepository,
        clock: Callable = timezone.now,
    ):
        self.license_key_repository = license_key_repository
        self.user_repository = user_repository
        self.clock = clock

    async def handle(self, query: KeyStatisticsQuery) -> KeyStatisticsDTO:
        """
        Compute the dashboard figures.

        Claims per day cover the last ``query.days`` days including today,
        oldest first, with days without claims reported as zero. Revenue is
        estimated from the price of each claimed key's duration.
        """
        now = self.clock()
        today = timezone.localdate(now)
        first_day = today - timedelta(days=query.days - 1)
        since = timezone.make_aware(datetime.combine(first_day, time.min))

        by_state = await self.license_key_repository.count_by_state(now)
        per_day = await self.license_key_repository.count_claims_per_day(since)
        by_duration = await self.license_key_repository.count_claimed_by_duration()

        return KeyStatisticsDTO(
            total_users=await self.user_repository.count(),
            banned_users=await self.user_repository.count(banned=True),
            total_keys=sum(by_state.values()),
            available_keys=by_state.get(KeyState.AVAILABLE, 0),
            active_keys=by_state.get(KeyState.ACTIVE, 0),
            expired_keys=by_state.get(KeyState.EXPIRED, 0),
            claims_per_day=[
                DailyCountDTO(day=day, count=per_day.get(day, 0))
                for day in (first_day + timedelta(days=offset) for offset in range(query.days))
            ],
            estimated_revenue=sum(
                duration.price * count for duration, count in by_duration.items()
            ),
        )
