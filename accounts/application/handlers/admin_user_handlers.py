"""
Administrative user handlers.

Ban/unban in batches and user listings.
"""

import logging
from typing import List

from accounts.application.commands.set_ban_state import SetBanStateCommand
from accounts.application.dto.user_dto import BanBatchDTO, BanResultDTO, UserDTO
from accounts.application.queries.list_users import ListUsersQuery
from accounts.domain.events import UserBanned, UserUnbanned
from accounts.ports.user_repository import UserRepository
from core.infrastructure.events import event_bus

logger = logging.getLogger(__name__)


class SetBanStateHandler:
    """Handler for SetBanStateCommand."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def handle(self, command: SetBanStateCommand) -> BanBatchDTO:
        """
        Apply the ban flag to each user independently.

        Every id is a separate single-row update; an unknown id is
        reported as ``not_found`` and does not affect the others.
        Keys owned by a banned user are left untouched.
        """
        results: List[BanResultDTO] = []
        seen = set()
        for user_id in command.user_ids:
            if user_id in seen:
                continue
            seen.add(user_id)

            if not await self.user_repository.set_banned(user_id, command.banned):
                results.append(BanResultDTO(user_id=user_id, status="not_found"))
                continue

            results.append(BanResultDTO(user_id=user_id, status="updated", banned=command.banned))
            event = UserBanned(user_id=user_id) if command.banned else UserUnbanned(user_id=user_id)
            await event_bus.publish(event)

        batch = BanBatchDTO(results=results)
        logger.info(
            "Ban state applied",
            extra={"banned": command.banned, "requested": len(command.user_ids), "updated": batch.updated},
        )
        return batch


class ListUsersHandler:
    """Handler for ListUsersQuery."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def handle(self, query: ListUsersQuery) -> List[UserDTO]:
        users = await self.user_repository.find_all()
        if query.banned is not None:
            users = [user for user in users if user.banned == query.banned]
        return [UserDTO.from_entity(user) for user in users]
