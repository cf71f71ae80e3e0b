"""
User repository: preference reads, badge writes and digest recipient lookup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

from google.cloud.firestore_v1 import FieldFilter

from quest_notifier.core.config.config import Config
from quest_notifier.modules.notification.constants import NotificationType
from quest_notifier.modules.shared.base_repository import FirestoreRepository
from quest_notifier.modules.users.models import User

if TYPE_CHECKING:
    from logging import Logger

    from google.cloud.firestore import AsyncClient


def chunked(values: Sequence[str], size: int) -> List[List[str]]:
    return [list(values[i : i + size]) for i in range(0, len(values), size)]


class UserRepository(FirestoreRepository[User]):
    collection_name = "users"

    def __init__(self, client: AsyncClient, logger: Logger) -> None:
        super().__init__(client, User, logger)

    async def set_badge_count(self, user_id: str, badge_count: int) -> None:
        """
        Overwrite `badgeCount`.

        Read-then-write without a transaction: two sends racing for the same
        user can both compute the same next value. The badge is advisory, so
        the lost increment is accepted.
        """
        await self.update_fields(
            user_id, {"badgeCount": badge_count}, operation="set_badge_count"
        )

    async def find_digest_recipients(self, zones: Sequence[str]) -> List[User]:
        """
        Users with the daily summary enabled whose `timeZone` is in `zones`.

        Firestore limits `in` filters to 30 values, so zones are queried in
        batches and the results concatenated.
        """
        users: List[User] = []
        for batch in chunked(list(zones), Config.TIMEZONE_QUERY_BATCH_SIZE):
            query = self.collection.where(
                filter=FieldFilter(
                    f"notificationSetting.{NotificationType.DAILY_SUMMARY.value}", "==", True
                )
            ).where(filter=FieldFilter("timeZone", "in", batch))
            users.extend(await self.find_many(query, operation="find_digest_recipients"))
        return users
