"""
Quest and quest-template repositories.

Status filters are applied in memory: the due-soon window and one user's day
are small result sets. The assignee day query combines an equality and a
range filter and needs the composite index in `firestore.indexes.json`.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from google.cloud.firestore import SERVER_TIMESTAMP
from google.cloud.firestore_v1 import FieldFilter

from quest_notifier.modules.quests.models import Quest, QuestTemplate
from quest_notifier.modules.shared.base_repository import FirestoreRepository

if TYPE_CHECKING:
    from logging import Logger

    from google.cloud.firestore import AsyncClient


class QuestRepository(FirestoreRepository[Quest]):
    collection_name = "quests"

    def __init__(self, client: AsyncClient, logger: Logger) -> None:
        super().__init__(client, Quest, logger)

    async def find_open_due_between(self, start: datetime, end: datetime) -> List[Quest]:
        """Open quests with `start < dueDate <= end`."""
        query = self.collection.where(filter=FieldFilter("dueDate", ">", start)).where(
            filter=FieldFilter("dueDate", "<=", end)
        )
        quests = await self.find_many(query, operation="find_open_due_between")
        return [quest for quest in quests if quest.is_open]

    async def find_open_for_assignee_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> List[Quest]:
        """Open quests assigned to `user_id` with `start <= dueDate < end`."""
        query = (
            self.collection.where(filter=FieldFilter("assignedTo", "==", user_id))
            .where(filter=FieldFilter("dueDate", ">=", start))
            .where(filter=FieldFilter("dueDate", "<", end))
        )
        quests = await self.find_many(query, operation="find_open_for_assignee_between")
        return [quest for quest in quests if quest.is_open]

    async def mark_notified(self, quest_id: str, at: Optional[datetime] = None) -> None:
        """
        Set the `lastNotifiedAt` dedup marker.

        Server time is used unless `at` is given. The marker is a plain write,
        not a lock: two overlapping sweeps can both read it unset and both
        notify. That duplicate is accepted.
        """
        await self.update_fields(
            quest_id,
            {"lastNotifiedAt": at if at is not None else SERVER_TIMESTAMP},
            operation="mark_notified",
        )


class QuestTemplateRepository(FirestoreRepository[QuestTemplate]):
    collection_name = "quest_templates"

    def __init__(self, client: AsyncClient, logger: Logger) -> None:
        super().__init__(client, QuestTemplate, logger)

    async def find_assigned(self) -> List[QuestTemplate]:
        """Every template with an assignee."""
        query = self.collection.where(filter=FieldFilter("assignedTo", "!=", None))
        templates = await self.find_many(query, operation="find_assigned")
        return [template for template in templates if template.assigned_to]

    async def find_for_assignee(self, user_id: str) -> List[QuestTemplate]:
        query = self.collection.where(filter=FieldFilter("assignedTo", "==", user_id))
        return await self.find_many(query, operation="find_for_assignee")
