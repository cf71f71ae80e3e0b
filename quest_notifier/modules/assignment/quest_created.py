"""
Assignment push for newly created quests.

A quest created by one member and assigned to another notifies the assignee
once, at creation. The title reflects how close the due date already is.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

from quest_notifier.core.config.config import Config
from quest_notifier.modules.notification.constants import NotificationType
from quest_notifier.modules.notification.copy import classify_urgency
from quest_notifier.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from quest_notifier.core.config.manager import ConfigManager
    from quest_notifier.core.event.bus import EventBus
    from quest_notifier.modules.notification.copy import CopyCatalog
    from quest_notifier.modules.notification.dispatcher import NotificationDispatcher
    from quest_notifier.modules.quests.models import Quest


def should_notify_assignee(assigned_to: Optional[str], created_by: str) -> bool:
    """Only someone other than the creator is notified."""
    return bool(assigned_to) and assigned_to != created_by


class QuestCreatedHandler(BaseService):
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        copy: CopyCatalog,
        config_manager: type[ConfigManager],
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._dispatcher = dispatcher
        self._copy = copy

    async def handle(self, quest: Quest, now: Optional[datetime] = None) -> None:
        if not should_notify_assignee(quest.assigned_to, quest.created_by):
            self.log.debug(
                "Quest not assigned to another member; no push",
                extra={"quest_id": quest.id},
            )
            return

        now = now or datetime.now(timezone.utc)
        urgency = classify_urgency(
            quest.due_date, now, timedelta(minutes=Config.DEADLINE_WARNING_MINUTES)
        )
        rendered = self._copy.assigned(quest.title, quest.category, urgency)

        self.log_operation("quest_assigned", quest_id=quest.id, urgency=urgency.value)
        await self._dispatcher.notify(
            quest.assigned_to,
            NotificationType.QUEST_ASSIGNED,
            rendered.title,
            rendered.body,
            quest_id=quest.id,
            template_id=quest.template_id,
            category=quest.category,
        )
