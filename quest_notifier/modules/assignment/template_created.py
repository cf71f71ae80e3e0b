"""Assignment push for newly created recurring templates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from quest_notifier.modules.assignment.quest_created import should_notify_assignee
from quest_notifier.modules.notification.constants import NotificationType
from quest_notifier.modules.notification.copy import Urgency
from quest_notifier.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from quest_notifier.core.config.manager import ConfigManager
    from quest_notifier.core.event.bus import EventBus
    from quest_notifier.modules.notification.copy import CopyCatalog
    from quest_notifier.modules.notification.dispatcher import NotificationDispatcher
    from quest_notifier.modules.quests.models import QuestTemplate


class TemplateCreatedHandler(BaseService):
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

    async def handle(self, template: QuestTemplate) -> None:
        # A template has no single due date, so the copy is always the generic one.
        if not should_notify_assignee(template.assigned_to, template.created_by):
            self.log.debug(
                "Template not assigned to another member; no push",
                extra={"template_id": template.id},
            )
            return

        rendered = self._copy.assigned(template.title, template.category, Urgency.NORMAL)

        self.log_operation("template_assigned", template_id=template.id)
        await self._dispatcher.notify(
            template.assigned_to,
            NotificationType.QUEST_ASSIGNED,
            rendered.title,
            rendered.body,
            template_id=template.id,
            category=template.category,
        )
