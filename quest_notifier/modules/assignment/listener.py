"""
Bind the assignment handlers to document-created events.

Consumes
--------
- "quest.created"           {"document_id": str, "data": dict}
- "quest_template.created"  {"document_id": str, "data": dict}

`data` is the raw document as written by the client. It is decoded here;
a malformed document is logged and dropped without a push.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from quest_notifier.core.event.names import QUEST_CREATED, QUEST_TEMPLATE_CREATED
from quest_notifier.core.event.types import ListenerPriority
from quest_notifier.core.logging.logger import get_logger
from quest_notifier.modules.quests.models import Quest, QuestTemplate
from quest_notifier.modules.shared.exceptions import NotifierDomainException

if TYPE_CHECKING:
    from quest_notifier.core.event.bus import EventBus
    from quest_notifier.modules.assignment.quest_created import QuestCreatedHandler
    from quest_notifier.modules.assignment.template_created import TemplateCreatedHandler

logger = get_logger(__name__)


class AssignmentListener:
    def __init__(
        self,
        event_bus: EventBus,
        quest_handler: QuestCreatedHandler,
        template_handler: TemplateCreatedHandler,
    ) -> None:
        self._event_bus = event_bus
        self._quest_handler = quest_handler
        self._template_handler = template_handler
        self._listener_ids: List[tuple[str, str]] = []

    def register(self) -> None:
        """Subscribe both handlers at NORMAL priority (awaited by publish)."""
        if self._listener_ids:
            return
        for event_name, callback in (
            (QUEST_CREATED, self._on_quest_created),
            (QUEST_TEMPLATE_CREATED, self._on_template_created),
        ):
            listener_id = self._event_bus.subscribe(
                event_name,
                callback,
                priority=ListenerPriority.NORMAL,
                identifier=f"assignment.{event_name}",
            )
            self._listener_ids.append((event_name, listener_id))
        logger.info(
            "Assignment listeners registered",
            extra={"events": [name for name, _ in self._listener_ids]},
        )

    def unregister(self) -> None:
        for event_name, listener_id in self._listener_ids:
            self._event_bus.unsubscribe(event_name, listener_id)
        self._listener_ids.clear()

    async def _on_quest_created(self, payload: Dict[str, Any]) -> None:
        doc_id = payload.get("document_id")
        try:
            quest = Quest.from_document(doc_id, payload.get("data") or {})
        except NotifierDomainException as exc:
            logger.warning(
                "Ignoring malformed created quest",
                extra={"quest_id": doc_id, "error": exc.to_dict()},
            )
            return
        await self._quest_handler.handle(quest, now=payload.get("now"))

    async def _on_template_created(self, payload: Dict[str, Any]) -> None:
        doc_id = payload.get("document_id")
        try:
            template = QuestTemplate.from_document(doc_id, payload.get("data") or {})
        except NotifierDomainException as exc:
            logger.warning(
                "Ignoring malformed created template",
                extra={"template_id": doc_id, "error": exc.to_dict()},
            )
            return
        await self._template_handler.handle(template)
