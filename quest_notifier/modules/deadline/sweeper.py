"""
DeadlineSweeper: "due within the hour" reminders.

Purpose
-------
Runs on a fixed schedule (every 10 minutes by default). Each tick finds the
quests and template occurrences that fall due in the next hour and sends
their assignees a `deadline` push.

Algorithm
---------
1. `lookahead_end = now + DEADLINE_LOOKAHEAD_MINUTES` (61 by default; the
   extra minute overlaps consecutive windows).
2. Stored quests: open, `now < dueDate <= lookahead_end`, assigned and not
   yet notified. Each is dispatched and then marked with `lastNotifiedAt`.
3. Templates: assigned and firing today in `SCHEDULE_TIMEZONE`, skipped when
   a step-2 quest carries the template id. With a `recurringDueTime`, the
   due instant is today's wall-clock time of day; `0 < due - now <=
   DEADLINE_WARNING_MINUTES` dispatches.

Concurrency Notes
-----------------
- All dispatches of one tick run concurrently and the tick waits for every
  one to settle. One failure never cancels the others.
- `lastNotifiedAt` is written after the dispatch, not claimed before it.
  Two overlapping ticks can both see it unset and both send.
- Template occurrences have no persisted marker. Every tick whose window
  contains the due instant sends again (at most twice with the default
  10-minute cadence and 60-minute window). Materialize the quest, or write
  a per-day marker on the template, to avoid this.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Awaitable, List, Optional
from zoneinfo import ZoneInfo

from quest_notifier.core.config.config import Config
from quest_notifier.core.exceptions import DocumentStoreError
from quest_notifier.modules.notification.constants import NotificationType
from quest_notifier.modules.quests.recurrence import calendar_day
from quest_notifier.modules.quests.schedule import (
    MaterializedQuest,
    VirtualQuest,
    virtual_occurrences,
)
from quest_notifier.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from quest_notifier.core.config.manager import ConfigManager
    from quest_notifier.core.event.bus import EventBus
    from quest_notifier.modules.notification.copy import CopyCatalog
    from quest_notifier.modules.notification.dispatcher import NotificationDispatcher
    from quest_notifier.modules.quests.repository import QuestRepository, QuestTemplateRepository


@dataclass(slots=True)
class SweepResult:
    quests_notified: int = 0
    templates_notified: int = 0
    failures: int = 0

    @property
    def dispatched(self) -> int:
        return self.quests_notified + self.templates_notified


class DeadlineSweeper(BaseService):
    def __init__(
        self,
        quests: QuestRepository,
        templates: QuestTemplateRepository,
        dispatcher: NotificationDispatcher,
        copy: CopyCatalog,
        config_manager: type[ConfigManager],
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._quests = quests
        self._templates = templates
        self._dispatcher = dispatcher
        self._copy = copy

    async def run(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Execute one sweep tick.

        Raises:
            DocumentStoreError: When the quest or template query fails. The
                scheduler host decides whether to retry the tick.
        """
        now = now or datetime.now(timezone.utc)
        lookahead_end = now + timedelta(minutes=Config.DEADLINE_LOOKAHEAD_MINUTES)
        warning_window = timedelta(minutes=Config.DEADLINE_WARNING_MINUTES)
        tz = ZoneInfo(Config.SCHEDULE_TIMEZONE)
        today = calendar_day(now, tz)

        due_soon = await self._quests.find_open_due_between(now, lookahead_end)
        templates = await self._templates.find_assigned()

        quest_targets = [
            MaterializedQuest(quest)
            for quest in due_soon
            if quest.assigned_to and quest.last_notified_at is None
        ]
        template_targets = [
            occurrence
            for occurrence in virtual_occurrences(templates, today, tz, due_soon)
            if occurrence.due is not None
            and timedelta(0) < occurrence.due - now <= warning_window
        ]

        jobs: List[Awaitable[None]] = [self._notify_quest(item) for item in quest_targets]
        jobs.extend(self._notify_template(item) for item in template_targets)
        outcomes = await asyncio.gather(*jobs, return_exceptions=True)

        result = SweepResult()
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, BaseException):
                result.failures += 1
                self.log_error("deadline_sweep.item", outcome)
            elif index < len(quest_targets):
                result.quests_notified += 1
            else:
                result.templates_notified += 1

        self.log_operation(
            "deadline_sweep",
            window_start=now.isoformat(),
            window_end=lookahead_end.isoformat(),
            due_soon_count=len(due_soon),
            template_count=len(templates),
            quests_notified=result.quests_notified,
            templates_notified=result.templates_notified,
            failures=result.failures,
        )
        return result

    async def _notify_quest(self, item: MaterializedQuest) -> None:
        rendered = self._copy.deadline(item.title, item.category)
        await self._dispatcher.notify(
            item.assigned_to,
            NotificationType.DEADLINE,
            rendered.title,
            rendered.body,
            quest_id=item.quest_id,
            template_id=item.template_id,
            category=item.category,
        )
        try:
            await self._quests.mark_notified(item.quest_id)
        except DocumentStoreError as exc:
            # The push already went out; the next tick may repeat it.
            self.log_error("mark_notified", exc, quest_id=item.quest_id)

    async def _notify_template(self, item: VirtualQuest) -> None:
        rendered = self._copy.deadline(item.title, item.category)
        await self._dispatcher.notify(
            item.assigned_to,
            NotificationType.DEADLINE,
            rendered.title,
            rendered.body,
            template_id=item.template_id,
            category=item.category,
        )
