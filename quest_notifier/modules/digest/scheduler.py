"""
DailyDigestScheduler: the morning "quests for today" push.

Purpose
-------
Runs hourly. Each tick targets the users for whom it is currently
`DIGEST_LOCAL_HOUR` (09:00 by default) in their own `timeZone`, counts what
they have on their plate today, and sends a `dailySummary` push when the
count is not zero.

Counting
--------
For one user, "today" is the local calendar day in the user's zone and the
range is local midnight to the next local midnight. The count is

    open stored quests assigned to the user due in the range
  + templates assigned to the user firing today whose id no counted quest
    carries

Error Handling
--------------
Recipient lookup failures propagate to the scheduler host. Failures while
counting or sending for one user are logged and do not affect the others.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import TYPE_CHECKING, List, Optional
from zoneinfo import ZoneInfo

from quest_notifier.core.config.config import Config
from quest_notifier.core.logging.logger import LogContext
from quest_notifier.modules.digest.timezones import zones_at_local_hour
from quest_notifier.modules.notification.constants import NotificationType
from quest_notifier.modules.quests.recurrence import calendar_day
from quest_notifier.modules.quests.schedule import merge_schedule
from quest_notifier.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from quest_notifier.core.config.manager import ConfigManager
    from quest_notifier.core.event.bus import EventBus
    from quest_notifier.modules.notification.copy import CopyCatalog
    from quest_notifier.modules.notification.dispatcher import NotificationDispatcher
    from quest_notifier.modules.quests.repository import QuestRepository, QuestTemplateRepository
    from quest_notifier.modules.users.models import User
    from quest_notifier.modules.users.repository import UserRepository


@dataclass(slots=True)
class DigestResult:
    zones: int = 0
    recipients: int = 0
    notified: int = 0
    failures: int = 0


class DailyDigestScheduler(BaseService):
    def __init__(
        self,
        users: UserRepository,
        quests: QuestRepository,
        templates: QuestTemplateRepository,
        dispatcher: NotificationDispatcher,
        copy: CopyCatalog,
        config_manager: type[ConfigManager],
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._users = users
        self._quests = quests
        self._templates = templates
        self._dispatcher = dispatcher
        self._copy = copy

    async def run(self, now: Optional[datetime] = None) -> DigestResult:
        now = now or datetime.now(timezone.utc)
        zones = zones_at_local_hour(now, Config.DIGEST_LOCAL_HOUR)
        result = DigestResult(zones=len(zones))
        if not zones:
            self.log.debug("No zone at digest hour", extra={"hour": Config.DIGEST_LOCAL_HOUR})
            return result

        recipients = await self._users.find_digest_recipients(zones)
        result.recipients = len(recipients)

        outcomes = await asyncio.gather(
            *(self._digest_for(user, now) for user in recipients),
            return_exceptions=True,
        )
        for user, outcome in zip(recipients, outcomes):
            if isinstance(outcome, BaseException):
                result.failures += 1
                self.log_error("daily_digest.user", outcome, user_id=user.id)
            elif outcome:
                result.notified += 1

        self.log_operation(
            "daily_digest",
            zone_count=result.zones,
            recipient_count=result.recipients,
            notified=result.notified,
            failures=result.failures,
        )
        return result

    async def count_for(self, user: User, now: datetime) -> int:
        """Quests plus uncovered template occurrences for the user's local today."""
        tz = ZoneInfo(user.time_zone) if user.time_zone else timezone.utc
        today = calendar_day(now, tz)
        start = datetime.combine(today, time(0), tzinfo=tz).astimezone(timezone.utc)
        end = datetime.combine(today + timedelta(days=1), time(0), tzinfo=tz).astimezone(
            timezone.utc
        )

        quests = await self._quests.find_open_for_assignee_between(user.id, start, end)
        templates = await self._templates.find_for_assignee(user.id)
        return len(merge_schedule(quests, templates, today, tz))

    async def _digest_for(self, user: User, now: datetime) -> bool:
        async with LogContext(user_id=user.id, operation="daily_digest.user"):
            count = await self.count_for(user, now)
            if count <= 0:
                self.log.debug("Nothing due today; no digest")
                return False

            rendered = self._copy.digest(count)
            await self._dispatcher.notify(
                user.id,
                NotificationType.DAILY_SUMMARY,
                rendered.title,
                rendered.body,
            )
            return True
