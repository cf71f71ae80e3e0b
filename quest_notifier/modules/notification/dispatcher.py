"""
NotificationDispatcher: the single path from "notify this user" to FCM.

Purpose
-------
Apply the per-user gates (document exists, type not opted out, at least one
device token), send one multicast carrying the next badge number, and
persist that badge only when the push reached at least one device.

Responsibilities
----------------
- Read the user document and evaluate `notificationSetting[type]`
- Compute `badgeCount + 1` and send it as the APNs badge
- Write `badgeCount` after a delivered send
- Publish `notification.sent` so the inbox recorder can store the item

Error Handling
--------------
`notify` never raises. Store and push failures are logged with their
traceback and the call returns normally, so one user's failure cannot
abort a trigger or a sweep.

Concurrency Notes
-----------------
The badge is read-then-written without a transaction. Two concurrent
sends to one user may both send and persist the same number.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from quest_notifier.core.event.names import NOTIFICATION_SENT
from quest_notifier.core.exceptions import NotifierInfrastructureException
from quest_notifier.core.logging.logger import LogContext
from quest_notifier.modules.notification.constants import NotificationType
from quest_notifier.modules.quests.models import QuestCategory
from quest_notifier.modules.shared.base_service import BaseService

if TYPE_CHECKING:
    from logging import Logger

    from quest_notifier.core.config.manager import ConfigManager
    from quest_notifier.core.event.bus import EventBus
    from quest_notifier.modules.notification.push_gateway import FcmPushGateway
    from quest_notifier.modules.users.repository import UserRepository


class NotificationDispatcher(BaseService):
    def __init__(
        self,
        users: UserRepository,
        push_gateway: FcmPushGateway,
        config_manager: type[ConfigManager],
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._users = users
        self._push = push_gateway

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        body: str,
        *,
        quest_id: Optional[str] = None,
        template_id: Optional[str] = None,
        category: Optional[QuestCategory] = None,
    ) -> None:
        """
        Best-effort push to every device of `user_id`.

        Parameters
        ----------
        user_id:
            Recipient document id.
        notification_type:
            Preference key checked against `notificationSetting`.
        title, body:
            Rendered copy.
        quest_id, template_id, category:
            Carried into the `notification.sent` payload for the inbox.
        """
        async with LogContext(
            user_id=user_id,
            quest_id=quest_id,
            template_id=template_id,
            operation=f"notify.{notification_type.value}",
        ):
            try:
                await self._notify(
                    user_id,
                    notification_type,
                    title,
                    body,
                    quest_id=quest_id,
                    template_id=template_id,
                    category=category,
                )
            except NotifierInfrastructureException as exc:
                self.log_error("notify", exc, error_details=exc.to_dict())
            except Exception as exc:
                self.log_error("notify", exc, notification_type=notification_type.value)

    async def _notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        body: str,
        *,
        quest_id: Optional[str],
        template_id: Optional[str],
        category: Optional[QuestCategory],
    ) -> None:
        user = await self._users.get(user_id)
        if user is None:
            self.log.debug("Recipient not found; skipping", extra={"recipient": user_id})
            return

        if not user.allows(notification_type.value):
            self.log.info(
                "Recipient opted out; skipping",
                extra={"notification_type": notification_type.value},
            )
            return

        if not user.fcm_tokens:
            self.log.info("Recipient has no device tokens; skipping")
            return

        new_badge = user.badge_count + 1
        result = await self._push.send_multicast(user.fcm_tokens, title, body, new_badge)

        if not result.delivered:
            self.log.warning(
                "Push reached no devices; badge unchanged",
                extra={
                    "token_count": len(user.fcm_tokens),
                    "failure_count": result.failure_count,
                },
            )
            return

        await self._users.set_badge_count(user_id, new_badge)

        self.log_operation(
            "notify",
            notification_type=notification_type.value,
            success_count=result.success_count,
            failure_count=result.failure_count,
            badge_count=new_badge,
        )

        payload: Dict[str, Any] = {
            "user_id": user_id,
            "type": notification_type.value,
            "title": title,
            "body": body,
            "quest_id": quest_id,
            "template_id": template_id,
            "category": category.value if category is not None else None,
        }
        await self.emit_event(NOTIFICATION_SENT, payload)
