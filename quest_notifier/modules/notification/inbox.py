"""
Notification Inbox Recorder

Purpose
-------
Persist every delivered push as an inbox item under
`users/{uid}/notifications/{autoId}` so the client can list notification
history and unread state.

Consumes
--------
- "notification.sent" (from NotificationDispatcher)
    Payload shape:
    {
        "user_id": str,
        "type": str,                 # questAssigned | deadline | dailySummary
        "title": str,
        "body": str,
        "quest_id": Optional[str],
        "template_id": Optional[str],
        "category": Optional[str],
    }

Document shape
--------------
{id, questId?, templateId?, title, body, type, category?, isRead: false,
createdAt: server timestamp}. Optional fields are omitted when unset.

Non-Responsibilities
--------------------
- No badge handling; the dispatcher owns `badgeCount`
- No read-state updates; the client flips `isRead`

Configuration Keys
------------------
- NOTIFICATION_INBOX_ENABLED (Config): bool, default true

Architecture Notes
------------------
- Subscribed at NORMAL priority so the write is awaited inside the trigger
  invocation. A LOW (fire-and-forget) listener could be frozen with the
  instance once the function returns.
- Recording is best-effort: failures are logged and counted, never raised
  back into the publish.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore import SERVER_TIMESTAMP

from quest_notifier.core.config.config import Config
from quest_notifier.core.event.names import NOTIFICATION_SENT
from quest_notifier.core.event.types import ListenerPriority
from quest_notifier.core.exceptions import DocumentStoreError
from quest_notifier.core.logging.logger import get_logger

if TYPE_CHECKING:
    from google.cloud.firestore import AsyncClient

    from quest_notifier.core.event.bus import EventBus

logger = get_logger(__name__)


def build_inbox_document(doc_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        "id": doc_id,
        "title": payload["title"],
        "body": payload["body"],
        "type": payload["type"],
        "isRead": False,
        "createdAt": SERVER_TIMESTAMP,
    }
    if payload.get("quest_id"):
        document["questId"] = payload["quest_id"]
    if payload.get("template_id"):
        document["templateId"] = payload["template_id"]
    if payload.get("category"):
        document["category"] = payload["category"]
    return document


class InboxRepository:
    """Writes to the per-user `notifications` subcollection."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def add(self, user_id: str, payload: Dict[str, Any]) -> str:
        """
        Create one inbox item and return its id.

        Raises:
            DocumentStoreError: On Firestore failure
        """
        ref = (
            self._client.collection("users")
            .document(user_id)
            .collection("notifications")
            .document()
        )
        try:
            await ref.set(build_inbox_document(ref.id, payload))
        except GoogleAPIError as exc:
            raise DocumentStoreError("add_inbox_item", exc, "notifications") from exc
        return ref.id


class InboxRecorder:
    """Event consumer that stores delivered notifications in the user inbox."""

    LISTENER_ID = "notification.inbox_recorder"

    def __init__(
        self,
        event_bus: EventBus,
        inbox_repository: InboxRepository,
        enabled: Optional[bool] = None,
    ) -> None:
        self._event_bus = event_bus
        self._inbox = inbox_repository
        self._enabled = Config.NOTIFICATION_INBOX_ENABLED if enabled is None else enabled
        self._is_running = False

        self._events_received = 0
        self._items_written = 0
        self._items_failed = 0

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        if self._is_running:
            logger.warning("InboxRecorder already running")
            return
        if not self._enabled:
            logger.info("InboxRecorder disabled by NOTIFICATION_INBOX_ENABLED")
            return

        self._event_bus.subscribe(
            NOTIFICATION_SENT,
            self._handle_notification_sent,
            priority=ListenerPriority.NORMAL,
            identifier=self.LISTENER_ID,
        )
        self._is_running = True
        logger.info("InboxRecorder started", extra={"event_name": NOTIFICATION_SENT})

    def stop(self) -> None:
        if not self._is_running:
            return
        self._event_bus.unsubscribe(NOTIFICATION_SENT, self.LISTENER_ID)
        self._is_running = False
        logger.info("InboxRecorder stopped", extra=self.get_status())

    # ------------------------------------------------------------------ #
    # Event handling
    # ------------------------------------------------------------------ #

    async def _handle_notification_sent(self, payload: Dict[str, Any]) -> None:
        self._events_received += 1
        user_id = payload.get("user_id")
        if not user_id or not payload.get("title"):
            logger.warning(
                "Inbox event missing user or title",
                extra={"payload_keys": sorted(payload)},
            )
            return

        try:
            item_id = await self._inbox.add(user_id, payload)
        except DocumentStoreError as exc:
            self._items_failed += 1
            logger.error(
                "Failed to record inbox item",
                extra={"user_id": user_id, "error": exc.to_dict()},
                exc_info=True,
            )
            return

        self._items_written += 1
        logger.debug("Inbox item recorded", extra={"user_id": user_id, "inbox_item_id": item_id})

    def get_status(self) -> Dict[str, Any]:
        return {
            "enabled": self._enabled,
            "is_running": self._is_running,
            "events_received": self._events_received,
            "items_written": self._items_written,
            "items_failed": self._items_failed,
        }
