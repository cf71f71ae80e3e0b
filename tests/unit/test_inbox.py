"""
Unit tests for the notification inbox: document shape and the event consumer.
"""

import pytest
from google.api_core.exceptions import ServiceUnavailable
from google.cloud.firestore import SERVER_TIMESTAMP

from quest_notifier.core.event.names import NOTIFICATION_SENT
from quest_notifier.modules.notification.constants import NotificationType
from quest_notifier.modules.notification.inbox import (
    InboxRecorder,
    InboxRepository,
    build_inbox_document,
)
from quest_notifier.modules.quests.models import QuestCategory
from tests.conftest import make_user

INBOX = "users/u-assignee/notifications"


def sent_payload(**overrides):
    payload = {
        "user_id": "u-assignee",
        "type": "deadline",
        "title": "Title",
        "body": "Body",
        "quest_id": None,
        "template_id": None,
        "category": None,
    }
    payload.update(overrides)
    return payload


class TestInboxDocument:
    def test_required_fields(self):
        document = build_inbox_document("n-1", sent_payload())

        assert document == {
            "id": "n-1",
            "title": "Title",
            "body": "Body",
            "type": "deadline",
            "isRead": False,
            "createdAt": SERVER_TIMESTAMP,
        }

    def test_optional_fields_when_present(self):
        document = build_inbox_document(
            "n-1", sent_payload(quest_id="q-1", template_id="t-1", category="pet")
        )

        assert document["questId"] == "q-1"
        assert document["templateId"] == "t-1"
        assert document["category"] == "pet"


@pytest.mark.asyncio
class TestInboxRecorder:
    async def test_records_sent_notification(self, event_bus, firestore_client):
        recorder = InboxRecorder(event_bus, InboxRepository(firestore_client), enabled=True)
        recorder.start()

        await event_bus.publish(NOTIFICATION_SENT, sent_payload(quest_id="q-1"))

        items = firestore_client.store[INBOX]
        assert len(items) == 1
        item_id, item = next(iter(items.items()))
        assert item["id"] == item_id
        assert item["questId"] == "q-1"
        assert recorder.get_status()["items_written"] == 1

    async def test_disabled_recorder_does_not_subscribe(self, event_bus, firestore_client):
        recorder = InboxRecorder(event_bus, InboxRepository(firestore_client), enabled=False)
        recorder.start()

        assert event_bus.get_listener_count(NOTIFICATION_SENT) == 0
        assert recorder.get_status()["is_running"] is False

    async def test_write_failure_is_counted_not_raised(self, event_bus, firestore_client):
        recorder = InboxRecorder(event_bus, InboxRepository(firestore_client), enabled=True)
        recorder.start()
        firestore_client.error = ServiceUnavailable("firestore down")

        await event_bus.publish(NOTIFICATION_SENT, sent_payload())

        status = recorder.get_status()
        assert status["items_failed"] == 1
        assert status["items_written"] == 0

    async def test_payload_without_user_is_ignored(self, event_bus, firestore_client):
        recorder = InboxRecorder(event_bus, InboxRepository(firestore_client), enabled=True)
        recorder.start()

        await event_bus.publish(NOTIFICATION_SENT, sent_payload(user_id=None))

        assert firestore_client.store == {}
        assert recorder.get_status()["events_received"] == 1

    async def test_stop_unsubscribes(self, event_bus, firestore_client):
        recorder = InboxRecorder(event_bus, InboxRepository(firestore_client), enabled=True)
        recorder.start()
        recorder.stop()

        assert event_bus.get_listener_count(NOTIFICATION_SENT) == 0

    async def test_dispatch_lands_in_inbox(self, dispatcher, event_bus, users, firestore_client):
        """A delivered push ends up as an unread inbox item."""
        users.add(make_user())
        InboxRecorder(event_bus, InboxRepository(firestore_client), enabled=True).start()

        await dispatcher.notify(
            "u-assignee",
            NotificationType.QUEST_ASSIGNED,
            "New quest",
            "🐕 Walk the dog",
            quest_id="q-1",
            category=QuestCategory.PET,
        )

        (item,) = firestore_client.store[INBOX].values()
        assert item["type"] == "questAssigned"
        assert item["body"] == "🐕 Walk the dog"
        assert item["category"] == "pet"
        assert item["isRead"] is False
