"""
Container wiring tests: a document trigger travels the whole graph with an
in-memory Firestore client and a recording push gateway.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from quest_notifier.core.event.names import NOTIFICATION_SENT, QUEST_CREATED
from quest_notifier.core.services.container import ServiceContainer


@pytest_asyncio.fixture
async def container(config_manager, firestore_client, push_gateway):
    container = ServiceContainer(
        config_manager,
        firestore_client=firestore_client,
        push_gateway=push_gateway,
    )
    await container.initialize()
    yield container
    await container.shutdown()


def quest_data(**overrides):
    data = {
        "title": "Fold laundry",
        "category": "laundry",
        "createdBy": "u-creator",
        "assignedTo": "u-assignee",
        "status": "pending",
        "dueDate": datetime(2030, 1, 1, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
class TestServiceContainer:
    async def test_accessors_require_initialize(self, config_manager, firestore_client):
        container = ServiceContainer(config_manager, firestore_client=firestore_client)

        with pytest.raises(RuntimeError):
            container.dispatcher

    async def test_quest_created_end_to_end(self, container, firestore_client, push_gateway):
        firestore_client.seed("users", "u-assignee", {"fcmTokens": ["tok"], "badgeCount": 1})

        await container.event_bus.publish(
            QUEST_CREATED, {"document_id": "q-1", "data": quest_data()}
        )

        assert [push.badge for push in push_gateway.sent] == [2]
        assert firestore_client.store["users"]["u-assignee"]["badgeCount"] == 2
        (item,) = firestore_client.store["users/u-assignee/notifications"].values()
        assert item["questId"] == "q-1"
        assert item["body"] == "👕 Fold laundry"

    async def test_shutdown_unregisters_listeners(
        self, config_manager, firestore_client, push_gateway
    ):
        container = ServiceContainer(
            config_manager, firestore_client=firestore_client, push_gateway=push_gateway
        )
        await container.initialize()
        bus = container.event_bus

        await container.shutdown()

        assert bus.get_listener_count(QUEST_CREATED) == 0
        assert bus.get_listener_count(NOTIFICATION_SENT) == 0

    async def test_health_check(self, container):
        health = await container.health_check()

        assert health["initialized"] is True
        assert health["firebase"] is None
        assert health["inbox"]["is_running"] is True
        assert health["config"]["yaml"]["initialized"] is True
        assert health["config"]["environment"]["total_configs"] > 0
        assert health["event_bus"]["total_listeners"] == 3
