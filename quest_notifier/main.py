"""
Quest Notifier - Cloud Functions Entry Points
=============================================

Deployed functions
------------------
- on_quest_created            Firestore create on `quests/{questId}`
- on_quest_template_created   Firestore create on `quest_templates/{templateId}`
- sweep_deadlines             scheduler, `DEADLINE_SWEEP_SCHEDULE`
- send_daily_digest           scheduler, `DAILY_DIGEST_SCHEDULE`

Each invocation
---------------
1. Opens a LogContext carrying the trigger name and a fresh correlation id
2. Builds and initializes a ServiceContainer
3. Publishes the created document on the EventBus, or runs the job
4. Shuts the container down

Document triggers never raise: a failure is logged and the invocation
succeeds, so the host does not retry a push. Scheduled jobs let a systemic
failure (e.g. the due-soon query failing) propagate to the host.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from firebase_functions import firestore_fn, options, scheduler_fn

from quest_notifier.core.config.config import Config
from quest_notifier.core.event.names import QUEST_CREATED, QUEST_TEMPLATE_CREATED
from quest_notifier.core.logging.logger import LogContext, get_logger
from quest_notifier.core.services.container import ServiceContainer, with_container

logger = get_logger(__name__)

options.set_global_options(max_instances=Config.FUNCTIONS_MAX_INSTANCES)


async def publish_created(
    event_name: str, document_id: str, data: Optional[Dict[str, Any]]
) -> None:
    if not data:
        logger.warning("Created document has no data", extra={"event_name": event_name})
        return

    payload: Dict[str, Any] = {"document_id": document_id, "data": data}

    async def _publish(container: ServiceContainer) -> None:
        await container.event_bus.publish(event_name, payload)

    await with_container(_publish)


def _handle_created(
    event_name: str,
    snapshot: Optional[firestore_fn.DocumentSnapshot],
    **context: Any,
) -> None:
    with LogContext(trigger=event_name, **context):
        if snapshot is None:
            logger.warning("Create event without a snapshot")
            return
        try:
            asyncio.run(publish_created(event_name, snapshot.id, snapshot.to_dict()))
        except Exception:
            logger.error("Document trigger failed", exc_info=True)


# ============================================================================
# Firestore triggers
# ============================================================================


@firestore_fn.on_document_created(document="quests/{questId}")
def on_quest_created(
    event: firestore_fn.Event[Optional[firestore_fn.DocumentSnapshot]],
) -> None:
    _handle_created(QUEST_CREATED, event.data, quest_id=event.params.get("questId"))


@firestore_fn.on_document_created(document="quest_templates/{templateId}")
def on_quest_template_created(
    event: firestore_fn.Event[Optional[firestore_fn.DocumentSnapshot]],
) -> None:
    _handle_created(
        QUEST_TEMPLATE_CREATED, event.data, template_id=event.params.get("templateId")
    )


# ============================================================================
# Scheduled jobs
# ============================================================================


@scheduler_fn.on_schedule(
    schedule=Config.DEADLINE_SWEEP_SCHEDULE,
    timezone=scheduler_fn.Timezone(Config.SCHEDULE_TIMEZONE),
)
def sweep_deadlines(event: scheduler_fn.ScheduledEvent) -> None:
    with LogContext(trigger="deadline_sweep", operation="deadline_sweep"):
        result = asyncio.run(with_container(lambda c: c.deadline_sweeper.run()))
        logger.info(
            "Deadline sweep finished",
            extra={
                "quests_notified": result.quests_notified,
                "templates_notified": result.templates_notified,
                "failures": result.failures,
            },
        )


@scheduler_fn.on_schedule(
    schedule=Config.DAILY_DIGEST_SCHEDULE,
    timezone=scheduler_fn.Timezone(Config.SCHEDULE_TIMEZONE),
)
def send_daily_digest(event: scheduler_fn.ScheduledEvent) -> None:
    with LogContext(trigger="daily_digest", operation="daily_digest"):
        result = asyncio.run(with_container(lambda c: c.daily_digest.run()))
        logger.info(
            "Daily digest finished",
            extra={
                "zones": result.zones,
                "recipients": result.recipients,
                "notified": result.notified,
                "failures": result.failures,
            },
        )
