"""
In-process event system.

Each ServiceContainer owns its own EventBus; there is no module-level
singleton because every Cloud Functions invocation builds a fresh
container and tests build one per case.
"""

from quest_notifier.core.event.bus import EventBus
from quest_notifier.core.event.context import apply_event_log_context
from quest_notifier.core.event.names import (
    NOTIFICATION_SENT,
    QUEST_CREATED,
    QUEST_TEMPLATE_CREATED,
)
from quest_notifier.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "EventBus",
    "EventPayload",
    "ListenerPriority",
    "EventListener",
    "CallbackType",
    "apply_event_log_context",
    "QUEST_CREATED",
    "QUEST_TEMPLATE_CREATED",
    "NOTIFICATION_SENT",
]
