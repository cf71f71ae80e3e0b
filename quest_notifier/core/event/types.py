"""
Core event types for the in-process EventBus.

Purpose
-------
Type definitions shared by the registry, scheduler and bus: the payload
alias, listener priorities, the callback union and the listener record.

Priority Levels
---------------
- CRITICAL (0): sequential, awaited, timeout-protected.
- HIGH (10): sequential, awaited, timeout-protected.
- NORMAL (50): concurrent via asyncio.gather, awaited.
- LOW (100): fire-and-forget background tasks.

Serverless invocations may be frozen as soon as the handler returns, so
anything that must finish before the function exits (dispatch, inbox writes)
subscribes at NORMAL or above.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

EventPayload = dict[str, Any]


class ListenerPriority(Enum):
    """Execution tier for a listener; lower values run first."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


@dataclass(slots=True, frozen=True)
class EventListener:
    """
    Immutable registration record for one listener.

    Attributes
    ----------
    callback:
        Async or sync callable invoked with the event payload.
    priority:
        Tier determining ordering and concurrency.
    identifier:
        Stable id used for deduplication and unsubscription.
    """

    callback: CallbackType
    priority: ListenerPriority
    identifier: str

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority,
        identifier: Optional[str],
    ) -> EventListener:
        """
        Build a listener, deriving `identifier` from the callback when absent.

        Examples
        --------
        >>> listener = EventListener.from_callback(
        ...     event_name="quest.created",
        ...     callback=handler.handle,
        ...     priority=ListenerPriority.NORMAL,
        ...     identifier=None,
        ... )
        >>> listener.identifier
        'quest_notifier.modules.assignment.quest_created.QuestCreatedHandler.handle@quest.created'
        """
        if identifier is None:
            module = getattr(callback, "__module__", "unknown")
            qualname = getattr(
                callback, "__qualname__", getattr(callback, "__name__", "callback")
            )
            identifier = f"{module}.{qualname}@{event_name}"

        return cls(
            callback=callback,
            priority=priority,
            identifier=identifier,
        )
